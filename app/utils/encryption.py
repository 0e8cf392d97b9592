"""Encryption utilities for withdrawal account details."""

import base64

from cryptography.fernet import Fernet, InvalidToken
from loguru import logger

from app.config.settings import settings
from app.utils.exceptions import SecurityError


class EncryptionService:
    """
    Encryption service for sensitive data.

    Uses Fernet (symmetric encryption) for payout account protection.
    """

    def __init__(
        self,
        encryption_key: str | None = None,
        environment: str | None = None,
    ) -> None:
        """
        Initialize encryption service.

        Args:
            encryption_key: Base64-encoded Fernet key
            environment: Deployment environment (defaults to settings)
        """
        self.environment = environment or settings.environment
        self.fernet: Fernet | None = None

        if encryption_key:
            try:
                self.fernet = Fernet(encryption_key.encode())
            except ValueError as e:
                logger.error(f"Invalid encryption key: {e}")
                if self.environment == "production":
                    raise SecurityError(
                        "Invalid encryption key in production environment. "
                        "Encryption is required for security."
                    ) from e
        elif self.environment == "production":
            raise SecurityError(
                "Encryption key not configured in production environment. "
                "Set ENCRYPTION_KEY in .env file."
            )

    @property
    def enabled(self) -> bool:
        """Whether a valid key is loaded."""
        return self.fernet is not None

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt plaintext.

        Args:
            plaintext: Text to encrypt

        Returns:
            Encrypted text (base64), or plaintext when disabled outside production
        """
        if not self.fernet:
            if self.environment == "production":
                raise SecurityError(
                    "Encryption must be enabled in production. "
                    "Cannot save account details without encryption."
                )
            logger.warning("Encryption disabled - returning plaintext (DEV ONLY)")
            return plaintext

        encrypted = self.fernet.encrypt(plaintext.encode())
        return base64.b64encode(encrypted).decode()

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt ciphertext.

        Args:
            ciphertext: Encrypted text (base64)

        Returns:
            Decrypted text

        Raises:
            SecurityError: If the token is invalid or was tampered with
        """
        if not self.fernet:
            if self.environment == "production":
                raise SecurityError(
                    "Encryption must be enabled in production. "
                    "Cannot decrypt data without encryption service."
                )
            logger.warning("Encryption disabled - returning ciphertext as-is (DEV ONLY)")
            return ciphertext

        try:
            encrypted = base64.b64decode(ciphertext.encode())
            return self.fernet.decrypt(encrypted).decode()
        except (InvalidToken, ValueError) as e:
            logger.error(f"Decryption error: {type(e).__name__}")
            raise SecurityError("Decryption failed") from e

    @staticmethod
    def generate_key() -> str:
        """
        Generate new Fernet key.

        Returns:
            Base64-encoded key
        """
        return Fernet.generate_key().decode()


# Singleton instance
_encryption_service: EncryptionService | None = None


def get_encryption_service() -> EncryptionService:
    """Get encryption service singleton, creating it from settings."""
    global _encryption_service

    if _encryption_service is None:
        _encryption_service = EncryptionService(settings.encryption_key)
    return _encryption_service
