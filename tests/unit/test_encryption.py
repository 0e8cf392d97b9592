"""Unit tests for account detail encryption."""

import pytest
from cryptography.fernet import Fernet

from app.utils.encryption import EncryptionService
from app.utils.exceptions import SecurityError


class TestEncryption:
    """Tests for encryption/decryption of payout accounts."""

    def test_encrypt_decrypt_roundtrip(self):
        """Encryption and decryption should be reversible."""
        key = Fernet.generate_key().decode()
        service = EncryptionService(key)

        original = "alipay:user@example.com"
        encrypted = service.encrypt(original)

        assert encrypted != original
        assert service.decrypt(encrypted) == original

    def test_encrypt_produces_different_output(self, encryption_service):
        """Same input encrypted twice should produce different outputs."""
        service = encryption_service

        first = service.encrypt("6222020200112233445")
        second = service.encrypt("6222020200112233445")

        assert first != second
        assert service.decrypt(first) == service.decrypt(second)

    def test_unicode_account_name(self, encryption_service):
        """Account holder names are usually Chinese."""
        service = encryption_service

        original = "张三 工商银行"
        assert service.decrypt(service.encrypt(original)) == original

    def test_invalid_ciphertext_raises(self, encryption_service):
        """Tampered data must not decrypt silently."""
        service = encryption_service

        with pytest.raises(SecurityError):
            service.decrypt("invalid_encrypted_data")

    def test_other_key_cannot_decrypt(self, encryption_service):
        """Data encrypted with one key is unreadable with another."""
        encrypted = encryption_service.encrypt("x")
        other = EncryptionService(Fernet.generate_key().decode())

        with pytest.raises(SecurityError):
            other.decrypt(encrypted)


class TestEncryptionEnvironment:
    """Missing keys are tolerated only outside production."""

    def test_production_requires_key(self):
        with pytest.raises(SecurityError):
            EncryptionService(None, environment="production")

    def test_production_rejects_invalid_key(self):
        with pytest.raises(SecurityError):
            EncryptionService("not-a-fernet-key", environment="production")

    def test_development_without_key_passes_through(self):
        service = EncryptionService(None, environment="development")

        assert not service.enabled
        assert service.encrypt("plain") == "plain"
        assert service.decrypt("plain") == "plain"

    def test_generate_key_is_usable(self):
        service = EncryptionService(EncryptionService.generate_key())

        assert service.enabled
        assert service.decrypt(service.encrypt("data")) == "data"
