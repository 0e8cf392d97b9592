"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.business_constants import (
    DEFAULT_INVITE_BASE_URL,
    MAX_PENDING_WITHDRAWALS,
    MAX_REFERRAL_CHAIN_DEPTH,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Security
    encryption_key: str | None = None

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/distribution.log"

    # Distribution
    invite_base_url: str = Field(
        default=DEFAULT_INVITE_BASE_URL,
        description="Base URL used for invite links, QR codes and posters"
    )
    referral_max_depth: int = Field(
        default=MAX_REFERRAL_CHAIN_DEPTH,
        gt=0,
        le=1000,
        description="Maximum number of ancestors walked when approving a distributor"
    )
    withdrawal_max_pending: int = Field(
        default=MAX_PENDING_WITHDRAWALS,
        gt=0,
        description="Maximum unfinished withdrawals per user"
    )
    settlement_batch_size: int = Field(
        default=500,
        gt=0,
        description="Maximum commissions settled per job run"
    )
    job_max_retries: int = Field(default=3, ge=0)
    job_min_backoff_ms: int = Field(default=1000, gt=0)
    job_max_backoff_ms: int = Field(default=60000, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )

            if not self.encryption_key:
                raise ValueError(
                    "ENCRYPTION_KEY is required in production environment. "
                    "Withdrawal account details are stored encrypted. "
                    "Generate a key with: python -c 'from cryptography.fernet import Fernet; "
                    "print(Fernet.generate_key().decode())'"
                )

            if self.database_url.startswith('sqlite'):
                logger.warning(
                    'DATABASE_URL points to SQLite in production. '
                    'Conditional status updates rely on row-level locking.'
                )

        return self

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith((
            'postgresql://',
            'postgresql+asyncpg://',
            'sqlite+aiosqlite://',
        )):
            raise ValueError(
                'DATABASE_URL must start with postgresql://, '
                'postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        if v.startswith('postgresql://'):
            return v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    @field_validator('invite_base_url')
    @classmethod
    def validate_invite_base_url(cls, v: str) -> str:
        """Strip trailing slash so links can be joined safely."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('INVITE_BASE_URL must be an http(s) URL')
        return v.rstrip('/')


# Global settings instance
settings = Settings()
