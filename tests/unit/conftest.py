"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Fresh Fernet key
- EncryptionService bound to that key
"""

import pytest
from cryptography.fernet import Fernet

from app.utils.encryption import EncryptionService


@pytest.fixture
def fernet_key():
    """
    Generate a new Fernet key.

    Returns:
        str: Base64-encoded key
    """
    return Fernet.generate_key().decode()


@pytest.fixture
def encryption_service(fernet_key):
    """
    Create EncryptionService with a fresh key.

    Args:
        fernet_key: Generated key

    Returns:
        EncryptionService: Enabled service for testing
    """
    return EncryptionService(fernet_key)
