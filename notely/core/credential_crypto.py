"""Encryption for per-user provider credentials at rest."""

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from notely.core.config import Settings, get_settings


class CredentialDecryptionError(ValueError):
    """Stored credential could not be decrypted with the configured key."""


def _fernet(settings: Settings | None = None) -> Fernet:
    settings = settings or get_settings()
    key = settings.API_KEY_ENCRYPTION_KEY
    if not key:
        raise ValueError("API_KEY_ENCRYPTION_KEY not configured")
    # Derive a consistent 32-byte key via SHA-256
    return Fernet(base64.urlsafe_b64encode(hashlib.sha256(key.encode()).digest()))


def encrypt_api_key(api_key: str, settings: Settings | None = None) -> str:
    """Encrypt a provider key for storage in ``users.ai_api_key``."""
    return _fernet(settings).encrypt(api_key.encode()).decode()


def decrypt_api_key(encrypted: str, settings: Settings | None = None) -> str:
    """Decrypt a stored provider key."""
    try:
        return _fernet(settings).decrypt(encrypted.encode()).decode()
    except InvalidToken as e:
        raise CredentialDecryptionError("Stored API key could not be decrypted") from e
