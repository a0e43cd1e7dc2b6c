"""Vault — Encrypted storage for client secrets.

Security Note (Threat Model):
    Envelopes are AES-256-CBC without an integrity tag. A party able to
    write to the secrets table can alter ciphertext undetected, and values
    without a ":" are returned unverified as legacy plaintext.
    Switching to authenticated encryption changes the stored format and is
    out of scope.
"""

from .errors import (
    VaultError,
    ConfigurationError,
    DecryptionError,
    UnauthorizedError,
)
from .config import CodecConfig, load_encryption_key, generate_encryption_key
from .crypto import SecretCodec, CodecResult, format_envelope, parse_envelope
from .secret_store import ClientSecretStore, SecretRecord

__all__ = [
    "SecretCodec",
    "CodecResult",
    "CodecConfig",
    "ClientSecretStore",
    "SecretRecord",
    "VaultError",
    "ConfigurationError",
    "DecryptionError",
    "UnauthorizedError",
    "load_encryption_key",
    "generate_encryption_key",
    "format_envelope",
    "parse_envelope",
]
