"""
Vault Configuration — Encryption key loading and validated settings.

Reads the codec key from an environment variable:
    ENCRYPTION_KEY = <32-character string>

The key is used as-is (no derivation), so its UTF-8 encoding must be
exactly 32 bytes for AES-256.

Security Note:
    Never log key material. Only log whether a key was found and its length.
"""
import os
import secrets
import logging
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from .errors import ConfigurationError

logger = logging.getLogger("clientdesk.vault")

KEY_LENGTH = 32  # AES-256
DEFAULT_KEY_ENV = "ENCRYPTION_KEY"


def load_encryption_key(env_var: str = DEFAULT_KEY_ENV) -> Optional[str]:
    """Read the raw encryption key from the environment.

    Args:
        env_var: Name of the environment variable holding the key.

    Returns:
        The key string, or None if the variable is not set.
    """
    key = os.environ.get(env_var)
    if key is None:
        logger.debug("Encryption key %s is not set", env_var)
    else:
        logger.debug("Loaded encryption key %s (%d chars)", env_var, len(key))
    return key


def validate_key(key: Union[str, bytes, None]) -> bytes:
    """Return the raw 32 key bytes or fail.

    A ``str`` key must be 32 characters and encode to 32 UTF-8 bytes;
    a ``bytes`` key must be 32 bytes long.

    Raises:
        ConfigurationError: If the key is missing or has the wrong length.
    """
    if not key:
        raise ConfigurationError()
    if isinstance(key, str):
        if len(key) != KEY_LENGTH:
            raise ConfigurationError()
        key = key.encode("utf-8")
    if not isinstance(key, bytes) or len(key) != KEY_LENGTH:
        raise ConfigurationError()
    return key


def generate_encryption_key() -> str:
    """Generate a random 32-character key suitable for ENCRYPTION_KEY.

    This is a utility for operators to generate new keys.

    Returns:
        32 lowercase hex characters (16 random bytes).
    """
    return secrets.token_hex(KEY_LENGTH // 2)


class CodecConfig(BaseModel):
    """Codec configuration.

    The key is not validated on construction; ``key_bytes()`` validates
    it on every use.
    """

    encryption_key: Optional[str] = Field(default=None, repr=False)
    env_var: str = Field(default=DEFAULT_KEY_ENV)

    @field_validator("env_var")
    @classmethod
    def validate_env_var(cls, v: str) -> str:
        """Environment variable name cannot be empty."""
        if not v or not v.strip():
            raise ValueError("env_var cannot be empty")
        return v

    def key_bytes(self) -> bytes:
        """Validated key bytes.

        Raises:
            ConfigurationError: If the key is missing or has the wrong length.
        """
        return validate_key(self.encryption_key)

    @property
    def is_valid(self) -> bool:
        try:
            self.key_bytes()
        except ConfigurationError:
            return False
        return True

    @classmethod
    def from_env(cls, env_var: str = DEFAULT_KEY_ENV) -> "CodecConfig":
        """Create CodecConfig by loading the key from environment.

        Returns:
            Populated CodecConfig instance (possibly holding no key).
        """
        return cls(
            encryption_key=load_encryption_key(env_var),
            env_var=env_var,
        )
