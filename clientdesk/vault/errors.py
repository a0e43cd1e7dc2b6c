"""
Vault Errors — Exception taxonomy for the secret codec and store.

Security Note:
    Messages are fixed strings. Never interpolate key material, IVs,
    ciphertext or plaintext into an error message.
"""


class VaultError(Exception):
    """Base class for every vault failure."""


class ConfigurationError(VaultError):
    """The encryption key is missing or is not exactly 32 bytes.

    Retrying without fixing the configuration always fails the same way.
    """

    def __init__(self, message: str = "invalid or missing encryption key"):
        super().__init__(message)


class DecryptionError(VaultError):
    """An envelope could not be decrypted (malformed, corrupted or tampered)."""

    def __init__(self, message: str = "unable to decrypt secret"):
        super().__init__(message)


class UnauthorizedError(VaultError):
    """A store operation was requested without an authenticated caller."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)
