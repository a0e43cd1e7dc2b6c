"""
Vault Crypto Core — Secret codec and envelope serialization.

Encrypts client secrets for storage in the ``secrets`` table:
    AES-256-CBC, PKCS#7 padding, random 128-bit IV per call
    envelope = hex(iv) + ":" + hex(ciphertext)

Values without a ":" are legacy rows stored before encryption was enabled;
``decrypt`` returns them unchanged.

Security Note:
    Never log plaintext, key, IV or ciphertext values.
    CBC gives confidentiality only; envelopes carry no integrity tag.
"""
import os
import binascii
import logging
from typing import Optional, Union

from pydantic import BaseModel
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .config import CodecConfig, DEFAULT_KEY_ENV, validate_key
from .errors import ConfigurationError, DecryptionError, VaultError

logger = logging.getLogger("clientdesk.vault")

IV_SIZE = 16  # AES block size, bytes
BLOCK_BITS = 128
SEPARATOR = ":"


# ---------------------------------------------------------------------------
# Envelope serialization
# ---------------------------------------------------------------------------

def format_envelope(iv: bytes, ciphertext: bytes) -> str:
    """Serialize IV and ciphertext as ``hex(iv):hex(ciphertext)``."""
    return iv.hex() + SEPARATOR + ciphertext.hex()


def is_envelope(value: str) -> bool:
    """True if ``value`` would be decrypted rather than passed through."""
    return SEPARATOR in value


def parse_envelope(envelope: str) -> tuple[bytes, bytes]:
    """Split an envelope into raw (iv, ciphertext) bytes.

    Splits on the first separator only; a second ":" stays in the
    ciphertext segment and fails hex decoding.

    Args:
        envelope: ``<iv hex>:<ciphertext hex>`` string.

    Returns:
        Tuple of (iv, ciphertext).

    Raises:
        DecryptionError: On bad hex, wrong IV length or misaligned ciphertext.
    """
    iv_hex, _, ct_hex = envelope.partition(SEPARATOR)
    try:
        iv = binascii.unhexlify(iv_hex)
        ciphertext = binascii.unhexlify(ct_hex)
    except (binascii.Error, ValueError):
        raise DecryptionError("malformed envelope") from None
    if len(iv) != IV_SIZE:
        raise DecryptionError("malformed envelope")
    if not ciphertext or len(ciphertext) % IV_SIZE:
        raise DecryptionError("malformed envelope")
    return iv, ciphertext


# ---------------------------------------------------------------------------
# Result variant
# ---------------------------------------------------------------------------

class CodecResult(BaseModel):
    """Outcome of ``try_encrypt``/``try_decrypt``: a value or a vault error."""

    value: Optional[str] = None
    error: Optional[VaultError] = None

    model_config = {"arbitrary_types_allowed": True}

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the value or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

class SecretCodec:
    """AES-256-CBC codec for client secrets.

    The key is injected at construction and validated on every call, so a
    codec built with a missing or wrong-length key fails each operation with
    ``ConfigurationError`` before any cipher work. Holds no other state;
    safe to share across concurrent requests.
    """

    def __init__(self, key: Union[str, bytes, None]):
        self._key = key

    def __repr__(self) -> str:
        return f"<SecretCodec key={'set' if self._key else 'missing'}>"

    @classmethod
    def from_config(cls, config: CodecConfig) -> "SecretCodec":
        return cls(config.encryption_key)

    @classmethod
    def from_env(cls, env_var: str = DEFAULT_KEY_ENV) -> "SecretCodec":
        """Build a codec from the key in ``env_var``."""
        return cls.from_config(CodecConfig.from_env(env_var))

    @staticmethod
    def _cipher(key: bytes, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(key), modes.CBC(iv))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a secret value into an envelope.

        Args:
            plaintext: Secret text; encoded as UTF-8.

        Returns:
            ``hex(iv):hex(ciphertext)`` envelope.

        Raises:
            ConfigurationError: If the key is missing or invalid.
        """
        key = validate_key(self._key)
        iv = os.urandom(IV_SIZE)
        padder = padding.PKCS7(BLOCK_BITS).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = self._cipher(key, iv).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        logger.debug("Encrypted secret into %d cipher block(s)", len(ciphertext) // IV_SIZE)
        return format_envelope(iv, ciphertext)

    def decrypt(self, envelope: str) -> str:
        """Decrypt an envelope back into the secret value.

        Input without a ":" is a legacy unencrypted value and is returned
        unchanged.

        Args:
            envelope: Value read from the ``secrets`` table.

        Returns:
            Decrypted plaintext.

        Raises:
            ConfigurationError: If the key is missing or invalid.
            DecryptionError: If the envelope is malformed or does not decrypt.
        """
        key = validate_key(self._key)
        if not is_envelope(envelope):
            logger.debug("Value is not an envelope; returning it unchanged")
            return envelope
        iv, ciphertext = parse_envelope(envelope)
        decryptor = self._cipher(key, iv).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_BITS).unpadder()
        try:
            data = unpadder.update(padded) + unpadder.finalize()
        except ValueError:
            raise DecryptionError() from None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            raise DecryptionError() from None

    def try_encrypt(self, plaintext: str) -> CodecResult:
        """``encrypt`` returning a CodecResult instead of raising vault errors."""
        try:
            return CodecResult(value=self.encrypt(plaintext))
        except (ConfigurationError, DecryptionError) as err:
            return CodecResult(error=err)

    def try_decrypt(self, envelope: str) -> CodecResult:
        """``decrypt`` returning a CodecResult instead of raising vault errors."""
        try:
            return CodecResult(value=self.decrypt(envelope))
        except (ConfigurationError, DecryptionError) as err:
            return CodecResult(error=err)
