"""
ClientSecretStore — Encrypted credential rows for a client.

Provides the request-facing API over the ``secrets`` table:
- ``create(user, client_id, key_name, value)`` — encrypt and insert a secret
- ``list_for_client(user, client_id)`` — fetch and decrypt a client's secrets
- ``delete(user, secret_id)`` — remove a secret row

Row-level authorization is enforced by the database; this layer only
requires that a caller identity is present.

Security Note:
    Never log plaintext or envelope values. Only log client ids, secret ids,
    key names and row counts.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from .crypto import SecretCodec
from .errors import UnauthorizedError

logger = logging.getLogger("clientdesk.vault")

_MAX_KEY_NAME_LENGTH = 255

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_INSERT_SECRET = """
INSERT INTO secrets (client_id, key_name, value)
VALUES ($1, $2, $3)
RETURNING id, client_id, key_name, value, created_at
"""

_SELECT_BY_CLIENT = """
SELECT id, client_id, key_name, value, created_at
FROM secrets
WHERE client_id = $1
ORDER BY created_at DESC
"""

_DELETE_SECRET = """
DELETE FROM secrets
WHERE id = $1
"""


class SecretRecord(BaseModel):
    """One row of the ``secrets`` table."""

    id: Any
    client_id: Any
    key_name: str
    value: str
    created_at: Optional[datetime] = None


def _deleted_count(status: Any) -> int:
    """Parse an asyncpg command status such as ``"DELETE 1"``."""
    try:
        return int(str(status).rsplit(" ", 1)[-1])
    except ValueError:
        return 0


class ClientSecretStore:
    """Secret rows encrypted with a SecretCodec.

    Each value is encrypted exactly once before insert and decrypted exactly
    once per row before it is returned. Codec errors are not caught here;
    they propagate to the request boundary.
    """

    def __init__(self, db_pool: Any, codec: SecretCodec):
        self._db = db_pool
        self._codec = codec

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _require_user(user: Any) -> None:
        if not user:
            raise UnauthorizedError()

    @staticmethod
    def _validate_fields(client_id: Any, key_name: str, value: str) -> None:
        """Validate a new secret.

        Raises:
            ValueError: If a field is missing or key_name is too long.
        """
        if not client_id or not key_name or not value:
            raise ValueError("Missing fields")
        if len(key_name) > _MAX_KEY_NAME_LENGTH:
            raise ValueError(
                f"key_name cannot exceed {_MAX_KEY_NAME_LENGTH} characters"
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create(
        self,
        user: Any,
        client_id: Any,
        key_name: str,
        value: str,
    ) -> SecretRecord:
        """Encrypt and insert a secret.

        Args:
            user: Authenticated caller identity.
            client_id: Owning client.
            key_name: Secret label (max 255 chars).
            value: Plaintext secret.

        Returns:
            The inserted row as stored (``value`` is the envelope).

        Raises:
            UnauthorizedError: If no caller identity is given.
            ValueError: If a field is missing or invalid.
            ConfigurationError: If the codec key is invalid.
        """
        self._require_user(user)
        self._validate_fields(client_id, key_name, value)

        envelope = self._codec.encrypt(value)

        async with self._db.acquire() as conn:
            row = await conn.fetchrow(
                _INSERT_SECRET, client_id, key_name, envelope,
            )

        logger.debug(
            "Secret created: client=%s key=%s", client_id, key_name,
        )
        return SecretRecord(**dict(row))

    async def list_for_client(
        self,
        user: Any,
        client_id: Any,
    ) -> list[SecretRecord]:
        """Return a client's secrets, newest first, with values decrypted.

        Raises:
            UnauthorizedError: If no caller identity is given.
            ConfigurationError: If the codec key is invalid.
            DecryptionError: If a stored value cannot be decrypted.
        """
        self._require_user(user)

        async with self._db.acquire() as conn:
            rows = await conn.fetch(_SELECT_BY_CLIENT, client_id)

        records = []
        for row in rows:
            data = dict(row)
            data["value"] = self._codec.decrypt(data["value"])
            records.append(SecretRecord(**data))

        logger.info(
            "Secrets loaded for client=%s: %d secret(s)", client_id, len(records),
        )
        return records

    async def delete(self, user: Any, secret_id: Any) -> bool:
        """Delete a secret row.

        Returns:
            True if a row was removed.

        Raises:
            UnauthorizedError: If no caller identity is given.
        """
        self._require_user(user)

        async with self._db.acquire() as conn:
            status = await conn.execute(_DELETE_SECRET, secret_id)

        deleted = _deleted_count(status) > 0
        logger.debug("Secret delete: id=%s deleted=%s", secret_id, deleted)
        return deleted
