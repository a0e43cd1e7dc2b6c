"""
Tests for ClientSecretStore.

A fake asyncpg-style pool stands in for the database.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from clientdesk.vault import (
    ClientSecretStore,
    ConfigurationError,
    DecryptionError,
    SecretCodec,
    SecretRecord,
    UnauthorizedError,
)

KEY = "01234567890123456789012345678901"
USER = {"id": "user-1", "email": "owner@example.com"}
CREATED = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)


class FakePool:
    """asyncpg-compatible pool yielding a single mocked connection."""

    def __init__(self, conn):
        self.conn = conn

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


# --- Test Fixtures ---

@pytest.fixture
def codec():
    return SecretCodec(KEY)


@pytest.fixture
def conn():
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock()
    conn.execute = AsyncMock(return_value="DELETE 1")
    return conn


@pytest.fixture
def store(conn, codec):
    return ClientSecretStore(FakePool(conn), codec)


def _row(secret_id, value, created_at=CREATED, key_name="api_key"):
    return {
        "id": secret_id,
        "client_id": "client-7",
        "key_name": key_name,
        "value": value,
        "created_at": created_at,
    }


# --- create ---

class TestCreate:
    """Tests for encrypting and inserting a secret."""

    @pytest.mark.asyncio
    async def test_value_is_encrypted_before_insert(self, store, conn, codec):
        """Test only the envelope reaches the database."""
        async def _insert(sql, client_id, key_name, value):
            return _row(1, value, key_name=key_name)

        conn.fetchrow.side_effect = _insert

        record = await store.create(USER, "client-7", "api_key", "hunter2")

        assert isinstance(record, SecretRecord)
        sql, client_id, key_name, stored = conn.fetchrow.await_args.args
        assert "INSERT INTO secrets" in sql
        assert client_id == "client-7"
        assert key_name == "api_key"
        assert stored != "hunter2"
        assert codec.decrypt(stored) == "hunter2"
        assert record.value == stored

    @pytest.mark.asyncio
    async def test_requires_user(self, store, conn):
        with pytest.raises(UnauthorizedError):
            await store.create(None, "client-7", "api_key", "hunter2")
        conn.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("client_id,key_name,value", [
        ("", "api_key", "hunter2"),
        ("client-7", "", "hunter2"),
        ("client-7", "api_key", ""),
    ])
    async def test_missing_fields(self, store, conn, client_id, key_name, value):
        with pytest.raises(ValueError, match="Missing fields"):
            await store.create(USER, client_id, key_name, value)
        conn.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_key_name_too_long(self, store):
        with pytest.raises(ValueError):
            await store.create(USER, "client-7", "k" * 256, "hunter2")

    @pytest.mark.asyncio
    async def test_invalid_key_aborts_before_insert(self, conn):
        store = ClientSecretStore(FakePool(conn), SecretCodec(None))
        with pytest.raises(ConfigurationError):
            await store.create(USER, "client-7", "api_key", "hunter2")
        conn.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_value_not_logged(self, store, conn, caplog):
        async def _insert(sql, client_id, key_name, value):
            return _row(1, value)

        conn.fetchrow.side_effect = _insert
        with caplog.at_level("DEBUG", logger="clientdesk.vault"):
            record = await store.create(USER, "client-7", "api_key", "hunter2")
        assert "hunter2" not in caplog.text
        assert record.value not in caplog.text


# --- list_for_client ---

class TestListForClient:
    """Tests for reading and decrypting a client's secrets."""

    @pytest.mark.asyncio
    async def test_values_are_decrypted(self, store, conn, codec):
        conn.fetch.return_value = [
            _row(2, codec.encrypt("second"), key_name="token"),
            _row(1, codec.encrypt("first")),
        ]

        records = await store.list_for_client(USER, "client-7")

        assert [r.value for r in records] == ["second", "first"]
        assert [r.key_name for r in records] == ["token", "api_key"]
        sql, client_id = conn.fetch.await_args.args
        assert "ORDER BY created_at DESC" in sql
        assert client_id == "client-7"

    @pytest.mark.asyncio
    async def test_legacy_values_pass_through(self, store, conn):
        conn.fetch.return_value = [_row(1, "stored-before-encryption")]
        records = await store.list_for_client(USER, "client-7")
        assert records[0].value == "stored-before-encryption"

    @pytest.mark.asyncio
    async def test_empty(self, store):
        assert await store.list_for_client(USER, "client-7") == []

    @pytest.mark.asyncio
    async def test_corrupt_row_propagates(self, store, conn):
        conn.fetch.return_value = [_row(1, "00112233445566778899aabbccddeeff:zz")]
        with pytest.raises(DecryptionError):
            await store.list_for_client(USER, "client-7")

    @pytest.mark.asyncio
    async def test_requires_user(self, store, conn):
        with pytest.raises(UnauthorizedError):
            await store.list_for_client("", "client-7")
        conn.fetch.assert_not_awaited()


# --- delete ---

class TestDelete:
    """Tests for removing a secret."""

    @pytest.mark.asyncio
    async def test_delete(self, store, conn):
        assert await store.delete(USER, 42) is True
        sql, secret_id = conn.execute.await_args.args
        assert "DELETE FROM secrets" in sql
        assert secret_id == 42

    @pytest.mark.asyncio
    async def test_delete_missing_row(self, store, conn):
        conn.execute.return_value = "DELETE 0"
        assert await store.delete(USER, 42) is False

    @pytest.mark.asyncio
    async def test_requires_user(self, store, conn):
        with pytest.raises(UnauthorizedError):
            await store.delete(None, 42)
        conn.execute.assert_not_awaited()
