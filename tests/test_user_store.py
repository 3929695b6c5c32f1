"""Unit tests for UserRecordStore (dual-key layout over KV)."""

import json
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from common.kv import KVError
from common.utils.exceptions import (
    StorageFailureError,
    StorageInconsistentError,
    UserNotFoundError,
)
from credentials.models import UserRecord
from credentials.user_store import UserRecordStore, email_key, id_key


@pytest.fixture
def record():
    now = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
    return UserRecord(
        id="3f1c2f0e-8a9b-4f63-9c55-2d3f2e1a7b10",
        email="a@x.com",
        password_hash="$2b$04$abcdefghijklmnopqrstuuABCDEFGHIJKLMNOPQRSTUVWXYZ01234",
        created_at=now,
        updated_at=now,
    )


class TestKeys:
    def test_prefixes_keep_namespaces_apart(self):
        assert email_key("a@x.com") == "user:email:a@x.com"
        assert id_key("a@x.com") == "user:id:a@x.com"
        assert email_key("x") != id_key("x")


class TestCreate:
    @pytest.mark.asyncio
    async def test_writes_record_and_index(self, store, kv, record):
        await store.create(record)

        stored = json.loads(await kv.get("user:email:a@x.com"))
        assert stored["id"] == record.id
        assert stored["email"] == "a@x.com"
        assert stored["password_hash"] == record.password_hash
        assert "created_at" in stored and "updated_at" in stored
        assert await kv.get(f"user:id:{record.id}") == b"a@x.com"

    @pytest.mark.asyncio
    async def test_record_write_failure_is_storage_failure(self, store, kv, record):
        kv.fail_on.add(("set", "user:email:"))

        with pytest.raises(StorageFailureError):
            await store.create(record)
        assert await kv.list_keys() == []

    @pytest.mark.asyncio
    async def test_index_write_failure_is_inconsistent(self, store, kv, record):
        kv.fail_on.add(("set", "user:id:"))

        with pytest.raises(StorageInconsistentError) as exc_info:
            await store.create(record)
        assert exc_info.value.op == "UserRecordStore.create"
        assert isinstance(exc_info.value.cause, KVError)

        # Readable by email, not by id
        assert (await store.get_by_email("a@x.com")).id == record.id
        with pytest.raises(UserNotFoundError):
            await store.get_by_id(record.id)


class TestGet:
    @pytest.mark.asyncio
    async def test_get_by_email_and_id(self, store, record):
        await store.create(record)
        assert await store.get_by_email("a@x.com") == record
        assert await store.get_by_id(record.id) == record

    @pytest.mark.asyncio
    async def test_email_is_case_sensitive(self, store, record):
        await store.create(record)
        with pytest.raises(UserNotFoundError):
            await store.get_by_email("A@X.com")

    @pytest.mark.asyncio
    async def test_missing_email(self, store):
        with pytest.raises(UserNotFoundError):
            await store.get_by_email("nobody@x.com")

    @pytest.mark.asyncio
    async def test_missing_id(self, store):
        with pytest.raises(UserNotFoundError):
            await store.get_by_id("no-such-id")

    @pytest.mark.asyncio
    async def test_dangling_index_is_not_found(self, store, kv, record):
        await store.create(record)
        await kv.delete("user:email:a@x.com")

        with pytest.raises(UserNotFoundError) as exc_info:
            await store.get_by_id(record.id)
        assert exc_info.value.op == "UserRecordStore.get_by_id"

    @pytest.mark.asyncio
    async def test_corrupt_record_is_storage_failure(self, store, kv):
        await kv.set("user:email:a@x.com", b"{not json")
        with pytest.raises(StorageFailureError):
            await store.get_by_email("a@x.com")

    @pytest.mark.asyncio
    async def test_read_failure_is_storage_failure_not_missing(self, store, kv):
        kv.fail_on.add(("get", "user:email:"))
        with pytest.raises(StorageFailureError):
            await store.get_by_email("a@x.com")

    @pytest.mark.asyncio
    async def test_reads_record_written_by_other_clients(self, kv, store):
        await kv.set("user:email:b@x.com", json.dumps({
            "id": "id-b",
            "email": "b@x.com",
            "password_hash": "$2a$10$hash",
            "created_at": "2025-06-01T08:30:00.123456Z",
            "updated_at": "2025-06-01T08:30:00.123456Z",
        }).encode())
        await kv.set("user:id:id-b", b"b@x.com")

        user = await store.get_by_id("id-b")
        assert user.email == "b@x.com"
        assert user.created_at.tzinfo is not None


class TestDelete:
    @pytest.mark.asyncio
    async def test_removes_both_keys(self, store, kv, record):
        await store.create(record)

        deleted = await store.delete("a@x.com")

        assert deleted.id == record.id
        assert await kv.list_keys() == []

    @pytest.mark.asyncio
    async def test_missing_user(self, store):
        with pytest.raises(UserNotFoundError):
            await store.delete("nobody@x.com")

    @pytest.mark.asyncio
    async def test_record_delete_failure_keeps_both(self, store, kv, record):
        await store.create(record)
        kv.fail_on.add(("delete", "user:email:"))

        with pytest.raises(StorageFailureError):
            await store.delete("a@x.com")
        assert len(await kv.list_keys()) == 2

    @pytest.mark.asyncio
    async def test_index_delete_failure_is_inconsistent(self, store, kv, record):
        await store.create(record)
        kv.fail_on.add(("delete", "user:id:"))

        with pytest.raises(StorageInconsistentError):
            await store.delete("a@x.com")
        assert [k.name for k in await kv.list_keys()] == [f"user:id:{record.id}"]

    @pytest.mark.asyncio
    async def test_no_retry_on_failure(self, record):
        kv = AsyncMock()
        kv.get.return_value = record.to_json_bytes()
        kv.delete.side_effect = KVError("kv.delete", "boom")
        store = UserRecordStore(kv)

        with pytest.raises(StorageFailureError):
            await store.delete("a@x.com")
        kv.delete.assert_awaited_once_with("user:email:a@x.com")


class TestListEmails:
    @pytest.mark.asyncio
    async def test_lists_only_email_entries(self, store, record):
        await store.create(record)
        await store.create(record.model_copy(update={"id": "id-2", "email": "b@x.com"}))

        assert await store.list_emails() == ["a@x.com", "b@x.com"]
        assert await store.list_emails(limit=1) == ["a@x.com"]

    @pytest.mark.asyncio
    async def test_list_failure(self, store, kv):
        kv.fail_on.add(("list", "user:email:"))
        with pytest.raises(StorageFailureError):
            await store.list_emails()
