"""Shared test fixtures for credentials tests."""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Optional, Set, Tuple

from common.auth import JWTTokenCodec, PasswordHasher
from common.kv import InMemoryKV, KVError
from credentials.service import CredentialService
from credentials.user_store import UserRecordStore


TEST_SECRET = "test-secret-key"


class FakeClock:
    """Settable UTC clock shared by the codec and the service."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FlakyKV(InMemoryKV):
    """
    InMemoryKV that raises KVError for chosen (operation, key-prefix) pairs.

    Example:
        kv.fail_on.add(("set", "user:id:"))
    """

    def __init__(self):
        super().__init__()
        self.fail_on: Set[Tuple[str, str]] = set()

    def _check(self, op: str, key: str) -> None:
        for failing_op, prefix in self.fail_on:
            if failing_op == op and key.startswith(prefix):
                raise KVError(f"FlakyKV.{op}", "injected failure", key=key, status_code=503)

    async def get(self, key):
        self._check("get", key)
        return await super().get(key)

    async def set(self, key, value, ttl_seconds=None, metadata=None):
        self._check("set", key)
        await super().set(key, value, ttl_seconds, metadata)

    async def delete(self, key):
        self._check("delete", key)
        await super().delete(key)

    async def list_keys(self, prefix="", limit=None):
        self._check("list", prefix)
        return await super().list_keys(prefix, limit)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv():
    return FlakyKV()


@pytest.fixture
def hasher():
    # Minimum cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def codec(clock):
    return JWTTokenCodec(secret=TEST_SECRET, clock=clock)


@pytest.fixture
def store(kv):
    return UserRecordStore(kv)


@pytest.fixture
def service(store, hasher, codec, clock):
    return CredentialService(
        store=store,
        hasher=hasher,
        codec=codec,
        token_lifetime=timedelta(hours=24),
        clock=clock,
    )
