"""Unit tests for PasswordHasher."""

import bcrypt
import pytest
from unittest.mock import patch

from common.auth.password_hasher import PasswordHasher, bcrypt_lib


class TestHash:
    def test_produces_bcrypt_string(self, hasher):
        hashed = hasher.hash("Pw1!2345")
        assert hashed.startswith("$2b$04$")
        assert "Pw1!2345" not in hashed

    def test_same_password_gets_fresh_salt(self, hasher):
        assert hasher.hash("Pw1!2345") != hasher.hash("Pw1!2345")

    def test_rejects_out_of_range_rounds(self):
        with pytest.raises(ValueError):
            PasswordHasher(rounds=3)
        with pytest.raises(ValueError):
            PasswordHasher(rounds=32)


class TestVerify:
    @pytest.mark.parametrize("password", ["a", "Pw1!2345", "pässwörd ✓", "x" * 200])
    def test_accepts_matching_password(self, hasher, password):
        assert hasher.verify(password, hasher.hash(password)) is True

    def test_rejects_other_password(self, hasher):
        hashed = hasher.hash("Pw1!2345")
        assert hasher.verify("Pw1!2346", hashed) is False
        assert hasher.verify("pw1!2345", hashed) is False

    def test_long_passwords_differ_past_72_bytes(self, hasher):
        base = "x" * 80
        hashed = hasher.hash(base + "a")
        assert hasher.verify(base + "b", hashed) is False

    def test_accepts_legacy_direct_bcrypt_hash(self, hasher):
        legacy = bcrypt.hashpw(b"Pw1!2345", bcrypt.gensalt(rounds=4)).decode("utf-8")
        assert hasher.verify("Pw1!2345", legacy) is True
        assert hasher.verify("wrong", legacy) is False

    @pytest.mark.parametrize("password", ["Pw1!2345", "wrong"])
    def test_same_bcrypt_work_for_right_and_wrong_password(self, hasher, password):
        hashed = hasher.hash("Pw1!2345")
        with patch.object(bcrypt_lib, "checkpw", wraps=bcrypt.checkpw) as checkpw:
            hasher.verify(password, hashed)
        assert checkpw.call_count == 2

    @pytest.mark.parametrize("bad_hash", ["", "not-a-hash", "$2b$04$short"])
    def test_invalid_hash_returns_false(self, hasher, bad_hash):
        assert hasher.verify("Pw1!2345", bad_hash) is False


class TestAsyncWrappers:
    @pytest.mark.asyncio
    async def test_round_trip_in_worker_thread(self, hasher):
        hashed = await hasher.hash_async("Pw1!2345")
        assert await hasher.verify_async("Pw1!2345", hashed) is True
        assert await hasher.verify_async("wrong", hashed) is False
