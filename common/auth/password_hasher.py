"""
bcrypt password hashing.

Passwords are pre-hashed with SHA-256 before bcrypt so that inputs longer
than bcrypt's 72-byte limit stay fully significant. The resulting hash is
a single self-describing bcrypt string (algorithm tag, cost, salt, digest),
so verification needs no external metadata.

Example:
    hasher = PasswordHasher(rounds=12)

    stored = await hasher.hash_async("Pw1!2345")
    ok = await hasher.verify_async("Pw1!2345", stored)  # True
"""

import asyncio
import base64
import hashlib

import bcrypt as bcrypt_lib


DEFAULT_ROUNDS = 12


class PasswordHasher:
    """bcrypt hasher with SHA-256 pre-hashing."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        """
        Args:
            rounds: bcrypt cost factor (4-31)
        """
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self.rounds = rounds

    def _prehash_password(self, password: str) -> bytes:
        sha256_hash = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(sha256_hash)

    def hash(self, password: str) -> str:
        """Hash a password with a fresh salt."""
        salt = bcrypt_lib.gensalt(rounds=self.rounds)
        return bcrypt_lib.hashpw(self._prehash_password(password), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """
        Constant-time check of a password against a stored hash.

        Accepts both SHA-256 pre-hashed and legacy direct bcrypt hashes.
        Returns False for empty or structurally invalid hashes instead of
        raising, so a corrupt record reads the same as a wrong password.
        """
        if not hashed:
            return False
        hashed_bytes = hashed.encode("utf-8")

        try:
            prehashed_ok = bcrypt_lib.checkpw(self._prehash_password(password), hashed_bytes)
        except (ValueError, TypeError):
            return False

        # Legacy hashes written by clients that bcrypt the raw password.
        # Always checked, so right and wrong passwords cost the same.
        try:
            legacy_ok = bcrypt_lib.checkpw(password.encode("utf-8"), hashed_bytes)
        except ValueError:
            # Over 72 bytes, cannot be a legacy hash
            legacy_ok = False

        return prehashed_ok or legacy_ok

    async def hash_async(self, password: str) -> str:
        """Run ``hash`` in a worker thread."""
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, password: str, hashed: str) -> bool:
        """Run ``verify`` in a worker thread."""
        return await asyncio.to_thread(self.verify, password, hashed)
