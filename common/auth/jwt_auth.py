"""
JWT session token codec.

Issues and verifies compact HS256 tokens carrying a user's identity
snapshot. Tokens are self-verifying: there is no server-side session table
and no revocation list, so validity is decided by the signature and the
``nbf`` / ``exp`` claims alone.

Only HS256 is accepted. The header algorithm is checked before the
signature, so tokens declaring ``none`` or any other algorithm are rejected
even if they would otherwise verify.

Example:
    codec = JWTTokenCodec(secret="your-secret-key")

    claims = SessionClaims.for_user(user_id, email, lifetime=timedelta(hours=24))
    token = codec.issue(claims)

    claims = codec.verify(token)
    print(claims.user_id)
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from jose import jws, jwt
from jose.exceptions import JOSEError

from common.utils.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenFailure(str, Enum):
    """Why a token was rejected. Diagnostic only."""

    MALFORMED = "malformed"
    ALGORITHM_MISMATCH = "algorithm_mismatch"
    SIGNATURE_MISMATCH = "signature_mismatch"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"


@dataclass(frozen=True)
class SessionClaims:
    """Identity assertion embedded in a token. Never persisted."""

    user_id: str
    email: str
    issued_at: datetime
    not_before: datetime
    expires_at: datetime

    @classmethod
    def for_user(
        cls,
        user_id: str,
        email: str,
        lifetime: timedelta,
        now: Optional[datetime] = None,
    ) -> "SessionClaims":
        """
        Build claims valid from ``now`` for ``lifetime``.

        Timestamps are truncated to whole seconds, the resolution of JWT
        numeric dates, so ``expires_at`` matches the encoded ``exp``.
        """
        now = (now or utc_now()).replace(microsecond=0)
        return cls(
            user_id=user_id,
            email=email,
            issued_at=now,
            not_before=now,
            expires_at=now + lifetime,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "iat": int(self.issued_at.timestamp()),
            "nbf": int(self.not_before.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SessionClaims":
        """
        Rebuild claims from a decoded payload.

        Raises:
            ValueError: If a claim is missing or has the wrong type
        """
        for name in ("user_id", "email"):
            if not isinstance(payload.get(name), str) or not payload[name]:
                raise ValueError(f"claim '{name}' missing or not a string")
        times = {}
        for name in ("iat", "nbf", "exp"):
            value = payload.get(name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"claim '{name}' missing or not numeric")
            try:
                times[name] = datetime.fromtimestamp(value, tz=timezone.utc)
            except (OverflowError, OSError) as e:
                raise ValueError(f"claim '{name}' out of range") from e
        return cls(
            user_id=payload["user_id"],
            email=payload["email"],
            issued_at=times["iat"],
            not_before=times["nbf"],
            expires_at=times["exp"],
        )


class JWTTokenCodec:
    """
    HS256 token issuer and verifier.

    The codec performs the ``nbf`` / ``exp`` checks itself against an
    injectable clock rather than delegating them to the JWT library.
    """

    def __init__(
        self,
        secret: Union[str, bytes],
        clock: Clock = utc_now,
    ):
        """
        Initialize the codec.

        Args:
            secret: Shared HMAC signing secret (keep this secure!)
            clock: Returns the current aware UTC time
        """
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._clock = clock

    def issue(self, claims: SessionClaims) -> str:
        """Sign ``claims`` into a compact token."""
        return jwt.encode(claims.to_payload(), self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> SessionClaims:
        """
        Verify a token and return its claims.

        Raises:
            InvalidTokenError: Token is malformed, declares another
                algorithm, has a bad signature, is not yet valid or expired
        """
        op = "JWTTokenCodec.verify"

        try:
            header = jws.get_unverified_header(token)
            raw_payload = jws.get_unverified_claims(token)
        except (JOSEError, AttributeError, TypeError) as e:
            raise self._reject(op, TokenFailure.MALFORMED, e)

        if header.get("alg") != ALGORITHM:
            raise self._reject(op, TokenFailure.ALGORITHM_MISMATCH)

        try:
            jws.verify(token, self._secret, algorithms=[ALGORITHM])
        except JOSEError as e:
            raise self._reject(op, TokenFailure.SIGNATURE_MISMATCH, e)

        try:
            payload = json.loads(raw_payload)
            if not isinstance(payload, dict):
                raise ValueError("payload is not a JSON object")
            claims = SessionClaims.from_payload(payload)
        except ValueError as e:
            raise self._reject(op, TokenFailure.MALFORMED, e)

        now = self._clock()
        if now < claims.not_before:
            raise self._reject(op, TokenFailure.NOT_YET_VALID)
        if now >= claims.expires_at:
            raise self._reject(op, TokenFailure.EXPIRED)

        return claims

    @staticmethod
    def _reject(
        op: str,
        reason: TokenFailure,
        cause: Optional[BaseException] = None,
    ) -> InvalidTokenError:
        logger.debug(f"Token rejected: {reason.value}")
        return InvalidTokenError(op, reason=reason, cause=cause)
