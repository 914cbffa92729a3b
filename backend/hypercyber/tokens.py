"""Issuing and verifying the signed bearer tokens handed out at login."""
from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from .errors import InvalidToken

ALGORITHM = "HS256"
ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
REFRESH_TOKEN_TTL = timedelta(days=7)


@dataclass(frozen=True)
class TokenClaims:
    """Claims carried by every token this service issues."""

    user_id: uuid.UUID
    email: str
    expires_at: datetime
    token_type: str


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """HS256 token issuer bound to one shared secret and an injectable clock.

    Access and refresh tokens share the secret and claim shape; the
    ``token_type`` claim is what keeps one from standing in for the other.
    """

    def __init__(
        self,
        secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta = REFRESH_TOKEN_TTL,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._secret = secret
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl
        self._clock = clock

    def issue_access_token(self, user_id: uuid.UUID, email: str) -> str:
        return self._encode(user_id, email, self._access_ttl, ACCESS_TOKEN)

    def issue_refresh_token(self, user_id: uuid.UUID, email: str) -> str:
        return self._encode(user_id, email, self._refresh_ttl, REFRESH_TOKEN)

    def verify(self, token: str, expected_type: str = ACCESS_TOKEN) -> TokenClaims:
        """Check signature, expiry and token type; raise InvalidToken otherwise."""

        try:
            payload: Dict[str, Any] = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False, "require": ["exp", "user_id", "email"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidToken(str(exc)) from exc

        # Expiry is checked against our clock rather than PyJWT's wall clock.
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        if self._clock() >= expires_at:
            raise InvalidToken("Token has expired")

        token_type = payload.get("token_type")
        if token_type != expected_type:
            raise InvalidToken(f"Expected a {expected_type} token")

        try:
            user_id = uuid.UUID(str(payload["user_id"]))
        except ValueError as exc:
            raise InvalidToken("Malformed user_id claim") from exc

        return TokenClaims(
            user_id=user_id,
            email=str(payload["email"]),
            expires_at=expires_at,
            token_type=token_type,
        )

    def _encode(self, user_id: uuid.UUID, email: str, ttl: timedelta, token_type: str) -> str:
        expires_at = self._clock() + ttl
        return jwt.encode(
            {
                "user_id": str(user_id),
                "email": email,
                "exp": int(expires_at.timestamp()),
                "token_type": token_type,
            },
            self._secret,
            algorithm=ALGORITHM,
        )
