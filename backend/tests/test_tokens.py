"""Unit tests for the token service."""
import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from hypercyber.errors import InvalidToken
from hypercyber.tokens import ACCESS_TOKEN, REFRESH_TOKEN, REFRESH_TOKEN_TTL, TokenService


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


def test_access_token_round_trip(clock: FakeClock) -> None:
    service = TokenService("secret", timedelta(seconds=60), clock=clock)
    user_id = uuid.uuid4()

    claims = service.verify(service.issue_access_token(user_id, "a@x.com"))

    assert claims.user_id == user_id
    assert claims.email == "a@x.com"
    assert claims.token_type == ACCESS_TOKEN
    assert claims.expires_at == clock.now + timedelta(seconds=60)


def test_token_expires_after_ttl(clock: FakeClock) -> None:
    service = TokenService("secret", timedelta(seconds=60), clock=clock)
    token = service.issue_access_token(uuid.uuid4(), "a@x.com")

    clock.advance(timedelta(seconds=59))
    service.verify(token)

    clock.advance(timedelta(seconds=1))
    with pytest.raises(InvalidToken):
        service.verify(token)


def test_refresh_token_lives_seven_days(clock: FakeClock) -> None:
    service = TokenService("secret", timedelta(seconds=60), clock=clock)
    token = service.issue_refresh_token(uuid.uuid4(), "a@x.com")

    clock.advance(REFRESH_TOKEN_TTL - timedelta(seconds=1))
    claims = service.verify(token, expected_type=REFRESH_TOKEN)
    assert claims.token_type == REFRESH_TOKEN

    clock.advance(timedelta(seconds=1))
    with pytest.raises(InvalidToken):
        service.verify(token, expected_type=REFRESH_TOKEN)


def test_token_type_is_enforced(clock: FakeClock) -> None:
    service = TokenService("secret", timedelta(minutes=5), clock=clock)
    user_id = uuid.uuid4()

    with pytest.raises(InvalidToken):
        service.verify(service.issue_refresh_token(user_id, "a@x.com"))
    with pytest.raises(InvalidToken):
        service.verify(service.issue_access_token(user_id, "a@x.com"), expected_type=REFRESH_TOKEN)


def test_wrong_secret_is_rejected(clock: FakeClock) -> None:
    issuer = TokenService("secret", timedelta(minutes=5), clock=clock)
    verifier = TokenService("other-secret", timedelta(minutes=5), clock=clock)

    with pytest.raises(InvalidToken):
        verifier.verify(issuer.issue_access_token(uuid.uuid4(), "a@x.com"))


def test_malformed_user_id_is_rejected(clock: FakeClock) -> None:
    service = TokenService("secret", timedelta(minutes=5), clock=clock)
    token = jwt.encode(
        {
            "user_id": "not-a-uuid",
            "email": "a@x.com",
            "exp": int((clock.now + timedelta(minutes=5)).timestamp()),
            "token_type": ACCESS_TOKEN,
        },
        "secret",
        algorithm="HS256",
    )

    with pytest.raises(InvalidToken):
        service.verify(token)
