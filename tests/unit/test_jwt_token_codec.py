from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from techbranch.domain.auth.errors import InvalidTokenError
from techbranch.infrastructure.security.jwt_codec import JwtTokenCodec

SECRET = "test-signing-secret-with-32-bytes!!"
ISSUER = "techbranch"
T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)
LIFETIME = timedelta(hours=1)


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _codec(clock: FixedClock, *, secret: str = SECRET, issuer: str = ISSUER) -> JwtTokenCodec:
    return JwtTokenCodec(
        issuer=issuer,
        secret=secret,
        lifetime=LIFETIME,
        now=clock,
        token_id_factory=lambda: "token-id-1",
    )


def _raw_claims(**overrides: object) -> dict[str, object]:
    issued_at = int(T0.timestamp())
    claims: dict[str, object] = {
        "iss": ISSUER,
        "aud": ISSUER,
        "sub": "42",
        "jti": "token-id-1",
        "iat": issued_at,
        "nbf": issued_at - 5,
        "exp": issued_at + 3600,
    }
    claims.update(overrides)
    return claims


def test_generate_then_validate_returns_claims() -> None:
    clock = FixedClock(T0)
    codec = _codec(clock)

    issued = codec.generate(42)
    claims = codec.validate(issued.token)

    assert issued.token_id == "token-id-1"
    assert issued.expires_in == 3600
    assert claims.subject == "42"
    assert claims.principal_id == 42
    assert claims.token_id == "token-id-1"
    assert claims.issuer == ISSUER
    assert claims.audience == ISSUER
    assert claims.issued_at == int(T0.timestamp())
    assert claims.not_before == int(T0.timestamp()) - 5
    assert claims.expires_at == int(T0.timestamp()) + 3600


def test_generated_token_uses_hs256_header() -> None:
    issued = _codec(FixedClock(T0)).generate(7)

    assert jwt.get_unverified_header(issued.token)["alg"] == "HS256"


def test_default_token_ids_are_unique() -> None:
    codec = JwtTokenCodec(issuer=ISSUER, secret=SECRET, lifetime=LIFETIME)

    first = codec.generate(1)
    second = codec.generate(1)

    assert first.token_id != second.token_id
    assert first.token != second.token


@pytest.mark.parametrize(
    "offset",
    [timedelta(seconds=-5), timedelta(0), LIFETIME - timedelta(seconds=1)],
)
def test_token_is_valid_inside_window(offset: timedelta) -> None:
    clock = FixedClock(T0)
    codec = _codec(clock)
    issued = codec.generate(42)

    clock.now = T0 + offset

    assert codec.validate(issued.token).principal_id == 42


@pytest.mark.parametrize("offset", [timedelta(seconds=-6), LIFETIME, LIFETIME + timedelta(days=1)])
def test_token_is_rejected_outside_window(offset: timedelta) -> None:
    clock = FixedClock(T0)
    codec = _codec(clock)
    issued = codec.generate(42)

    clock.now = T0 + offset

    with pytest.raises(InvalidTokenError):
        codec.validate(issued.token)


def test_token_signed_with_other_secret_is_rejected() -> None:
    clock = FixedClock(T0)
    foreign = _codec(clock, secret="another-signing-secret-of-32-bytes!")

    with pytest.raises(InvalidTokenError):
        _codec(clock).validate(foreign.generate(42).token)


def test_token_from_other_issuer_is_rejected() -> None:
    clock = FixedClock(T0)
    foreign = _codec(clock, issuer="someone-else")

    with pytest.raises(InvalidTokenError):
        _codec(clock).validate(foreign.generate(42).token)


def test_unsigned_token_is_rejected() -> None:
    token = jwt.encode(_raw_claims(), None, algorithm="none")

    with pytest.raises(InvalidTokenError):
        _codec(FixedClock(T0)).validate(token)


def test_token_with_other_hmac_algorithm_is_rejected() -> None:
    token = jwt.encode(_raw_claims(), SECRET, algorithm="HS512")

    with pytest.raises(InvalidTokenError):
        _codec(FixedClock(T0)).validate(token)


@pytest.mark.parametrize("subject", ["", "-1", "abc", "1.5", " 7"])
def test_non_numeric_subject_is_rejected(subject: str) -> None:
    token = jwt.encode(_raw_claims(sub=subject), SECRET, algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        _codec(FixedClock(T0)).validate(token)


def test_missing_token_id_claim_is_rejected() -> None:
    claims = _raw_claims()
    del claims["jti"]
    token = jwt.encode(claims, SECRET, algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        _codec(FixedClock(T0)).validate(token)


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_garbage_token_is_rejected(token: str) -> None:
    with pytest.raises(InvalidTokenError):
        _codec(FixedClock(T0)).validate(token)


def test_negative_principal_cannot_be_issued() -> None:
    with pytest.raises(ValueError):
        _codec(FixedClock(T0)).generate(-1)


def test_non_positive_lifetime_is_rejected() -> None:
    with pytest.raises(ValueError):
        JwtTokenCodec(issuer=ISSUER, secret=SECRET, lifetime=timedelta(0))
