from __future__ import annotations

import time

import pytest

from polling_auth.security.tokens import (
    InvalidTokenError,
    TokenPurpose,
    TokenService,
    TokenSettings,
    strip_bearer,
)


def test_issued_token_validates_until_it_expires(tokens):
    now = time.time()

    fresh = tokens.issue("alice", TokenPurpose.SESSION, ttl=60, now=now)
    aging = tokens.issue("alice", TokenPurpose.SESSION, ttl=60, now=now - 30)
    stale = tokens.issue("alice", TokenPurpose.SESSION, ttl=60, now=now - 61)

    assert tokens.validate(fresh)
    assert tokens.validate(aging)
    assert not tokens.validate(stale)


class FixedClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_token_is_valid_at_expiry_second_and_invalid_after(token_settings):
    clock = FixedClock(1_000_000.0)
    service = TokenService(token_settings, clock=clock)
    token = service.issue("alice", TokenPurpose.SESSION, ttl=60)

    clock.now = 1_000_060.0
    assert service.validate(token)
    assert service.decode(token).expires_at == 1_000_060

    clock.now = 1_000_061.0
    assert not service.validate(token)
    with pytest.raises(InvalidTokenError, match="expired"):
        service.decode(token)


def test_claims_carry_subject_purpose_and_absolute_expiry(tokens):
    issued_at = int(time.time()) - 100
    token = tokens.issue("alice", TokenPurpose.ACTIVATION, ttl=300, now=issued_at)

    claims = tokens.decode(token)
    assert claims.subject == "alice"
    assert claims.purpose is TokenPurpose.ACTIVATION
    assert claims.issued_at == issued_at
    assert claims.expires_at == issued_at + 300
    # decoding again does not slide the expiry
    assert tokens.decode(token).expires_at == issued_at + 300


def test_default_ttl_follows_purpose(tokens):
    session = tokens.decode(tokens.issue("alice", TokenPurpose.SESSION))
    activation = tokens.decode(tokens.issue("alice", TokenPurpose.ACTIVATION))

    assert session.expires_at - session.issued_at == 600
    assert activation.expires_at - activation.issued_at == 900


def test_spliced_payload_fails_signature_check(tokens):
    alice = tokens.issue("alice", TokenPurpose.SESSION).split(".")
    mallory = tokens.issue("mallory", TokenPurpose.SESSION).split(".")
    forged = ".".join([alice[0], mallory[1], alice[2]])

    assert not tokens.validate(forged)
    with pytest.raises(InvalidTokenError):
        tokens.extract_subject(forged)


def test_token_from_other_key_or_issuer_is_rejected(tokens, token_settings):
    other_key = TokenService(TokenSettings(secret="x" * 40, issuer=token_settings.issuer))
    other_issuer = TokenService(TokenSettings(secret=token_settings.secret, issuer="somebody.else"))

    assert not tokens.validate(other_key.issue("alice", TokenPurpose.SESSION))
    assert not tokens.validate(other_issuer.issue("alice", TokenPurpose.SESSION))


def test_purpose_mismatch_is_rejected_when_enforced(tokens):
    activation = tokens.issue("alice", TokenPurpose.ACTIVATION)

    assert tokens.validate(activation)
    assert tokens.validate(activation, TokenPurpose.ACTIVATION)
    assert not tokens.validate(activation, TokenPurpose.SESSION)
    with pytest.raises(InvalidTokenError, match="purpose"):
        tokens.extract_subject(activation, TokenPurpose.SESSION)


def test_purpose_mismatch_is_tolerated_when_scoping_is_off(token_settings):
    unscoped = TokenService(
        TokenSettings(secret=token_settings.secret, issuer=token_settings.issuer, enforce_purpose=False)
    )
    activation = unscoped.issue("alice", TokenPurpose.ACTIVATION)

    assert unscoped.extract_subject(activation, TokenPurpose.SESSION) == "alice"


@pytest.mark.parametrize("value", ["", "garbage", "a.b.c"])
def test_malformed_tokens_never_validate(tokens, value):
    assert not tokens.validate(value)


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer   abc", "abc"),
        ("Basic abc", None),
        ("Bearer ", None),
        (None, None),
    ],
)
def test_strip_bearer(header, expected):
    assert strip_bearer(header) == expected
