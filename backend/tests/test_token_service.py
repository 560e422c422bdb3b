from dataclasses import replace
from datetime import timedelta

import pytest

from pos_app import config
from pos_app.config import ConfigError, parse_duration
from pos_app.services import token_service
from pos_app.services.token_service import (
    issue_token, verify_token, hash_password, verify_password,
)

USER = {"id": 7, "email": "server@restaurant.com", "role": "server", "name": "Sam"}


def test_issue_then_verify_returns_claims():
    claims = verify_token(issue_token(USER))
    assert claims is not None
    assert claims.id == 7
    assert claims.email == "server@restaurant.com"
    assert claims.role == "server"
    assert claims.name == "Sam"
    assert claims.exp - claims.iat == int(timedelta(days=7).total_seconds())


def test_custom_lifetime():
    claims = verify_token(issue_token(USER, expires_delta=timedelta(minutes=5)))
    assert claims.exp - claims.iat == 300


def test_expired_token_is_rejected():
    assert verify_token(issue_token(USER, expires_delta=timedelta(seconds=-10))) is None


def test_tampered_signature_is_rejected():
    token = issue_token(USER)
    header, payload, signature = token.split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
    assert verify_token(".".join([header, payload, flipped])) is None


def test_token_signed_with_other_secret_is_rejected(monkeypatch):
    other = replace(config.get_settings(), jwt_secret="some-other-secret")
    monkeypatch.setattr(token_service, "get_settings", lambda: other)
    token = issue_token(USER)
    monkeypatch.undo()
    assert verify_token(token) is None


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
def test_malformed_tokens_are_rejected(token):
    assert verify_token(token) is None


def test_missing_secret_refuses_to_sign(monkeypatch):
    unset = replace(config.get_settings(), jwt_secret=None)
    monkeypatch.setattr(token_service, "get_settings", lambda: unset)
    with pytest.raises(ConfigError):
        issue_token(USER)
    with pytest.raises(ConfigError):
        verify_token("a.b.c")


def test_password_hashing():
    hashed = hash_password("secret-pass")
    assert hashed != "secret-pass"
    assert verify_password("secret-pass", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("", hashed)
    assert not verify_password("secret-pass", "not-a-hash")


@pytest.mark.parametrize("raw,expected", [
    ("3600", timedelta(hours=1)),
    ("30m", timedelta(minutes=30)),
    ("12h", timedelta(hours=12)),
    ("7d", timedelta(days=7)),
])
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "soon", "7w", "-5m"])
def test_parse_duration_rejects_garbage(raw):
    with pytest.raises(ConfigError):
        parse_duration(raw)
