# cashai/tests/test_auth.py
# Tests for session tokens and the access token cipher.

import base64
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from jose import jwt

from cashai.auth import AccessTokenCipher, SessionTokenManager
from cashai.errors import StorageError


def flip_signature_bit(token: str) -> str:
    header, payload, signature = token.split(".")
    raw = bytearray(base64.urlsafe_b64decode(signature + "=" * (-len(signature) % 4)))
    raw[0] ^= 0x01
    tampered = base64.urlsafe_b64encode(bytes(raw)).rstrip(b"=").decode("ascii")
    return ".".join([header, payload, tampered])


def test_issue_then_verify_returns_user_claims(token_manager):
    user = SimpleNamespace(id=42, email="ada@example.com")

    claims = token_manager.verify(token_manager.issue(user))

    assert claims["userId"] == 42
    assert claims["email"] == "ada@example.com"


def test_token_expires_after_seven_days(token_manager):
    user = SimpleNamespace(id=1, email="ada@example.com")
    claims = token_manager.verify(token_manager.issue(user))

    assert claims["exp"] - claims["iat"] == int(timedelta(days=7).total_seconds())


def test_tampered_signature_is_invalid(token_manager):
    token = token_manager.issue(SimpleNamespace(id=1, email="ada@example.com"))
    assert token_manager.verify(flip_signature_bit(token)) is None


def test_expired_token_is_invalid(token_manager):
    past = datetime.now(timezone.utc) - timedelta(days=8)
    token = jwt.encode(
        {"userId": 1, "email": "ada@example.com", "iat": past, "exp": past + timedelta(days=1)},
        token_manager.secret_key,
        algorithm="HS256",
    )
    assert token_manager.verify(token) is None


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
def test_malformed_tokens_are_invalid(token_manager, token):
    assert token_manager.verify(token) is None


def test_token_signed_with_other_key_is_invalid(token_manager):
    other = SessionTokenManager("another-secret")
    token = other.issue(SimpleNamespace(id=1, email="ada@example.com"))
    assert token_manager.verify(token) is None


def test_cipher_round_trip_and_wrong_key():
    cipher = AccessTokenCipher.from_secret("one")
    ciphertext = cipher.encrypt("access-sandbox-123")

    assert ciphertext != "access-sandbox-123"
    assert cipher.decrypt(ciphertext) == "access-sandbox-123"

    with pytest.raises(StorageError):
        AccessTokenCipher.from_secret("two").decrypt(ciphertext)
