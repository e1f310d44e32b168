"""Tests for password hashing and access tokens."""

from __future__ import annotations

from lockin.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from lockin.core.settings import Settings


def test_password_hash_round_trip() -> None:
    encoded = hash_password("correct-horse", iterations=1_000)

    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert verify_password("correct-horse", encoded)
    assert not verify_password("wrong-horse", encoded)


def test_password_hashes_are_salted() -> None:
    assert hash_password("same", iterations=1_000) != hash_password("same", iterations=1_000)


def test_malformed_hash_never_verifies() -> None:
    assert not verify_password("anything", "not-a-hash")
    assert not verify_password("anything", "md5$1$aa$bb")


def test_access_token_carries_user_id(test_settings: Settings) -> None:
    token = create_access_token("user-1", test_settings)
    assert decode_access_token(token, test_settings) == "user-1"


def test_token_signed_with_other_key_is_rejected(test_settings: Settings) -> None:
    other = Settings(SECRET_KEY="another-secret")
    token = create_access_token("user-1", other)
    assert decode_access_token(token, test_settings) is None
