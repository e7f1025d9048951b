# tests/test_security.py

from __future__ import annotations

import pytest

from taskpad.errors import MalformedHash
from taskpad.security import DUMMY_PASSWORD_HASH, hash_password, verify_password


def test_hash_then_verify_accepts_same_password() -> None:
    stored = hash_password("secret1")
    assert stored.startswith("scrypt$")
    assert verify_password("secret1", stored) is True


def test_verify_rejects_other_password() -> None:
    stored = hash_password("secret1")
    assert verify_password("secret2", stored) is False
    assert verify_password("", stored) is False


def test_each_hash_gets_its_own_salt() -> None:
    first = hash_password("same password")
    second = hash_password("same password")
    assert first != second
    assert verify_password("same password", first)
    assert verify_password("same password", second)


def test_unicode_password_round_trips() -> None:
    stored = hash_password("пароль-密码-🔑")
    assert verify_password("пароль-密码-🔑", stored)


@pytest.mark.parametrize(
    "stored",
    [
        "",
        "plainhexwithoutsalt",
        "scrypt$16384$8$1$$c29tZWtleQ",
        "scrypt$not-a-number$8$1$c2FsdA$c29tZWtleQ",
        "pbkdf2_sha256$200000$c2FsdA$c29tZWtleQ",
    ],
)
def test_malformed_hash_raises(stored: str) -> None:
    with pytest.raises(MalformedHash):
        verify_password("secret1", stored)


def test_dummy_hash_is_well_formed() -> None:
    assert verify_password("anything", DUMMY_PASSWORD_HASH) is False
