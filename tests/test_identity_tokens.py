# tests/test_identity_tokens.py

from __future__ import annotations

import time
from typing import Any, Dict, List

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from taskpad.errors import Internal, InvalidToken, ValidationError
from taskpad.identity_tokens import TokenVerifier

AUDIENCE = "test-client-id"
ISSUERS = ["accounts.google.com", "https://accounts.google.com"]
JWKS_URL = "https://provider.example/certs"


def _rsa_pair() -> tuple[str, Dict[str, Any]]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
    return private_pem, jwk.construct(public_pem, algorithm="RS256").to_dict()


@pytest.fixture(scope="module")
def signing_key() -> tuple[str, Dict[str, Any]]:
    private_pem, public_jwk = _rsa_pair()
    public_jwk["kid"] = "key-1"
    return private_pem, public_jwk


class KeyServer:
    def __init__(self, keys: List[Dict[str, Any]]) -> None:
        self.keys = keys
        self.requests = 0

    def __call__(self, url: str) -> Dict[str, Any]:
        assert url == JWKS_URL
        self.requests += 1
        return {"keys": list(self.keys)}


def _claims(**overrides: Any) -> Dict[str, Any]:
    now = int(time.time())
    claims = {
        "iss": "https://accounts.google.com",
        "aud": AUDIENCE,
        "sub": "1234567890",
        "email": "g@x.com",
        "email_verified": True,
        "name": "Gee",
        "iat": now,
        "exp": now + 300,
    }
    claims.update(overrides)
    return {k: v for k, v in claims.items() if v is not None}


def _sign(private_pem: str, claims: Dict[str, Any], kid: str = "key-1") -> str:
    return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": kid})


def _verifier(server: KeyServer, audience: str = AUDIENCE) -> TokenVerifier:
    return TokenVerifier(audience=audience, jwks_url=JWKS_URL, issuers=ISSUERS, key_fetcher=server)


def test_valid_token_yields_identity(signing_key) -> None:
    private_pem, public_jwk = signing_key
    verifier = _verifier(KeyServer([public_jwk]))

    identity = verifier.verify(_sign(private_pem, _claims()))

    assert identity.subject_id == "1234567890"
    assert identity.email == "g@x.com"
    assert identity.name == "Gee"


def test_name_is_optional(signing_key) -> None:
    private_pem, public_jwk = signing_key
    identity = _verifier(KeyServer([public_jwk])).verify(_sign(private_pem, _claims(name=None)))
    assert identity.name is None


def test_keys_are_cached_between_verifications(signing_key) -> None:
    private_pem, public_jwk = signing_key
    server = KeyServer([public_jwk])
    verifier = _verifier(server)

    verifier.verify(_sign(private_pem, _claims()))
    verifier.verify(_sign(private_pem, _claims()))

    assert server.requests == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"aud": "someone-else"},
        {"iss": "https://evil.example"},
        {"exp": int(time.time()) - 3600, "iat": int(time.time()) - 7200},
        {"email_verified": False},
    ],
)
def test_rejected_claims(signing_key, overrides) -> None:
    private_pem, public_jwk = signing_key
    verifier = _verifier(KeyServer([public_jwk]))

    with pytest.raises(InvalidToken):
        verifier.verify(_sign(private_pem, _claims(**overrides)))


def test_signature_from_other_key_is_rejected(signing_key) -> None:
    _, public_jwk = signing_key
    other_private, _ = _rsa_pair()
    verifier = _verifier(KeyServer([public_jwk]))

    with pytest.raises(InvalidToken):
        verifier.verify(_sign(other_private, _claims()))


def test_unknown_key_id_refetches_once_then_rejects(signing_key) -> None:
    private_pem, public_jwk = signing_key
    server = KeyServer([public_jwk])
    verifier = _verifier(server)

    with pytest.raises(InvalidToken):
        verifier.verify(_sign(private_pem, _claims(), kid="rotated-away"))

    assert server.requests == 2


def test_rotated_key_is_picked_up(signing_key) -> None:
    private_pem, public_jwk = signing_key
    new_private, new_public = _rsa_pair()
    new_public["kid"] = "key-2"
    server = KeyServer([public_jwk])
    verifier = _verifier(server)
    verifier.verify(_sign(private_pem, _claims()))

    server.keys.append(new_public)
    identity = verifier.verify(_sign(new_private, _claims(), kid="key-2"))

    assert identity.email == "g@x.com"


def test_garbage_token_is_rejected(signing_key) -> None:
    _, public_jwk = signing_key
    with pytest.raises(InvalidToken):
        _verifier(KeyServer([public_jwk])).verify("not-a-jwt")


def test_missing_email_is_a_validation_error(signing_key) -> None:
    private_pem, public_jwk = signing_key
    with pytest.raises(ValidationError):
        _verifier(KeyServer([public_jwk])).verify(_sign(private_pem, _claims(email=None)))


def test_unconfigured_audience_is_internal(signing_key) -> None:
    private_pem, public_jwk = signing_key
    server = KeyServer([public_jwk])

    with pytest.raises(Internal):
        _verifier(server, audience="").verify(_sign(private_pem, _claims()))
    assert server.requests == 0


def test_key_endpoint_failure_is_internal(signing_key) -> None:
    private_pem, _ = signing_key

    def failing_fetch(url: str) -> Dict[str, Any]:
        raise httpx.ConnectError("provider unreachable")

    verifier = TokenVerifier(audience=AUDIENCE, jwks_url=JWKS_URL, issuers=ISSUERS, key_fetcher=failing_fetch)
    with pytest.raises(Internal):
        verifier.verify(_sign(private_pem, _claims()))
