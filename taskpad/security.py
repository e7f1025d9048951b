import base64
import hashlib
import hmac
import secrets

from .errors import MalformedHash

# Format: scrypt$n$r$p$salt$key
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_DKLEN = 64
SALT_BYTES = 16
_MAXMEM = 64 * 1024 * 1024


def _b64(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).decode("utf-8").rstrip("=")


def _b64d(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode((s + pad).encode("utf-8"))


def _derive(password: str, salt: bytes, n: int, r: int, p: int, dklen: int) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"), salt=salt, n=n, r=r, p=p, maxmem=_MAXMEM, dklen=dklen
    )


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt."""
    salt = secrets.token_bytes(SALT_BYTES)
    key = _derive(password, salt, SCRYPT_N, SCRYPT_R, SCRYPT_P, SCRYPT_DKLEN)
    return f"scrypt${SCRYPT_N}${SCRYPT_R}${SCRYPT_P}${_b64(salt)}${_b64(key)}"


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its stored hash.

    Raises MalformedHash when the stored value carries no salt or cannot be
    parsed; a well-formed hash that does not match returns False.
    """
    parts = (password_hash or "").split("$")
    if len(parts) != 6 or parts[0] != "scrypt" or not parts[4]:
        raise MalformedHash()
    try:
        n, r, p = int(parts[1]), int(parts[2]), int(parts[3])
        salt = _b64d(parts[4])
        expected = _b64d(parts[5])
    except ValueError as exc:
        raise MalformedHash() from exc
    if not salt or not expected:
        raise MalformedHash()

    supplied = _derive(password, salt, n, r, p, len(expected))
    return hmac.compare_digest(supplied, expected)


# Burned on logins for unknown emails so timing matches a real comparison.
DUMMY_PASSWORD_HASH = hash_password(secrets.token_urlsafe(16))
