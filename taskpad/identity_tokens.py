"""Verification of identity tokens issued by an external provider (Google)."""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import logging
import threading
import time

import httpx
from jose import JWTError, jwt

from .errors import Internal, InvalidToken, ValidationError

logger = logging.getLogger(__name__)

JWKS_CACHE_SECONDS = 60 * 60
ALGORITHMS = ["RS256"]


@dataclass(frozen=True)
class ExternalIdentity:
    subject_id: str
    email: str
    name: Optional[str] = None


def fetch_jwks(url: str) -> Dict:
    response = httpx.get(url, timeout=10.0)
    response.raise_for_status()
    return response.json()


class TokenVerifier:
    """Checks signature, audience, issuer and expiry of an RS256 ID token.

    Signing keys come from the provider's JWKS document and are cached for
    ``cache_seconds``; an unknown ``kid`` forces one refresh so key rotation
    is picked up without a restart.
    """

    def __init__(
        self,
        audience: str,
        jwks_url: str,
        issuers: List[str],
        key_fetcher: Callable[[str], Dict] = fetch_jwks,
        cache_seconds: int = JWKS_CACHE_SECONDS,
    ):
        self.audience = audience
        self.jwks_url = jwks_url
        self.issuers = issuers
        self._key_fetcher = key_fetcher
        self._cache_seconds = cache_seconds
        self._keys: Dict[str, Dict] = {}
        self._fetched_at = 0.0
        self._lock = threading.Lock()

    def _load_keys(self, force: bool = False) -> Dict[str, Dict]:
        with self._lock:
            fresh = time.monotonic() - self._fetched_at < self._cache_seconds
            if self._keys and fresh and not force:
                return self._keys
            try:
                document = self._key_fetcher(self.jwks_url)
            except httpx.HTTPError as exc:
                logger.error("Could not fetch signing keys from %s: %s", self.jwks_url, exc)
                raise Internal("Identity provider keys unavailable") from exc
            self._keys = {key["kid"]: key for key in document.get("keys", []) if "kid" in key}
            self._fetched_at = time.monotonic()
            logger.debug("Loaded %d signing keys from %s", len(self._keys), self.jwks_url)
            return self._keys

    def _signing_key(self, token: str) -> Dict:
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise InvalidToken() from exc
        kid = header.get("kid")
        if not kid:
            raise InvalidToken()
        key = self._load_keys().get(kid)
        if key is None:
            key = self._load_keys(force=True).get(kid)
        if key is None:
            logger.warning("Token signed with unknown key id %s", kid)
            raise InvalidToken()
        return key

    def verify(self, token: str) -> ExternalIdentity:
        if not self.audience:
            logger.error("External sign-in attempted but GOOGLE_CLIENT_ID is not set")
            raise Internal("External sign-in is not configured")

        key = self._signing_key(token)
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=ALGORITHMS,
                audience=self.audience,
                issuer=self.issuers,
            )
        except JWTError as exc:
            logger.info("External token rejected: %s", exc)
            raise InvalidToken() from exc

        if claims.get("email_verified") is False:
            raise InvalidToken("External account email is not verified")

        subject_id = claims.get("sub")
        email = claims.get("email")
        if not subject_id or not email:
            raise ValidationError("Token is missing email or subject")

        return ExternalIdentity(subject_id=subject_id, email=email, name=claims.get("name"))
