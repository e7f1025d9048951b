from dataclasses import dataclass, field
from pathlib import Path
from typing import List
import os

from dotenv import load_dotenv

# Load environment variables from the project root .env (if present).
REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(REPO_ROOT / ".env")

GOOGLE_JWKS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = "accounts.google.com,https://accounts.google.com"


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, built once and handed to ``create_app``."""

    database_url: str = "sqlite:///./taskpad.db"
    app_env: str = "development"
    session_cookie_name: str = "sid"
    session_ttl_seconds: int = 24 * 60 * 60
    session_cookie_samesite: str = "lax"
    google_client_id: str = ""
    external_jwks_url: str = GOOGLE_JWKS_URL
    external_issuers: List[str] = field(default_factory=lambda: _split_csv(GOOGLE_ISSUERS))
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            app_env=os.getenv("APP_ENV", cls.app_env).strip().lower(),
            session_cookie_name=os.getenv("SESSION_COOKIE_NAME", cls.session_cookie_name),
            session_ttl_seconds=int(os.getenv("SESSION_TTL_SECONDS", str(cls.session_ttl_seconds))),
            session_cookie_samesite=os.getenv("SESSION_COOKIE_SAMESITE", cls.session_cookie_samesite).lower(),
            google_client_id=os.getenv("GOOGLE_CLIENT_ID", "").strip(),
            external_jwks_url=os.getenv("EXTERNAL_JWKS_URL", GOOGLE_JWKS_URL),
            external_issuers=_split_csv(os.getenv("EXTERNAL_ISSUERS", GOOGLE_ISSUERS)),
            cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "http://localhost:5173")),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
