"""
Application Settings.

All runtime configuration comes from environment variables so the same image
can run in development, test and production without code changes. Values are
read once into a `Settings` instance by `load_settings()`; `create_app` accepts
an explicit instance, which is how the test-suite points the API at a
temporary database.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Runtime configuration for the Portfolio API"""

    environment: str = "development"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./portfolio.db"
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000"]
    )
    rate_limit_max: int = 100
    rate_limit_window_seconds: int = 900
    port: int = 5000

    # Identity verifier
    auth_jwt_secret: Optional[str] = None
    auth_jwks_url: Optional[str] = None
    # None lets the verifier choose HS256 for a shared secret, RS256 for JWKS
    auth_algorithms: Optional[List[str]] = None
    auth_audience: Optional[str] = None
    auth_issuer: Optional[str] = None
    auth_require_verified_email: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def load_settings() -> Settings:
    """Build settings from the process environment"""
    algorithms = os.getenv("AUTH_ALGORITHMS")

    return Settings(
        environment=os.getenv("ENVIRONMENT", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        database_url=os.getenv(
            "DATABASE_URL", "sqlite+aiosqlite:///./portfolio.db"
        ),
        cors_origins=_split_csv(os.getenv("CLIENT_URL", "http://localhost:3000")),
        rate_limit_max=int(os.getenv("RATE_LIMIT_MAX", "100")),
        rate_limit_window_seconds=int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900")),
        port=int(os.getenv("PORT", "5000")),
        auth_jwt_secret=os.getenv("AUTH_JWT_SECRET"),
        auth_jwks_url=os.getenv("AUTH_JWKS_URL"),
        auth_algorithms=_split_csv(algorithms) if algorithms else None,
        auth_audience=os.getenv("AUTH_AUDIENCE"),
        auth_issuer=os.getenv("AUTH_ISSUER"),
        auth_require_verified_email=_as_bool(
            os.getenv("AUTH_REQUIRE_VERIFIED_EMAIL"), default=False
        ),
    )
