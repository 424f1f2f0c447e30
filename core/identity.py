"""
Identity Verification.

Turns an opaque bearer token into an `IdentityAssertion`: the subject id and
profile claims issued by the external identity provider. The reconciliation
core in `core.auth` only depends on the `IdentityVerifier` interface, so tests
plug in a fake and deployments choose a verifier in configuration.

Key Components:
- `IdentityAssertion`: decoded claims of a verified token.
- `IdentityVerifier`: abstract async verifier.
- `JWTIdentityVerifier`: PyJWT-based verifier. With a shared secret it checks
  HS256 tokens; with a JWKS URL it resolves the signing key by `kid` (for
  example Firebase's secure-token keys) and checks RS256 tokens. Audience and
  issuer are enforced when configured. Key retrieval is blocking I/O and runs
  in a worker thread so other requests keep being served.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import jwt

from core.config import Settings
from core.exceptions import InvalidTokenError
from core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IdentityAssertion:
    """Claims of a verified identity token"""

    subject_id: str
    email: Optional[str] = None
    email_verified: bool = False
    name: Optional[str] = None
    picture: Optional[str] = None


class IdentityVerifier(ABC):
    """Abstract base class for bearer-token verifiers"""

    @abstractmethod
    async def verify(self, token: str) -> IdentityAssertion:
        """Verify `token`. Raises InvalidTokenError when it is not acceptable."""


class JWTIdentityVerifier(IdentityVerifier):
    """Verify identity-provider JWTs with PyJWT"""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        jwks_url: Optional[str] = None,
        algorithms: Optional[List[str]] = None,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ):
        if not secret_key and not jwks_url:
            raise ValueError("JWTIdentityVerifier needs a secret key or a JWKS URL")

        self.secret_key = secret_key
        self.algorithms = algorithms or (["HS256"] if secret_key else ["RS256"])
        self.audience = audience
        self.issuer = issuer
        self._jwks_client = jwt.PyJWKClient(jwks_url) if jwks_url else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTIdentityVerifier":
        return cls(
            secret_key=settings.auth_jwt_secret,
            jwks_url=settings.auth_jwks_url,
            algorithms=settings.auth_algorithms,
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
        )

    async def verify(self, token: str) -> IdentityAssertion:
        try:
            if self._jwks_client is not None:
                signing_key = await asyncio.to_thread(
                    self._jwks_client.get_signing_key_from_jwt, token
                )
                key = signing_key.key
            else:
                key = self.secret_key

            claims = jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "require": ["exp", "sub"],
                    "verify_aud": self.audience is not None,
                },
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token has expired")
        except jwt.PyJWTError as e:
            logger.info(f"Rejected identity token: {e}")
            raise InvalidTokenError("Invalid token")

        return self._to_assertion(claims)

    @staticmethod
    def _to_assertion(claims: Dict[str, Any]) -> IdentityAssertion:
        subject_id = claims.get("sub")
        if not subject_id:
            raise InvalidTokenError("Token has no subject")

        return IdentityAssertion(
            subject_id=str(subject_id),
            email=claims.get("email") or None,
            email_verified=bool(claims.get("email_verified", False)),
            name=claims.get("name") or None,
            picture=claims.get("picture") or None,
        )


def build_identity_verifier(settings: Settings) -> Optional[IdentityVerifier]:
    """Verifier for the configured provider, or None when auth is not configured"""
    if not settings.auth_jwt_secret and not settings.auth_jwks_url:
        logger.warning(
            "No AUTH_JWT_SECRET or AUTH_JWKS_URL configured; authenticated routes will reject every token"
        )
        return None
    return JWTIdentityVerifier.from_settings(settings)
