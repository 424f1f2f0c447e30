"""
Core Authentication and Authorization.

This module resolves a bearer token to the local user it belongs to and
decides whether that user may perform admin operations.

Key Components:
- `Principal`: the authenticated caller (subject id, email, role, local user
  id). It is passed explicitly to whatever needs it; nothing is stored on the
  request object.
- `decide_resolution`: pure decision over the two user lookups. Returns a
  tagged `Resolution`:
    * `EXISTING`: a user already carries the token's subject id.
    * `LINK`: no user has the subject id, but one has the asserted email
      (typically an admin account provisioned by email before the owner's
      first login). The subject id is attached to it.
    * `CREATE`: first time this identity is seen.
- `IdentityReconciler`: performs the lookups, applies the decision and commits.
  Linking backfills `name` and `photo_url` only where they are empty.
  Uniqueness on subject id and email is enforced by the store; when a
  concurrent request wins the insert, the reconciler re-reads the winner.
- `resolve_principal` / `resolve_principal_optional`: the required and the
  best-effort variants used by the FastAPI dependencies in `api.dependencies`.
- `require_admin`: synchronous role guard.

Linking trusts the identity provider's email claim. Deployments that accept
tokens from providers with unverified emails should set
`AUTH_REQUIRE_VERIFIED_EMAIL=true`, which restricts linking to assertions
whose email is marked verified.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidTokenError,
    MissingTokenError,
    UnauthenticatedError,
)
from core.identity import IdentityAssertion, IdentityVerifier
from core.logging_config import get_logger, log_function_call
from core.models import User, UserRole

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Principal:
    """Authenticated caller"""

    subject_id: str
    email: str
    role: UserRole
    user_id: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class ResolutionKind(str, Enum):
    EXISTING = "existing"
    LINK = "link"
    CREATE = "create"


@dataclass(frozen=True)
class Resolution:
    kind: ResolutionKind
    user: Optional[User] = None


def decide_resolution(
    assertion: IdentityAssertion,
    by_subject: Optional[User],
    by_email: Optional[User],
    allow_email_link: bool = True,
) -> Resolution:
    """Pick how an identity assertion maps onto a local user"""
    if by_subject is not None:
        return Resolution(ResolutionKind.EXISTING, by_subject)
    if assertion.email and by_email is not None and allow_email_link:
        return Resolution(ResolutionKind.LINK, by_email)
    return Resolution(ResolutionKind.CREATE)


def parse_bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an `Authorization: Bearer <token>` header"""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise MissingTokenError()
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingTokenError()
    return token


def principal_for(user: User, subject_id: str) -> Principal:
    return Principal(
        subject_id=subject_id,
        email=user.email,
        role=user.role,
        user_id=user.id,
    )


class IdentityReconciler:
    """Maps verified identity assertions onto local user records"""

    def __init__(self, session: AsyncSession, require_verified_email: bool = False):
        self.session = session
        self.require_verified_email = require_verified_email

    async def find_by_subject(self, subject_id: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.external_subject_id == subject_id)
        )
        return result.scalars().first()

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def resolve(self, assertion: IdentityAssertion) -> User:
        by_subject = await self.find_by_subject(assertion.subject_id)
        by_email = None
        if by_subject is None and assertion.email:
            by_email = await self.find_by_email(assertion.email)

        resolution = decide_resolution(
            assertion,
            by_subject,
            by_email,
            allow_email_link=assertion.email_verified or not self.require_verified_email,
        )

        if resolution.kind is ResolutionKind.EXISTING:
            return resolution.user

        try:
            if resolution.kind is ResolutionKind.LINK:
                user = self._link(resolution.user, assertion)
            else:
                user = self._create(assertion)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            user = await self.find_by_subject(assertion.subject_id)
            if user is None:
                raise ConflictError(
                    "Identity conflicts with an existing account",
                    subject_id=assertion.subject_id,
                )
            logger.info(
                f"Concurrent sign-in already registered subject {assertion.subject_id}"
            )
            return user

        logger.info(
            f"Identity {resolution.kind.value}: subject {assertion.subject_id} -> user {user.id}"
        )
        return user

    def _link(self, user: User, assertion: IdentityAssertion) -> User:
        user.external_subject_id = assertion.subject_id
        if not user.photo_url and assertion.picture:
            user.photo_url = assertion.picture
        if not user.name and assertion.name:
            user.name = assertion.name
        self.session.add(user)
        return user

    def _create(self, assertion: IdentityAssertion) -> User:
        user = User(
            external_subject_id=assertion.subject_id,
            email=assertion.email or "",
            name=assertion.name,
            photo_url=assertion.picture,
            role=UserRole.USER,
        )
        self.session.add(user)
        return user


@log_function_call(logger)
async def resolve_principal(
    authorization: Optional[str],
    verifier: Optional[IdentityVerifier],
    session: AsyncSession,
    require_verified_email: bool = False,
) -> Principal:
    """Authenticate the caller, creating or linking the local user as needed"""
    token = parse_bearer_token(authorization)
    if verifier is None:
        raise InvalidTokenError("Authentication is not configured")

    assertion = await verifier.verify(token)
    reconciler = IdentityReconciler(session, require_verified_email)
    user = await reconciler.resolve(assertion)
    return principal_for(user, assertion.subject_id)


async def resolve_principal_optional(
    authorization: Optional[str],
    verifier: Optional[IdentityVerifier],
    session: AsyncSession,
) -> Optional[Principal]:
    """Best-effort authentication for public read endpoints; never writes"""
    try:
        token = parse_bearer_token(authorization)
    except MissingTokenError:
        return None
    if verifier is None:
        return None

    try:
        assertion = await verifier.verify(token)
    except Exception as e:
        # Any verifier failure degrades to an anonymous read
        logger.debug(f"Ignoring unverifiable token on public endpoint: {e}")
        return None

    user = await IdentityReconciler(session).find_by_subject(assertion.subject_id)
    if user is None:
        return None
    return principal_for(user, assertion.subject_id)


def require_admin(principal: Optional[Principal]) -> Principal:
    """Allow only ADMIN principals"""
    if principal is None:
        raise UnauthenticatedError()
    if principal.role != UserRole.ADMIN:
        raise ForbiddenError()
    return principal
