from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import (
    Principal,
    require_admin,
    resolve_principal,
    resolve_principal_optional,
)
from core.database import get_session
from core.identity import IdentityVerifier


def get_identity_verifier(request: Request) -> Optional[IdentityVerifier]:
    return request.app.state.identity_verifier


async def get_principal(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    verifier: Optional[IdentityVerifier] = Depends(get_identity_verifier),
    session: AsyncSession = Depends(get_session),
) -> Principal:
    return await resolve_principal(
        authorization,
        verifier,
        session,
        require_verified_email=request.app.state.settings.auth_require_verified_email,
    )


async def get_optional_principal(
    authorization: Optional[str] = Header(default=None),
    verifier: Optional[IdentityVerifier] = Depends(get_identity_verifier),
    session: AsyncSession = Depends(get_session),
) -> Optional[Principal]:
    return await resolve_principal_optional(authorization, verifier, session)


def get_admin(principal: Principal = Depends(get_principal)) -> Principal:
    return require_admin(principal)
