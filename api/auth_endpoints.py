"""
Authentication Endpoints.

The API does not issue credentials; callers present an identity provider token
as `Authorization: Bearer <token>` and the principal dependency resolves it
to a local user (creating or linking one on first sight).

Endpoints Provided:
- `POST /auth/sync`: called by the frontend right after sign-in. Resolves the
  token, which creates or links the local user, and returns it.
- `GET /auth/me`: the current user.
- `PUT /auth/profile`: updates the caller's own display name and photo.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_principal
from api.schemas import UserOut, UserProfileUpdate
from core.auth import Principal
from core.database import get_session
from core.logging_config import get_logger
from core.models import User
from services.resource_service import ResourceService

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


def _users(session: AsyncSession) -> ResourceService[User]:
    return ResourceService(session, User, "User")


@router.post("/sync")
async def sync_user(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    """Create or link the local user for the presented token"""
    user = await _users(session).get(principal.user_id)
    logger.info(f"User synced: {user.id}")
    return {"user": UserOut.model_validate(user)}


@router.get("/me")
async def get_me(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    user = await _users(session).get(principal.user_id)
    return {"user": UserOut.model_validate(user)}


@router.put("/profile")
async def update_my_profile(
    payload: UserProfileUpdate,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(get_session),
):
    """Update the caller's own name and photo"""
    user = await _users(session).update(
        principal.user_id, payload.model_dump(exclude_unset=True)
    )
    return {"user": UserOut.model_validate(user)}
