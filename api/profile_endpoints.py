"""
Profile Endpoints.

The site owner's profile is a single row: `POST` creates it once, `PUT`
updates it afterwards. Social links are stored with empty entries dropped.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_admin
from api.schemas import ProfileCreate, ProfileOut, ProfileUpdate
from core.auth import Principal
from core.database import get_session
from core.exceptions import ConflictError, NotFoundError
from core.models import Profile
from services.resource_service import ResourceService

router = APIRouter(prefix="/profile", tags=["Profile"])

PROFILE_EXISTS = "Profile already exists. Use PUT to update."


def _profiles(session: AsyncSession) -> ResourceService[Profile]:
    return ResourceService(session, Profile, "Profile")


def _clean_social_links(links: Optional[Dict[str, Any]]) -> Dict[str, str]:
    return {name: url for name, url in (links or {}).items() if url}


@router.get("")
async def get_profile(session: AsyncSession = Depends(get_session)):
    profile = await _profiles(session).find("singleton", 1)
    if profile is None:
        raise NotFoundError("Profile")
    return {"profile": ProfileOut.model_validate(profile)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_profile(
    payload: ProfileCreate,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    profiles = _profiles(session)
    if await profiles.find("singleton", 1) is not None:
        raise ConflictError(PROFILE_EXISTS, status_code=status.HTTP_400_BAD_REQUEST)

    data = payload.model_dump()
    data["social_links"] = _clean_social_links(data.get("social_links"))
    try:
        profile = await profiles.create(data)
    except ConflictError:
        # Lost a race with another create; the singleton column rejected us
        raise ConflictError(PROFILE_EXISTS, status_code=status.HTTP_400_BAD_REQUEST)
    return {"profile": ProfileOut.model_validate(profile)}


@router.put("")
async def update_profile(
    payload: ProfileUpdate,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    profiles = _profiles(session)
    existing = await profiles.find("singleton", 1)
    if existing is None:
        raise NotFoundError("Profile")

    data = payload.model_dump(exclude_unset=True)
    if "social_links" in data:
        data["social_links"] = _clean_social_links(data["social_links"])
    profile = await profiles.update(existing.id, data)
    return {"profile": ProfileOut.model_validate(profile)}
