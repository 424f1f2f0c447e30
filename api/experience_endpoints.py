"""Experience Endpoints. Current positions first, then most recent start date."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_admin
from api.schemas import (
    ExperienceCreate,
    ExperienceOut,
    ExperienceUpdate,
    MessageOut,
)
from core.auth import Principal
from core.database import get_session
from core.models import Experience
from services.resource_service import ResourceService

router = APIRouter(prefix="/experience", tags=["Experience"])


def _experiences(session: AsyncSession) -> ResourceService[Experience]:
    return ResourceService(session, Experience, "Experience")


@router.get("")
async def list_experiences(session: AsyncSession = Depends(get_session)):
    experiences = await _experiences(session).list(
        Experience.current.desc(), Experience.start_date.desc()
    )
    return {"experiences": [ExperienceOut.model_validate(e) for e in experiences]}


@router.get("/{experience_id}")
async def get_experience(
    experience_id: str, session: AsyncSession = Depends(get_session)
):
    experience = await _experiences(session).get(experience_id)
    return {"experience": ExperienceOut.model_validate(experience)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_experience(
    payload: ExperienceCreate,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    experience = await _experiences(session).create(payload.model_dump())
    return {"experience": ExperienceOut.model_validate(experience)}


@router.put("/{experience_id}")
async def update_experience(
    experience_id: str,
    payload: ExperienceUpdate,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    experience = await _experiences(session).update(
        experience_id, payload.model_dump(exclude_unset=True)
    )
    return {"experience": ExperienceOut.model_validate(experience)}


@router.delete("/{experience_id}", response_model=MessageOut)
async def delete_experience(
    experience_id: str,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    await _experiences(session).delete(experience_id)
    return MessageOut(message="Experience deleted successfully")
