"""
Skill Endpoints.

Public listing and lookup; create, update and delete are admin only.
Skills are listed grouped by category, then by their explicit `order`.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_admin
from api.schemas import MessageOut, SkillCreate, SkillOut, SkillUpdate
from core.auth import Principal
from core.database import get_session
from core.models import Skill
from services.resource_service import ResourceService

router = APIRouter(prefix="/skills", tags=["Skills"])


def _skills(session: AsyncSession) -> ResourceService[Skill]:
    return ResourceService(session, Skill, "Skill")


@router.get("")
async def list_skills(session: AsyncSession = Depends(get_session)):
    skills = await _skills(session).list(Skill.category, Skill.order)
    return {"skills": [SkillOut.model_validate(s) for s in skills]}


@router.get("/{skill_id}")
async def get_skill(skill_id: str, session: AsyncSession = Depends(get_session)):
    skill = await _skills(session).get(skill_id)
    return {"skill": SkillOut.model_validate(skill)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_skill(
    payload: SkillCreate,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    skill = await _skills(session).create(payload.model_dump())
    return {"skill": SkillOut.model_validate(skill)}


@router.put("/{skill_id}")
async def update_skill(
    skill_id: str,
    payload: SkillUpdate,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    skill = await _skills(session).update(
        skill_id, payload.model_dump(exclude_unset=True)
    )
    return {"skill": SkillOut.model_validate(skill)}


@router.delete("/{skill_id}", response_model=MessageOut)
async def delete_skill(
    skill_id: str,
    admin: Principal = Depends(get_admin),
    session: AsyncSession = Depends(get_session),
):
    await _skills(session).delete(skill_id)
    return MessageOut(message="Skill deleted successfully")
