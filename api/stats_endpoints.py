from fastapi import APIRouter, Depends

from api.dependencies import get_admin
from core.auth import Principal
from core.database import get_session_factory
from services.stats_service import StatsService

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("")
async def get_stats(
    admin: Principal = Depends(get_admin),
    session_factory=Depends(get_session_factory),
):
    """Admin dashboard counters"""
    stats = await StatsService(session_factory).get_stats()
    return {"stats": stats}
