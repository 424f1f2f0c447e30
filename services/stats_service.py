"""Dashboard counters for the admin area."""

import asyncio
from typing import Dict

from sqlalchemy import func
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel import select

from core.logging_config import get_logger
from core.models import BlogPost, Contact, Project, Skill

logger = get_logger(__name__)


class StatsService:
    """Counts gathered concurrently, each on its own session"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _count(self, model, *where) -> int:
        statement = select(func.count()).select_from(model)
        if where:
            statement = statement.where(*where)
        async with self.session_factory() as session:
            result = await session.execute(statement)
            return result.scalar_one()

    async def get_stats(self) -> Dict[str, int]:
        projects, skills, blogs, unread, total = await asyncio.gather(
            self._count(Project),
            self._count(Skill),
            self._count(BlogPost),
            self._count(Contact, Contact.read == False),  # noqa: E712
            self._count(Contact),
        )
        logger.debug("Dashboard stats computed")
        return {
            "projects": projects,
            "skills": skills,
            "blogs": blogs,
            "messages": unread,
            "totalMessages": total,
        }
