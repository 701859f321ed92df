from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from coursefiles.models.course import Module, ProfessorCourse


class ModuleRepository:
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, module_id: int) -> Optional[Module]:
        result = await self.db.execute(select(Module).where(Module.id == module_id))
        return result.scalar_one_or_none()
    
    async def get_with_details(self, module_id: int) -> Optional[Module]:
        """Module with its course loaded, so the owning university is known."""
        result = await self.db.execute(
            select(Module)
            .options(joinedload(Module.course))
            .where(Module.id == module_id)
        )
        return result.scalar_one_or_none()
    
    async def get_professor_course_ids(self, professor_id: int, limit: int) -> list[int]:
        result = await self.db.execute(
            select(ProfessorCourse.course_id)
            .where(ProfessorCourse.professor_id == professor_id)
            .order_by(ProfessorCourse.course_id)
            .limit(limit)
        )
        return list(result.scalars().all())
