"""
Multi-tenant access rules for modules and the files attached to them.

Ownership runs university -> course -> module -> file. The rules are an
allow-list: anything that does not match one of them is denied.

- super_admin: every module.
- admin professor: every module whose course belongs to their university.
- professor: modules of the courses they are assigned to.
- anyone else: nothing.
"""
import logging

from coursefiles.core.identity import Identity
from coursefiles.repositories.file_repository import FileRepository
from coursefiles.repositories.module_repository import ModuleRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_COURSE_ASSIGNMENTS = 1000


class AccessControlService:
    def __init__(
        self,
        module_repository: ModuleRepository,
        file_repository: FileRepository,
        max_course_assignments: int = DEFAULT_MAX_COURSE_ASSIGNMENTS,
    ):
        self.modules = module_repository
        self.files = file_repository
        self.max_course_assignments = max_course_assignments
    
    async def professor_course_ids(self, professor_id: int) -> set[int]:
        """Courses assigned to a professor, capped at ``max_course_assignments``."""
        course_ids = await self.modules.get_professor_course_ids(
            professor_id, limit=self.max_course_assignments
        )
        if len(course_ids) >= self.max_course_assignments:
            logger.warning(
                f"Professor {professor_id} has reached the maximum course assignment "
                f"limit of {self.max_course_assignments}"
            )
        return set(course_ids)
    
    async def can_access_module(self, user: Identity, module_id: int) -> bool:
        if user.is_super_admin:
            return True
        
        module = await self.modules.get_with_details(module_id)
        if module is None or module.course is None:
            return False
        
        if user.is_admin_professor:
            return user.university_id is not None and user.university_id == module.course.university_id
        
        if user.is_professor:
            return module.course_id in await self.professor_course_ids(user.user_id)
        
        return False
    
    async def can_access_file(self, user: Identity, file_id: int) -> bool:
        file = await self.files.get_by_id(file_id)
        if file is None:
            return False
        return await self.can_access_module(user, file.module_id)
