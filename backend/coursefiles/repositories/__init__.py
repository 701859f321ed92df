from coursefiles.repositories.file_repository import FileRepository
from coursefiles.repositories.module_repository import ModuleRepository

__all__ = ["FileRepository", "ModuleRepository"]
