from datetime import datetime, timezone
from typing import Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from coursefiles.core.errors import StorageFailureError
from coursefiles.models.course import Module
from coursefiles.models.file import File

logger = logging.getLogger(__name__)


class FileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, file_id: int) -> Optional[File]:
        result = await self.db.execute(select(File).where(File.id == file_id))
        return result.scalar_one_or_none()
    
    async def get_with_module(self, file_id: int) -> Optional[File]:
        result = await self.db.execute(
            select(File)
            .options(joinedload(File.module).joinedload(Module.course))
            .where(File.id == file_id)
        )
        return result.scalar_one_or_none()
    
    async def add(self, file: File) -> File:
        now = datetime.now(timezone.utc)
        file.created_at = now
        file.updated_at = now
        
        self.db.add(file)
        await self._commit(f"insert file at {file.blob_path}")
        await self.db.refresh(file)
        return file
    
    async def update(self, file: File) -> File:
        file.updated_at = datetime.now(timezone.utc)
        await self._commit(f"update file {file.id}")
        await self.db.refresh(file)
        return file
    
    async def delete(self, file: File) -> None:
        await self.db.delete(file)
        await self._commit(f"delete file {file.id}")
    
    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Metadata store failed to {action}: {e}")
            raise StorageFailureError("Failed to save file metadata") from e
