from datetime import timedelta
from typing import BinaryIO, Optional
import logging

from coursefiles.core.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    StorageFailureError,
)
from coursefiles.core.identity import Identity
from coursefiles.core.metrics import track_file_operation
from coursefiles.models.enums import FileType
from coursefiles.models.file import File
from coursefiles.repositories.file_repository import FileRepository
from coursefiles.repositories.module_repository import ModuleRepository
from coursefiles.services.access_control import AccessControlService
from coursefiles.services.filename import sanitize_filename
from coursefiles.services.storage_service import (
    S3ObjectStore,
    SigningUnavailableError,
    build_storage_path,
)

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE_BYTES = 15 * 1024 * 1024


class FileService:
    """Upload, download-link and delete use cases for module files."""

    def __init__(
        self,
        file_repository: FileRepository,
        module_repository: ModuleRepository,
        object_store: S3ObjectStore,
        access_control: AccessControlService,
        max_upload_size_bytes: int = MAX_UPLOAD_SIZE_BYTES,
        download_url_ttl: timedelta = timedelta(hours=1),
    ):
        self.files = file_repository
        self.modules = module_repository
        self.store = object_store
        self.access = access_control
        self.max_upload_size_bytes = max_upload_size_bytes
        self.download_url_ttl = download_url_ttl
    
    @track_file_operation("upload")
    async def upload_file(
        self,
        module_id: int,
        file_stream: BinaryIO,
        original_filename: str,
        content_type: str,
        file_size: int,
        custom_name: Optional[str],
        current_user: Identity,
    ) -> File:
        module = await self.modules.get_with_details(module_id)
        if module is None:
            raise NotFoundError("Module not found")
        
        if not await self.access.can_access_module(current_user, module_id):
            logger.warning(f"User {current_user.user_id} denied upload to module {module_id}")
            raise ForbiddenError("You do not have access to upload files to this module")
        
        if file_size > self.max_upload_size_bytes:
            limit_mb = self.max_upload_size_bytes // (1024 * 1024)
            raise InvalidInputError(f"File size exceeds {limit_mb}MB limit")
        
        sanitized_filename = sanitize_filename(original_filename)
        if not sanitized_filename:
            raise InvalidInputError("Invalid filename")
        
        display_name = sanitized_filename
        if custom_name and custom_name.strip():
            display_name = sanitize_filename(custom_name) or sanitized_filename
        
        blob_path = build_storage_path(
            module.course.university_id,
            module.course_id,
            module_id,
            sanitized_filename,
        )
        
        # Nothing is recorded unless the object write succeeded
        blob_url = await self.store.put(blob_path, file_stream, content_type)
        
        file = File(
            name=display_name,
            file_type=FileType.UPLOAD.value,
            file_name=sanitized_filename,
            blob_path=blob_path,
            blob_url=blob_url,
            blob_container=self.store.bucket,
            content_type=content_type,
            file_size=file_size,
            module_id=module_id,
            is_active=True,
        )
        try:
            file = await self.files.add(file)
        except StorageFailureError:
            logger.error(f"Object {blob_path} is orphaned: metadata insert failed")
            raise
        
        logger.info(f"Uploaded file {file.id} ({display_name}) to module {module_id} at {blob_path}")
        return file
    
    async def get_file(self, file_id: int, current_user: Identity) -> File:
        """File with its module and course loaded, for the detail view."""
        file = await self.files.get_with_module(file_id)
        if file is None:
            raise NotFoundError("File not found")
        
        if not await self.access.can_access_module(current_user, file.module_id):
            raise ForbiddenError("You do not have access to this file")
        
        return file
    
    @track_file_operation("download")
    async def get_download_url(self, file_id: int, current_user: Identity) -> str:
        file = await self.files.get_by_id(file_id)
        if file is None:
            raise NotFoundError("File not found")
        
        if not await self.access.can_access_file(current_user, file_id):
            logger.warning(f"User {current_user.user_id} denied download of file {file_id}")
            raise ForbiddenError("You do not have access to this file")
        
        path = self._storage_path(file)
        try:
            return await self.store.signed_read_url(path, ttl=self.download_url_ttl)
        except SigningUnavailableError:
            logger.warning("Cannot generate signed URL, returning direct object URL")
            return self.store.object_url(path)
    
    @track_file_operation("delete")
    async def delete_file(self, file_id: int, current_user: Identity) -> None:
        file = await self.files.get_by_id(file_id)
        if file is None:
            raise NotFoundError("File not found")
        
        if not await self.access.can_access_file(current_user, file_id):
            logger.warning(f"User {current_user.user_id} denied delete of file {file_id}")
            raise ForbiddenError("You do not have access to delete this file")
        
        path = file.blob_path or file.file_name
        if not path:
            logger.warning(f"File {file_id} has no stored object, removing metadata only")
        else:
            # A hard failure here leaves the metadata row in place
            existed = await self.store.delete(path)
            if existed:
                logger.info(f"Deleted object {path} for file {file_id}")
            else:
                logger.warning(f"Object {path} for file {file_id} was already absent")
        
        await self.files.delete(file)
    
    @staticmethod
    def _storage_path(file: File) -> str:
        path = file.blob_path or file.file_name
        if not path:
            raise NotFoundError("File has no stored content")
        return path
