from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from sqlalchemy import inspect

from coursefiles.models.file import File


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class FileDetailResponse(CamelModel):
    id: int
    name: str
    file_type: str
    file_name: Optional[str] = None
    blob_path: Optional[str] = None
    blob_url: Optional[str] = None
    blob_container: Optional[str] = None
    content_type: Optional[str] = None
    file_size: Optional[int] = None
    module_id: int
    module_name: Optional[str] = None
    course_id: Optional[int] = None
    course_name: Optional[str] = None
    university_id: Optional[int] = None
    is_active: bool
    openai_file_id: Optional[str] = None
    anthropic_file_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_file(cls, file: File) -> "FileDetailResponse":
        detail = cls.model_validate(file)
        # Module and course are only reported when they were loaded with the file
        if "module" not in inspect(file).unloaded and file.module is not None:
            module = file.module
            detail.module_name = module.name
            detail.course_id = module.course_id
            if "course" not in inspect(module).unloaded and module.course is not None:
                detail.course_name = module.course.name
                detail.university_id = module.course.university_id
        return detail


class DownloadUrlResponse(CamelModel):
    download_url: str


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    service: str
    timestamp: datetime
