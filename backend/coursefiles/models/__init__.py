from coursefiles.models.course import Course, Module, ProfessorCourse
from coursefiles.models.file import File

__all__ = [
    "Course",
    "Module",
    "ProfessorCourse",
    "File",
]
