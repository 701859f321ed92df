import enum


class UserType(str, enum.Enum):
    STUDENT = "student"
    PROFESSOR = "professor"
    SUPER_ADMIN = "super_admin"


class FileType(str, enum.Enum):
    UPLOAD = "upload"
