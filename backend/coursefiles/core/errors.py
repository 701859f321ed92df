"""Domain errors raised by the services and mapped to HTTP statuses in main."""
from fastapi import status


class FilesError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FilesError):
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(FilesError):
    status_code = status.HTTP_403_FORBIDDEN


class InvalidInputError(FilesError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthFailureError(FilesError):
    status_code = status.HTTP_401_UNAUTHORIZED


class StorageFailureError(FilesError):
    """Object-store or metadata-store I/O failed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
