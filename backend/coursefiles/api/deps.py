from typing import Optional, Annotated
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from coursefiles.core.database import get_db
from coursefiles.core.errors import AuthFailureError, ForbiddenError
from coursefiles.core.identity import Identity
from coursefiles.core.registry import ServiceRegistry
from coursefiles.models.enums import UserType
from coursefiles.services.file_service import FileService
from coursefiles.services.token_validation import TokenValidator

security = HTTPBearer(auto_error=False)

PROFESSOR_OR_ABOVE = {UserType.PROFESSOR, UserType.SUPER_ADMIN}


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry


async def get_current_user(
    registry: Annotated[ServiceRegistry, Depends(get_registry)],
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)] = None,
) -> Identity:
    if not credentials or not credentials.credentials:
        raise AuthFailureError("Not authenticated")
    
    validator = registry.resolve(TokenValidator)
    identity = await validator.validate(credentials.credentials)
    if identity is None:
        raise AuthFailureError("Invalid or expired token")
    
    return identity


async def get_current_professor(
    current_user: Annotated[Identity, Depends(get_current_user)],
) -> Identity:
    if current_user.user_type not in PROFESSOR_OR_ABOVE:
        raise ForbiddenError("Professor access required")
    return current_user


def get_file_service(
    registry: Annotated[ServiceRegistry, Depends(get_registry)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FileService:
    return registry.resolve(FileService, db=db)
