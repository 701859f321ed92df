"""
Caller identity reconstructed from a verified claim set.

Claims arrive either from the remote token authority (a flat JSON map) or
from a locally verified JWT body. Both use the same mapping.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional
import logging

from coursefiles.models.enums import UserType

logger = logging.getLogger(__name__)

# .NET issuers emit the long claim-type URIs instead of the short JWT names
_CLAIMS_NS = "http://schemas.xmlsoap.org/ws/2005/05/identity/claims/"
_ROLE_URI = "http://schemas.microsoft.com/ws/2008/06/identity/claims/role"

USER_ID_CLAIMS = ("sub", "userId", "user_id", _CLAIMS_NS + "nameidentifier")
NAME_CLAIMS = ("name", "username", "unique_name", _CLAIMS_NS + "name")
EMAIL_CLAIMS = ("email", _CLAIMS_NS + "emailaddress")
ROLE_CLAIMS = ("role", "type", "userType", "user_type", _ROLE_URI)
UNIVERSITY_CLAIMS = ("UniversityId", "universityId", "university_id")
ADMIN_CLAIMS = ("isAdmin", "is_admin", "IsAdmin")


@dataclass(frozen=True)
class Identity:
    user_id: int
    username: str
    email: str
    user_type: Optional[UserType]
    university_id: Optional[int] = None
    is_admin: bool = False
    
    @property
    def is_super_admin(self) -> bool:
        return self.user_type == UserType.SUPER_ADMIN
    
    @property
    def is_professor(self) -> bool:
        return self.user_type == UserType.PROFESSOR
    
    @property
    def is_admin_professor(self) -> bool:
        return self.is_professor and self.is_admin


def _first(claims: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        value = claims.get(name)
        if value is not None and value != "":
            return value
    return None


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() == "true"


def _as_user_type(value: Any) -> Optional[UserType]:
    # Some issuers send the role as a single-element list
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    try:
        return UserType(str(value).strip().lower())
    except ValueError:
        return None


def claims_to_identity(claims: Mapping[str, Any]) -> Optional[Identity]:
    """Map a claim set to an Identity; None when no usable user id is present."""
    user_id = _as_int(_first(claims, USER_ID_CLAIMS))
    if not user_id:
        logger.warning("Claim set has no usable user id")
        return None
    
    user_type = _as_user_type(_first(claims, ROLE_CLAIMS))
    if user_type is None:
        logger.info(f"User {user_id} has no recognised user type; access will be denied")
    
    return Identity(
        user_id=user_id,
        username=str(_first(claims, NAME_CLAIMS) or "unknown"),
        email=str(_first(claims, EMAIL_CLAIMS) or ""),
        user_type=user_type,
        university_id=_as_int(_first(claims, UNIVERSITY_CLAIMS)),
        is_admin=_as_bool(_first(claims, ADMIN_CLAIMS)),
    )
