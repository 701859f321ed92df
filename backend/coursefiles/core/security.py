from datetime import datetime, timedelta, timezone
from typing import Optional, Any
import logging

from jose import jwt, JWTError

from coursefiles.core.config import Settings

logger = logging.getLogger(__name__)


def create_access_token(
    settings: Settings,
    subject: str,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[dict[str, Any]] = None,
) -> str:
    if not settings.JWT_SECRET_KEY:
        raise RuntimeError("JWT_SECRET_KEY is not configured")
    
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    
    to_encode = {
        "sub": subject,
        "exp": expire,
        "iat": now,
    }
    if settings.JWT_ISSUER:
        to_encode["iss"] = settings.JWT_ISSUER
    if settings.JWT_AUDIENCE:
        to_encode["aud"] = settings.JWT_AUDIENCE
    if extra_claims:
        to_encode.update(extra_claims)
    
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(settings: Settings, token: str) -> Optional[dict[str, Any]]:
    """
    Verify signature, expiry and (when configured) issuer and audience.

    Returns the claim set, or None when the token does not verify.
    """
    if not settings.JWT_SECRET_KEY:
        return None
    
    options = {
        "verify_aud": bool(settings.JWT_AUDIENCE),
        "verify_iss": bool(settings.JWT_ISSUER),
        "require_exp": True,
        "leeway": 0,
    }
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options=options,
        )
    except JWTError as e:
        logger.warning(f"Local token validation failed: {e}")
        return None
