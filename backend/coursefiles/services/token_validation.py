"""
Bearer-token validation against the platform's auth API, with a local fallback.

The remote authority is asked first. A 401 from it is final. Any other
failure (error status, network error, timeout, unreadable payload) counts as
"remote unavailable" and the token is verified locally with the shared JWT
secret, when one is configured. Nothing raised in here reaches the caller:
``validate`` returns an Identity or None.
"""
from dataclasses import dataclass
from typing import Any, Optional
import enum
import logging

import httpx

from coursefiles.core.config import Settings
from coursefiles.core.identity import Identity, claims_to_identity
from coursefiles.core.security import decode_token

logger = logging.getLogger(__name__)

VALIDATE_TOKEN_PATH = "/api/auth/validate-token"


class RemoteStatus(str, enum.Enum):
    VALID = "valid"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"


@dataclass
class RemoteResult:
    status: RemoteStatus
    claims: Optional[dict[str, Any]] = None


class TokenValidator:
    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self.http_client = http_client
        self.validation_url = None
        if settings.remote_auth_enabled:
            self.validation_url = settings.AUTH_API_BASE_URL.rstrip("/") + VALIDATE_TOKEN_PATH
            logger.info(f"Token validation configured against {self.validation_url}")
        if settings.local_auth_enabled:
            logger.info("Local JWT validation available as fallback")
        if not self.validation_url and not settings.local_auth_enabled:
            logger.warning("No token validation configured; every authenticated request will be rejected")
    
    async def validate(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None
        try:
            return await self._validate(token)
        except Exception as e:
            logger.error(f"Unexpected error during token validation: {e}", exc_info=True)
            return None
    
    async def _validate(self, token: str) -> Optional[Identity]:
        if self.validation_url:
            result = await self.validate_remote(token)
            if result.status == RemoteStatus.REJECTED:
                return None
            if result.status == RemoteStatus.VALID:
                identity = claims_to_identity(result.claims)
                if identity is not None:
                    return identity
                logger.warning("Auth API accepted the token but returned unusable claims")
            logger.warning("Auth API unavailable, falling back to local token validation")
        
        if not self.settings.local_auth_enabled:
            return None
        return self.validate_local(token)
    
    async def validate_remote(self, token: str) -> RemoteResult:
        logger.debug(f"Validating token against {self.validation_url}")
        try:
            if self.http_client is not None:
                response = await self._send(self.http_client, token)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._send(client, token)
        except httpx.TimeoutException:
            logger.error(f"Timeout calling auth API ({self.settings.AUTH_API_TIMEOUT_SECONDS}s limit)")
            return RemoteResult(RemoteStatus.UNAVAILABLE)
        except httpx.HTTPError as e:
            logger.error(f"Failed to reach auth API: {e}")
            return RemoteResult(RemoteStatus.UNAVAILABLE)
        
        if response.status_code == httpx.codes.UNAUTHORIZED:
            logger.debug("Token invalid or expired (401 from auth API)")
            return RemoteResult(RemoteStatus.REJECTED)
        
        if not response.is_success:
            logger.warning(f"Auth API returned {response.status_code}: {response.text[:200]}")
            return RemoteResult(RemoteStatus.UNAVAILABLE)
        
        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"Auth API returned a payload that is not JSON: {e}")
            return RemoteResult(RemoteStatus.UNAVAILABLE)
        
        if not isinstance(payload, dict) or not payload:
            logger.warning("Empty or malformed payload from auth API")
            return RemoteResult(RemoteStatus.UNAVAILABLE)
        
        logger.debug(f"Token valid, claims: {', '.join(payload.keys())}")
        return RemoteResult(RemoteStatus.VALID, claims=payload)
    
    async def _send(self, client: httpx.AsyncClient, token: str) -> httpx.Response:
        return await client.get(
            self.validation_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=self.settings.AUTH_API_TIMEOUT_SECONDS,
        )
    
    def validate_local(self, token: str) -> Optional[Identity]:
        claims = decode_token(self.settings, token)
        if claims is None:
            return None
        return claims_to_identity(claims)
