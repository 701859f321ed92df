"""
Explicit service wiring.

Each interface is mapped to a provider when the application starts. Singleton
providers are built once; the others are called per request with the request
context (currently the database session) and the registry itself, so they can
resolve their own collaborators.
"""
from typing import Any, Callable, TypeVar
from datetime import timedelta

import httpx

from coursefiles.core.config import Settings
from coursefiles.repositories.file_repository import FileRepository
from coursefiles.repositories.module_repository import ModuleRepository
from coursefiles.services.access_control import AccessControlService
from coursefiles.services.file_service import FileService
from coursefiles.services.storage_service import S3ObjectStore
from coursefiles.services.token_validation import TokenValidator

T = TypeVar("T")


class ServiceRegistry:
    def __init__(self):
        self._providers: dict[type, Callable[..., Any]] = {}
        self._singletons: dict[type, Any] = {}
    
    def register(self, interface: type, provider: Callable[..., Any], singleton: bool = False) -> None:
        self._singletons.pop(interface, None)
        if singleton:
            self._singletons[interface] = provider(self)
            self._providers.pop(interface, None)
        else:
            self._providers[interface] = provider
    
    def register_instance(self, interface: type, instance: Any) -> None:
        self._providers.pop(interface, None)
        self._singletons[interface] = instance
    
    def resolve(self, interface: type[T], **context: Any) -> T:
        if interface in self._singletons:
            return self._singletons[interface]
        try:
            provider = self._providers[interface]
        except KeyError:
            raise LookupError(f"No provider registered for {interface.__name__}") from None
        return provider(self, **context)


def build_registry(settings: Settings, http_client: httpx.AsyncClient | None = None) -> ServiceRegistry:
    registry = ServiceRegistry()
    
    registry.register_instance(Settings, settings)
    registry.register(S3ObjectStore, lambda r: S3ObjectStore(settings), singleton=True)
    registry.register(TokenValidator, lambda r: TokenValidator(settings, http_client), singleton=True)
    
    registry.register(FileRepository, lambda r, db: FileRepository(db))
    registry.register(ModuleRepository, lambda r, db: ModuleRepository(db))
    registry.register(
        AccessControlService,
        lambda r, db: AccessControlService(
            r.resolve(ModuleRepository, db=db),
            r.resolve(FileRepository, db=db),
            max_course_assignments=settings.MAX_COURSE_ASSIGNMENTS,
        ),
    )
    registry.register(
        FileService,
        lambda r, db: FileService(
            r.resolve(FileRepository, db=db),
            r.resolve(ModuleRepository, db=db),
            r.resolve(S3ObjectStore),
            r.resolve(AccessControlService, db=db),
            max_upload_size_bytes=settings.MAX_UPLOAD_SIZE_BYTES,
            download_url_ttl=timedelta(hours=settings.DOWNLOAD_URL_EXPIRE_HOURS),
        ),
    )
    
    return registry
