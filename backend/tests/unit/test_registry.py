from unittest.mock import MagicMock

import pytest

from coursefiles.core.config import Settings
from coursefiles.core.registry import ServiceRegistry, build_registry
from coursefiles.services.access_control import AccessControlService
from coursefiles.services.file_service import FileService
from coursefiles.services.storage_service import S3ObjectStore
from coursefiles.services.token_validation import TokenValidator


class Clock:
    pass


@pytest.mark.unit
class TestServiceRegistry:
    def test_transient_provider_called_per_resolve(self):
        registry = ServiceRegistry()
        registry.register(Clock, lambda r: Clock())

        assert registry.resolve(Clock) is not registry.resolve(Clock)

    def test_singleton_built_once(self):
        registry = ServiceRegistry()
        provider = MagicMock(side_effect=lambda r: Clock())
        registry.register(Clock, provider, singleton=True)

        assert registry.resolve(Clock) is registry.resolve(Clock)
        provider.assert_called_once_with(registry)

    def test_context_is_passed_to_provider(self):
        registry = ServiceRegistry()
        registry.register(Clock, lambda r, db: ("clock", db))

        assert registry.resolve(Clock, db="session") == ("clock", "session")

    def test_instance_replaces_provider(self):
        registry = ServiceRegistry()
        registry.register(Clock, lambda r: Clock())
        fixed = Clock()
        registry.register_instance(Clock, fixed)

        assert registry.resolve(Clock) is fixed

    def test_unknown_interface(self):
        with pytest.raises(LookupError, match="Clock"):
            ServiceRegistry().resolve(Clock)


@pytest.mark.unit
class TestBuildRegistry:
    def test_wires_request_services(self, settings, db):
        settings = settings.model_copy(update={"MAX_UPLOAD_SIZE_BYTES": 1024, "MAX_COURSE_ASSIGNMENTS": 5})
        registry = build_registry(settings)

        service = registry.resolve(FileService, db=db)

        assert service.max_upload_size_bytes == 1024
        assert service.store is registry.resolve(S3ObjectStore)
        assert service.files.db is db
        assert service.access.max_course_assignments == 5
        assert registry.resolve(Settings) is settings

    def test_singletons(self, settings):
        registry = build_registry(settings)

        assert registry.resolve(TokenValidator) is registry.resolve(TokenValidator)
        assert registry.resolve(S3ObjectStore).bucket == "test-course-files"

    def test_request_services_are_fresh(self, settings, db):
        registry = build_registry(settings)

        assert registry.resolve(AccessControlService, db=db) is not registry.resolve(AccessControlService, db=db)
