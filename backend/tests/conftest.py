"""
Shared fixtures: test settings, an in-memory metadata store seeded with a
small university/course/module hierarchy, identities and a fake object store.
"""
from typing import AsyncIterator
from unittest.mock import MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from coursefiles.core.config import Settings
from coursefiles.core.database import Base
from coursefiles.core.identity import Identity
from coursefiles.models import Course, Module, ProfessorCourse
from coursefiles.models.enums import UserType
from coursefiles.repositories import FileRepository, ModuleRepository
from coursefiles.services.access_control import AccessControlService
from coursefiles.services.storage_service import S3ObjectStore

TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"

UNIVERSITY_A = 10
UNIVERSITY_B = 20
COURSE_A1 = 100
COURSE_A2 = 101
COURSE_B1 = 200
MODULE_A1 = 1000
MODULE_A2 = 1001
MODULE_B1 = 2000
MISSING_MODULE = 9999

PROFESSOR_ID = 7
OTHER_PROFESSOR_ID = 8


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: tests for a single component")
    config.addinivalue_line("markers", "integration: tests that drive the HTTP surface")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        JWT_SECRET_KEY=TEST_SECRET,
        AUTH_API_BASE_URL=None,
        S3_ENDPOINT_URL=None,
        S3_ACCESS_KEY_ID="testing",
        S3_SECRET_ACCESS_KEY="testing",
        S3_BUCKET="test-course-files",
        S3_REGION="us-east-1",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as db:
        db.add_all([
            Course(id=COURSE_A1, name="Physics I", university_id=UNIVERSITY_A),
            Course(id=COURSE_A2, name="Chemistry", university_id=UNIVERSITY_A),
            Course(id=COURSE_B1, name="History", university_id=UNIVERSITY_B),
        ])
        await db.flush()
        db.add_all([
            Module(id=MODULE_A1, name="Kinematics", course_id=COURSE_A1),
            Module(id=MODULE_A2, name="Stoichiometry", course_id=COURSE_A2),
            Module(id=MODULE_B1, name="Rome", course_id=COURSE_B1),
            ProfessorCourse(professor_id=PROFESSOR_ID, course_id=COURSE_A1),
            ProfessorCourse(professor_id=OTHER_PROFESSOR_ID, course_id=COURSE_B1),
        ])
        await db.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
async def db(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def file_repository(db) -> FileRepository:
    return FileRepository(db)


@pytest.fixture
def module_repository(db) -> ModuleRepository:
    return ModuleRepository(db)


@pytest.fixture
def access_control(module_repository, file_repository) -> AccessControlService:
    return AccessControlService(module_repository, file_repository)


@pytest.fixture
def object_store() -> MagicMock:
    store = MagicMock(spec=S3ObjectStore)
    store.bucket = "test-course-files"
    store.put.side_effect = lambda path, stream, content_type: f"https://store.test/{path}"
    store.delete.return_value = True
    store.signed_read_url.side_effect = lambda path, ttl: f"https://store.test/{path}?signature=abc"
    store.object_url.side_effect = lambda path: f"https://store.test/{path}"
    return store


def make_identity(user_type, user_id=PROFESSOR_ID, university_id=UNIVERSITY_A, is_admin=False) -> Identity:
    return Identity(
        user_id=user_id,
        username=f"user{user_id}",
        email=f"user{user_id}@uni.test",
        user_type=user_type,
        university_id=university_id,
        is_admin=is_admin,
    )


@pytest.fixture
def professor() -> Identity:
    return make_identity(UserType.PROFESSOR)


@pytest.fixture
def admin_professor() -> Identity:
    return make_identity(UserType.PROFESSOR, user_id=30, is_admin=True)


@pytest.fixture
def super_admin() -> Identity:
    return make_identity(UserType.SUPER_ADMIN, user_id=1, university_id=None)


@pytest.fixture
def student() -> Identity:
    return make_identity(UserType.STUDENT, user_id=50)


@pytest.fixture
def identity_factory():
    return make_identity
