from datetime import datetime

import pytest
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import attributes

from conftest import COURSE_A1, COURSE_B1, MODULE_A1, MODULE_B1, OTHER_PROFESSOR_ID, PROFESSOR_ID
from coursefiles.core.errors import StorageFailureError
from coursefiles.models.course import ProfessorCourse
from coursefiles.models.file import File


def make_file(blob_path="universities/10/courses/100/modules/1000/a.pdf", module_id=MODULE_A1) -> File:
    return File(
        name="a.pdf",
        file_type="upload",
        file_name="a.pdf",
        blob_path=blob_path,
        blob_container="test-course-files",
        content_type="application/pdf",
        file_size=10,
        module_id=module_id,
        is_active=True,
    )


@pytest.mark.unit
class TestFileRepository:
    async def test_add_assigns_id_and_timestamps(self, file_repository):
        file = await file_repository.add(make_file())

        assert file.id is not None
        assert file.created_at is not None
        assert file.updated_at is not None
        assert (await file_repository.get_by_id(file.id)).blob_path == file.blob_path

    async def test_get_missing(self, file_repository):
        assert await file_repository.get_by_id(404) is None
        assert await file_repository.get_with_module(404) is None

    async def test_get_with_module_loads_course(self, file_repository):
        file = await file_repository.add(make_file())

        loaded = await file_repository.get_with_module(file.id)

        assert loaded.module.name == "Kinematics"
        assert loaded.module.course.id == COURSE_A1

    async def test_storage_path_is_unique(self, file_repository):
        await file_repository.add(make_file())

        with pytest.raises(StorageFailureError, match="Failed to save file metadata"):
            await file_repository.add(make_file())

    async def test_session_usable_after_failed_insert(self, file_repository):
        await file_repository.add(make_file())
        with pytest.raises(StorageFailureError):
            await file_repository.add(make_file())

        other = await file_repository.add(make_file(blob_path="other.pdf"))

        assert other.id is not None

    async def test_update_refreshes_timestamp(self, file_repository, db):
        file = await file_repository.add(make_file())
        file.updated_at = datetime(2020, 1, 1)
        await db.commit()

        file.name = "renamed.pdf"
        updated = await file_repository.update(file)

        assert updated.name == "renamed.pdf"
        assert updated.updated_at.year > 2020

    async def test_delete(self, file_repository):
        file = await file_repository.add(make_file())

        await file_repository.delete(file)

        assert await file_repository.get_by_id(file.id) is None


@pytest.mark.unit
class TestModuleRepository:
    async def test_get_with_details(self, module_repository):
        module = await module_repository.get_with_details(MODULE_B1)

        assert module.course_id == COURSE_B1
        assert module.course.university_id == 20

    async def test_get_by_id_leaves_course_unloaded(self, module_repository):
        module = await module_repository.get_by_id(MODULE_A1)

        assert "course" not in attributes.instance_state(module).dict

    async def test_collections_are_never_loaded_implicitly(self, module_repository):
        module = await module_repository.get_with_details(MODULE_A1)

        with pytest.raises(InvalidRequestError):
            module.files
        with pytest.raises(InvalidRequestError):
            module.course.modules

    async def test_missing(self, module_repository):
        assert await module_repository.get_with_details(9999) is None

    async def test_professor_course_ids(self, module_repository):
        assert await module_repository.get_professor_course_ids(PROFESSOR_ID, limit=10) == [COURSE_A1]
        assert await module_repository.get_professor_course_ids(OTHER_PROFESSOR_ID, limit=10) == [COURSE_B1]
        assert await module_repository.get_professor_course_ids(12345, limit=10) == []

    async def test_professor_course_ids_limited(self, module_repository, db):
        db.add(ProfessorCourse(professor_id=PROFESSOR_ID, course_id=COURSE_B1))
        await db.commit()

        assert await module_repository.get_professor_course_ids(PROFESSOR_ID, limit=1) == [COURSE_A1]
