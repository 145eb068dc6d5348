"""Shared fixtures: an in-memory course-content store and draft builders."""

from typing import Optional

import pytest

from curriculum.api.ports import CourseContentStore
from curriculum.config import ProvisioningConfig
from curriculum.core.pipeline import ProvisioningPipeline
from curriculum.exceptions import ApiError, ConflictError, NotFoundError
from curriculum.models import (
    Chapter,
    Material,
    MaterialDraft,
    MaterialRequest,
    SelectedFile,
    SkillCategory,
    Unit,
    UnitDraft,
)


def material_name(sequence: int, skill: str = "KANJI", ext: str = "pdf") -> str:
    return f"JPD113__CHAPTER_01__UNIT_01__{skill}__JA_VI__{sequence:04d}.{ext}"


def make_file(name: str, size: int = 1024, content_type: Optional[str] = None) -> SelectedFile:
    return SelectedFile.from_bytes(name, b"x" * size, content_type=content_type)


def make_draft(sequence: int, skill: SkillCategory = SkillCategory.KANJI,
               **kwargs) -> MaterialDraft:
    ext = "mp3" if skill == SkillCategory.LISTENING else "pdf"
    return MaterialDraft(
        skill_category=skill,
        selected_file=make_file(material_name(sequence, skill.value, ext)),
        **kwargs,
    )


class FakeStore(CourseContentStore):
    """Records every call; failures are injected per call number."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.existing: dict[str, Material] = {}
        self.units: list[Unit] = []
        self.chapters: list[Chapter] = []
        self.unit_error: Optional[Exception] = None
        self.lookup_error: Optional[Exception] = None
        self.upload_errors: dict[int, Exception] = {}  # upload call number -> error
        self.create_errors: dict[int, Exception] = {}  # create call number -> error
        self.returned_unit_id: Optional[str] = None
        self.created_unit_ids: set[str] = set()
        self._uploads = 0
        self._creates = 0

    def create_unit(self, draft: UnitDraft) -> Unit:
        self.calls.append(('create_unit', draft.id))
        if self.unit_error:
            raise self.unit_error
        unit_id = self.returned_unit_id or draft.id
        if unit_id in self.created_unit_ids:
            raise ConflictError(f"Unit '{unit_id}' already exists")
        self.created_unit_ids.add(unit_id)
        return Unit(
            id=unit_id,
            title=draft.title,
            chapter_id=draft.chapter_id,
            prerequisite_unit_id=draft.prerequisite_unit_id,
        )

    def upload_material_file(self, selected_file: SelectedFile) -> str:
        self.calls.append(('upload', selected_file.name))
        call = self._uploads
        self._uploads += 1
        if call in self.upload_errors:
            raise self.upload_errors[call]
        return f"stored_{selected_file.name}"

    def create_material(self, request: MaterialRequest) -> Material:
        self.calls.append(('create_material', request))
        call = self._creates
        self._creates += 1
        if call in self.create_errors:
            raise self.create_errors[call]
        material = Material(id=request.id, file_url=request.file_reference,
                            type=request.type, unit_id=request.unit_id)
        self.existing[request.id] = material
        return material

    def get_material(self, material_id: str) -> Material:
        self.calls.append(('get_material', material_id))
        if self.lookup_error:
            raise self.lookup_error
        if material_id not in self.existing:
            raise NotFoundError(f"/materials/{material_id}")
        return self.existing[material_id]

    def list_units_by_chapter(self, chapter_id: str) -> list[Unit]:
        return [u for u in self.units if u.chapter_id == chapter_id]

    def list_chapters_by_course(self, course_id: str) -> list[Chapter]:
        return [c for c in self.chapters if c.course_id == course_id]

    def names(self, kind: str) -> list:
        return [c[1] for c in self.calls if c[0] == kind]


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def pipeline(store, sleeps):
    return ProvisioningPipeline(store, config=ProvisioningConfig(), sleep=sleeps.append)


@pytest.fixture
def unit_draft() -> UnitDraft:
    return UnitDraft(
        id="JPD113-C01-U01",
        title="Greetings",
        description="Everyday greetings",
        chapter_id="JPD113-C01",
    )


@pytest.fixture
def api_error():
    return ApiError("Internal server error", status=500)
