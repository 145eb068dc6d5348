"""Course-content store interface consumed by the provisioning pipeline.

Implementations normalize every failure into ``curriculum.exceptions.ApiError``
subclasses before it reaches the core.
"""

from abc import ABC, abstractmethod

from ..models import Chapter, Material, MaterialRequest, SelectedFile, Unit, UnitDraft


class CourseContentStore(ABC):
    """Operations on the authoritative course-content store."""

    @abstractmethod
    def create_unit(self, draft: UnitDraft) -> Unit:
        """Create (or, for a known id, update) a unit and return the stored record."""
        ...

    @abstractmethod
    def upload_material_file(self, selected_file: SelectedFile) -> str:
        """Upload a file and return its stored file reference."""
        ...

    @abstractmethod
    def create_material(self, request: MaterialRequest) -> Material:
        """Register a material against an uploaded file and a unit."""
        ...

    @abstractmethod
    def get_material(self, material_id: str) -> Material:
        """Fetch a material. Raises NotFoundError when it does not exist."""
        ...

    @abstractmethod
    def list_units_by_chapter(self, chapter_id: str) -> list[Unit]:
        ...

    @abstractmethod
    def list_chapters_by_course(self, course_id: str) -> list[Chapter]:
        ...
