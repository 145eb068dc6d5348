"""Chapter and Unit data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class EntityStatus(str, Enum):
    """Publication status of a chapter or unit."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


@dataclass
class Chapter:
    """A chapter within a course, optionally gated by a sibling chapter."""

    id: str
    title: str = ""
    description: Optional[str] = None
    status: EntityStatus = EntityStatus.INACTIVE
    course_id: Optional[str] = None
    prerequisite_chapter_id: Optional[str] = None

    @property
    def prerequisite_id(self) -> Optional[str]:
        return self.prerequisite_chapter_id or None

    def to_dict(self) -> dict:
        """Convert to the API's camelCase representation."""
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'status': self.status.value,
            'courseId': self.course_id,
            'prerequisiteChapterId': self.prerequisite_chapter_id,
        }


@dataclass
class Unit:
    """A unit (lesson) within a chapter, optionally gated by a sibling unit."""

    id: str
    title: str = ""
    description: Optional[str] = None
    status: EntityStatus = EntityStatus.INACTIVE
    chapter_id: Optional[str] = None
    prerequisite_unit_id: Optional[str] = None

    @property
    def prerequisite_id(self) -> Optional[str]:
        return self.prerequisite_unit_id or None

    def to_dict(self) -> dict:
        """Convert to the API's camelCase representation."""
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'status': self.status.value,
            'chapterId': self.chapter_id,
            'prerequisiteUnitId': self.prerequisite_unit_id,
        }


@dataclass(frozen=True)
class UnitDraft:
    """Parent draft for a provisioning run.

    A unit left partially provisioned is not created again; its remaining
    materials go through `ProvisioningPipeline.resume` with this id.
    """

    id: str
    title: str
    description: str
    chapter_id: str
    status: EntityStatus = EntityStatus.INACTIVE
    prerequisite_unit_id: Optional[str] = None
    exam_ids: tuple[str, ...] = field(default_factory=tuple)

    def to_request(self) -> dict:
        """Build the create-unit request body."""
        return {
            'id': self.id.strip(),
            'title': self.title.strip(),
            'description': self.description.strip(),
            'status': self.status.value,
            'chapterId': self.chapter_id,
            'prerequisiteUnitId': (self.prerequisite_unit_id or '').strip() or None,
            'examIds': list(self.exam_ids),
        }
