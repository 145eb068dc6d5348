"""Pydantic schemas for course-content API responses."""

from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from ..models import Chapter, EntityStatus, Material, Unit

T = TypeVar('T')


class ApiEnvelope(BaseModel, Generic[T]):
    """Standard response wrapper returned by every endpoint."""
    success: bool = Field(default=True, description="Whether the request succeeded")
    message: str = Field(default="", description="Human-readable status message")
    data: Optional[T] = Field(default=None, description="Response payload")
    timestamp: Optional[int] = Field(default=None, description="Server time (epoch ms)")


class ErrorItem(BaseModel):
    """One entry of a validation error list."""
    message: str = ""
    field: Optional[str] = None


class ErrorBody(BaseModel):
    """Error response body; the message may sit at the top or in `errors`."""
    message: Optional[str] = None
    errors: list[ErrorItem] = Field(default_factory=list)

    def describe(self) -> Optional[str]:
        if self.errors:
            return " | ".join(e.message for e in self.errors if e.message)
        return self.message


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class UnitRecord(_Record):
    """Unit as returned by /units and /chapters/{id}/units."""
    id: str
    title: str = ""
    description: Optional[str] = None
    status: EntityStatus = EntityStatus.INACTIVE
    chapter_id: Optional[str] = Field(default=None, alias='chapterId')
    prerequisite_unit_id: Optional[str] = Field(default=None, alias='prerequisiteUnitId')

    def to_model(self) -> Unit:
        return Unit(
            id=self.id,
            title=self.title,
            description=self.description,
            status=self.status,
            chapter_id=self.chapter_id,
            prerequisite_unit_id=self.prerequisite_unit_id,
        )


class ChapterRecord(_Record):
    """Chapter as returned by /courses/{id}/chapters."""
    id: str
    title: str = ""
    description: Optional[str] = None
    status: EntityStatus = EntityStatus.INACTIVE
    course_id: Optional[str] = Field(default=None, alias='courseId')
    prerequisite_chapter_id: Optional[str] = Field(default=None, alias='prerequisiteChapterId')

    def to_model(self) -> Chapter:
        return Chapter(
            id=self.id,
            title=self.title,
            description=self.description,
            status=self.status,
            course_id=self.course_id,
            prerequisite_chapter_id=self.prerequisite_chapter_id,
        )


class MaterialRecord(_Record):
    """Material as returned by /materials."""
    id: str
    file_url: str = Field(default="", alias='fileUrl')
    type: str = ""
    description: Optional[str] = None
    script: Optional[str] = None
    translation: Optional[str] = None
    unit_id: Optional[str] = Field(default=None, alias='unitId')

    def to_model(self) -> Material:
        return Material(
            id=self.id,
            file_url=self.file_url,
            type=self.type,
            description=self.description or "",
            script=self.script,
            translation=self.translation,
            unit_id=self.unit_id,
        )


# Upload returns the stored file name, sometimes wrapped in a list
UploadData = Union[str, list[Any], dict[str, Any]]
