"""Material drafts, selected files, and the skill category table."""

import io
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional, Union


class SkillCategory(str, Enum):
    """Skill a learning material trains."""
    LISTENING = "LISTENING"
    KANJI = "KANJI"
    READING = "READING"
    WRITING = "WRITING"
    GRAMMAR = "GRAMMAR"
    VOCAB = "VOCAB"


@dataclass(frozen=True)
class SkillProfile:
    """How a skill category maps onto a persisted material."""
    material_type: str
    has_transcript: bool = False  # script/translation fields apply


SKILL_PROFILES: dict[SkillCategory, SkillProfile] = {
    SkillCategory.LISTENING: SkillProfile(material_type="LISTENING", has_transcript=True),
    SkillCategory.KANJI: SkillProfile(material_type="KANJI"),
    SkillCategory.READING: SkillProfile(material_type="READING"),
    SkillCategory.WRITING: SkillProfile(material_type="WRITING"),
    SkillCategory.GRAMMAR: SkillProfile(material_type="GRAMMAR"),
    SkillCategory.VOCAB: SkillProfile(material_type="VOCAB"),
}


def skill_profile(category: Union[SkillCategory, str]) -> SkillProfile:
    """Look up the profile for a category or its name.

    Raises:
        ValueError: If the category is not a known skill
    """
    return SKILL_PROFILES[SkillCategory(category)]


@dataclass(frozen=True)
class SelectedFile:
    """A file chosen for upload: either a path on disk or in-memory bytes."""

    name: str
    size: int
    content_type: Optional[str] = None
    path: Optional[Path] = None
    data: Optional[bytes] = None

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> 'SelectedFile':
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            size=path.stat().st_size,
            content_type=content_type,
            path=path,
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes,
                   content_type: Optional[str] = None) -> 'SelectedFile':
        if content_type is None:
            content_type, _ = mimetypes.guess_type(name)
        return cls(name=name, size=len(data), content_type=content_type, data=data)

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()

    def open(self) -> BinaryIO:
        """Open the file contents for reading. Caller closes the handle."""
        if self.data is not None:
            return io.BytesIO(self.data)
        if self.path is not None:
            return open(self.path, 'rb')
        raise ValueError(f"Selected file '{self.name}' has no content source")


@dataclass(frozen=True)
class MaterialDraft:
    """A material slot on the create-unit form.

    Slots missing a skill category or a file are unfilled and skipped.
    """

    skill_category: Optional[SkillCategory] = None
    selected_file: Optional[SelectedFile] = None
    script: str = ""
    translation: str = ""

    @property
    def is_filled(self) -> bool:
        return bool(self.skill_category) and self.selected_file is not None


@dataclass
class Material:
    """A persisted learning material."""

    id: str
    file_url: str
    type: str
    description: str = ""
    script: Optional[str] = None
    translation: Optional[str] = None
    unit_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'fileUrl': self.file_url,
            'type': self.type,
            'description': self.description,
            'script': self.script,
            'translation': self.translation,
            'unitId': self.unit_id,
        }


@dataclass(frozen=True)
class MaterialRequest:
    """Create-material payload: a validated draft bound to its uploaded file."""

    id: str
    file_reference: str
    type: str
    unit_id: str
    script: str = ""
    translation: str = ""

    def to_request(self) -> dict:
        return {
            'id': self.id,
            'fileUrl': self.file_reference,
            'type': self.type,
            'script': self.script,
            'translation': self.translation,
            'unitId': self.unit_id,
        }
