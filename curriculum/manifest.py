"""YAML manifests describing a unit and its materials.

Example:

    unit:
      id: JPD113-C01-U01
      title: Greetings
      description: Everyday greetings and self-introduction
      chapter_id: JPD113-C01
      prerequisite_unit_id: null
    materials:
      - skill: KANJI
        file: files/JPD113__CHAPTER_01__UNIT_01__KANJI__JA_VI__0001.pdf
      - skill: LISTENING
        file: files/JPD113__CHAPTER_01__UNIT_01__LISTENING__JA_VI__0002.mp3
        script: "..."
        translation: "..."

Relative file paths are resolved against the manifest's directory.
"""

from pathlib import Path
from typing import Optional, Union

import yaml

from .exceptions import MissingFieldError, ValidationError
from .models import EntityStatus, MaterialDraft, SelectedFile, SkillCategory, UnitDraft


def _unit_from_dict(data: dict) -> UnitDraft:
    for key in ('id', 'title', 'description', 'chapter_id'):
        if not str(data.get(key) or '').strip():
            raise MissingFieldError(f"unit.{key}")

    try:
        status = EntityStatus(str(data.get('status', EntityStatus.INACTIVE.value)).upper())
    except ValueError as e:
        raise ValidationError(f"Invalid unit status: {data.get('status')!r}",
                              field='unit.status') from e

    return UnitDraft(
        id=str(data['id']),
        title=str(data['title']),
        description=str(data['description']),
        chapter_id=str(data['chapter_id']),
        status=status,
        prerequisite_unit_id=data.get('prerequisite_unit_id') or None,
        exam_ids=tuple(str(e) for e in data.get('exam_ids') or ()),
    )


def _material_from_dict(data: dict, base_dir: Path, position: int) -> MaterialDraft:
    skill: Optional[SkillCategory] = None
    if data.get('skill'):
        try:
            skill = SkillCategory(str(data['skill']).upper())
        except ValueError as e:
            raise ValidationError(f"Material {position + 1}: unknown skill {data['skill']!r}",
                                  field='skill', value=data['skill']) from e

    selected_file = None
    if data.get('file'):
        path = Path(data['file'])
        if not path.is_absolute():
            path = base_dir / path
        if not path.is_file():
            raise ValidationError(f"Material {position + 1}: file not found: {path}",
                                  field='file', value=str(path))
        selected_file = SelectedFile.from_path(path)

    return MaterialDraft(
        skill_category=skill,
        selected_file=selected_file,
        script=str(data.get('script') or ''),
        translation=str(data.get('translation') or ''),
    )


def load_manifest(path: Union[str, Path]) -> tuple[UnitDraft, list[MaterialDraft]]:
    """Read a manifest file into a unit draft and its material drafts.

    Raises:
        ValidationError: If the manifest is malformed or references missing files
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Manifest {path} is not valid YAML: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get('unit'), dict):
        raise ValidationError(f"Manifest {path} must contain a 'unit' mapping", field='unit')

    materials = data.get('materials') or []
    if not isinstance(materials, list):
        raise ValidationError("'materials' must be a list", field='materials')

    base_dir = path.parent
    return (
        _unit_from_dict(data['unit']),
        [_material_from_dict(m or {}, base_dir, i) for i, m in enumerate(materials)],
    )
