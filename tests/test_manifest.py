import pytest

from curriculum.exceptions import MissingFieldError, ValidationError
from curriculum.manifest import load_manifest
from curriculum.models import EntityStatus, SkillCategory

KANJI = "JPD113__CHAPTER_01__UNIT_01__KANJI__JA_VI__0001.pdf"
LISTENING = "JPD113__CHAPTER_01__UNIT_01__LISTENING__JA_VI__0002.mp3"


@pytest.fixture
def manifest_dir(tmp_path):
    files = tmp_path / "files"
    files.mkdir()
    (files / KANJI).write_bytes(b"%PDF-1.4")
    (files / LISTENING).write_bytes(b"ID3")
    return tmp_path


def write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


def test_loads_unit_and_materials(manifest_dir):
    path = write(manifest_dir / "unit.yaml", f"""
unit:
  id: JPD113-C01-U02
  title: Greetings
  description: Everyday greetings
  chapter_id: JPD113-C01
  prerequisite_unit_id: JPD113-C01-U01
materials:
  - skill: kanji
    file: files/{KANJI}
  - skill: LISTENING
    file: files/{LISTENING}
    script: もしもし
    translation: Alo
  - {{}}
""")
    unit, materials = load_manifest(path)

    assert unit.id == "JPD113-C01-U02"
    assert unit.status == EntityStatus.INACTIVE
    assert unit.prerequisite_unit_id == "JPD113-C01-U01"
    assert len(materials) == 3
    assert materials[0].skill_category == SkillCategory.KANJI
    assert materials[0].selected_file.name == KANJI
    assert materials[0].selected_file.size == len(b"%PDF-1.4")
    assert materials[1].script == "もしもし"
    assert not materials[2].is_filled


def test_missing_unit_field(manifest_dir):
    path = write(manifest_dir / "unit.yaml", "unit:\n  id: U1\n  title: T\n  chapter_id: C1\n")
    with pytest.raises(MissingFieldError) as exc_info:
        load_manifest(path)
    assert exc_info.value.field == "unit.description"


def test_missing_file(manifest_dir):
    path = write(manifest_dir / "unit.yaml", """
unit: {id: U1, title: T, description: D, chapter_id: C1}
materials:
  - skill: KANJI
    file: files/absent.pdf
""")
    with pytest.raises(ValidationError, match="file not found"):
        load_manifest(path)


def test_unknown_skill(manifest_dir):
    path = write(manifest_dir / "unit.yaml", f"""
unit: {{id: U1, title: T, description: D, chapter_id: C1}}
materials:
  - skill: SPEAKING
    file: files/{KANJI}
""")
    with pytest.raises(ValidationError, match="unknown skill"):
        load_manifest(path)


def test_not_a_mapping(manifest_dir):
    path = write(manifest_dir / "unit.yaml", "- just\n- a list\n")
    with pytest.raises(ValidationError):
        load_manifest(path)
