# Models module - data classes for chapters, units, and learning materials
from .curriculum import Chapter, Unit, UnitDraft, EntityStatus
from .material import (
    Material,
    MaterialDraft,
    MaterialRequest,
    SelectedFile,
    SkillCategory,
    SkillProfile,
    SKILL_PROFILES,
    skill_profile,
)

__all__ = [
    'Chapter',
    'Unit',
    'UnitDraft',
    'EntityStatus',
    'Material',
    'MaterialDraft',
    'MaterialRequest',
    'SelectedFile',
    'SkillCategory',
    'SkillProfile',
    'SKILL_PROFILES',
    'skill_profile',
]
