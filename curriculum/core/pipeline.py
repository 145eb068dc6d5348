"""Unit provisioning pipeline - creates a unit and then its materials."""

import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence

from ..api.ports import CourseContentStore
from ..config import ProvisioningConfig
from ..exceptions import (
    ApiError,
    ChildProvisioningError,
    CurriculumError,
    MissingFieldError,
    NoMaterialsError,
    ParentCreationError,
    ValidationError,
)
from ..logging_config import LogContext, get_logger, log_exception
from ..models import MaterialDraft, MaterialRequest, SelectedFile, UnitDraft, skill_profile
from .identifiers import IdentifierValidator

logger = get_logger('pipeline')

UNIT_ID_PATTERN = re.compile(r'[A-Za-z0-9_-]+')


class Stage(str, Enum):
    """Pipeline stage a failure is attributed to."""
    VALIDATE = "Validate"
    CREATE_PARENT = "CreateParent"
    PROVISION_CHILDREN = "ProvisionChildren"


@dataclass(frozen=True)
class StagedMaterial:
    """A material draft that passed validation, ready to provision."""
    draft_index: int
    identifier: str
    material_type: str
    selected_file: SelectedFile
    script: str
    translation: str


@dataclass
class PipelineFailure:
    """Where and why a run stopped.

    Attributes:
        stage: Stage that failed
        reason: Human-readable description
        child_index: Zero-based index among valid materials (ProvisionChildren only)
        error: The structured error
    """
    stage: Stage
    reason: str
    child_index: Optional[int] = None
    error: Optional[CurriculumError] = None


@dataclass
class PipelineResult:
    """Outcome of one provisioning run."""
    created_child_count: int = 0
    failure: Optional[PipelineFailure] = None
    parent_id: Optional[str] = None
    created_material_ids: list[str] = field(default_factory=list)
    remaining_material_ids: list[str] = field(default_factory=list)  # staged, never created
    validation_errors: list[ValidationError] = field(default_factory=list)
    unverified_identifiers: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failure is None

    @property
    def uniqueness_verified(self) -> bool:
        """False when some identifier was only checked locally."""
        return not self.unverified_identifiers

    def raise_for_failure(self) -> None:
        """Raise the structured error of a failed run."""
        if self.failure is None:
            return
        if self.failure.error is not None:
            raise self.failure.error
        raise CurriculumError(self.failure.reason)


ProgressCallback = Callable[[int, int, str, str], None]


class ProvisioningPipeline:
    """
    Creates a unit and its learning materials in one run.

    Stages:
    1. Validate - every filled material draft and the unit draft, no network writes
    2. CreateParent - create the unit once
    3. Settle - short fixed delay before materials reference the new unit
    4. ProvisionChildren - upload then register each material, one at a time

    Failures are returned in the result, never retried, and never rolled
    back: a unit created before a material failure stays in place. Its
    remaining materials can be provisioned later with `resume`.
    """

    def __init__(
        self,
        store: CourseContentStore,
        config: Optional[ProvisioningConfig] = None,
        validator: Optional[IdentifierValidator] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.config = config or ProvisioningConfig()
        self.validator = validator or IdentifierValidator(
            lookup=store.get_material,
            max_file_size=self.config.max_file_size_bytes,
            allowed_extensions=self.config.allowed_extensions,
            allowed_content_types=self.config.allowed_content_types,
        )
        self._sleep = sleep

    # ==================== VALIDATE ====================

    def _validate_parent(self, draft: UnitDraft) -> list[ValidationError]:
        errors: list[ValidationError] = []
        if not draft.id.strip():
            errors.append(MissingFieldError('id', "Unit id is required"))
        elif not UNIT_ID_PATTERN.fullmatch(draft.id):
            errors.append(ValidationError(
                "Unit id may only contain letters, digits, '-' and '_'",
                field='id',
                value=draft.id,
            ))
        if not draft.title.strip():
            errors.append(MissingFieldError('title', "Unit title is required"))
        if not draft.description.strip():
            errors.append(MissingFieldError('description', "Unit description is required"))
        if not (draft.chapter_id or '').strip():
            errors.append(MissingFieldError('chapter_id', "Chapter id is required"))
        return errors

    def validate(
        self,
        parent_draft: Optional[UnitDraft],
        child_drafts: Sequence[MaterialDraft],
    ) -> tuple[list[StagedMaterial], list[ValidationError], list[str]]:
        """
        Validate the unit draft and every filled material draft.

        Args:
            parent_draft: Unit to create, or None when the unit already exists
            child_drafts: Material slots

        Returns:
            (staged materials, validation errors, identifiers whose
            uniqueness could not be confirmed remotely)
        """
        errors = self._validate_parent(parent_draft) if parent_draft is not None else []
        staged: list[StagedMaterial] = []
        unverified: list[str] = []
        pending: set[str] = set()

        filled = [(i, d) for i, d in enumerate(child_drafts) if d.is_filled]
        skipped = len(child_drafts) - len(filled)
        if skipped:
            logger.debug(f"Skipping {skipped} unfilled material slot(s)")

        if not filled and self.config.require_material:
            errors.append(NoMaterialsError())

        for child_index, (draft_index, draft) in enumerate(filled):
            try:
                profile = skill_profile(draft.skill_category)
            except ValueError:
                errors.append(ValidationError(
                    f"Unknown skill category: {draft.skill_category!r}",
                    field='skill_category',
                    value=draft.skill_category,
                    child_index=child_index,
                ))
                continue

            outcome = self.validator.validate(draft.selected_file, pending, child_index)
            if not outcome.ok:
                errors.append(outcome.error)
                continue
            if not outcome.verified:
                unverified.append(outcome.identifier)

            pending.add(outcome.identifier)
            staged.append(StagedMaterial(
                draft_index=draft_index,
                identifier=outcome.identifier,
                material_type=profile.material_type,
                selected_file=draft.selected_file,
                script=draft.script if profile.has_transcript else "",
                translation=draft.translation if profile.has_transcript else "",
            ))

        return staged, errors, unverified

    # ==================== RUN ====================

    def run(
        self,
        parent_draft: UnitDraft,
        child_drafts: Sequence[MaterialDraft],
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """
        Provision a unit and its materials.

        Args:
            parent_draft: The unit to create
            child_drafts: Material slots; unfilled slots are skipped
            on_progress: Callback (current, total, identifier, status)

        Returns:
            PipelineResult with the created material count and, on failure,
            the failed stage and the index of the failed material
        """
        with LogContext(logger, unit_id=parent_draft.id):
            return self._run(parent_draft, list(child_drafts), on_progress)

    def resume(
        self,
        unit_id: str,
        child_drafts: Sequence[MaterialDraft],
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """
        Provision materials for a unit that already exists.

        Used after a ProvisionChildren failure with the drafts listed in
        `PipelineResult.remaining_material_ids`. The unit is not created
        again and no settle delay is applied.
        """
        with LogContext(logger, unit_id=unit_id):
            return self._run(None, list(child_drafts), on_progress, existing_unit_id=unit_id)

    def _run(
        self,
        parent_draft: Optional[UnitDraft],
        child_drafts: list[MaterialDraft],
        on_progress: Optional[ProgressCallback],
        existing_unit_id: Optional[str] = None,
    ) -> PipelineResult:
        result = PipelineResult()

        # Validate
        staged, errors, unverified = self.validate(parent_draft, child_drafts)
        if parent_draft is None and not (existing_unit_id or '').strip():
            errors.insert(0, MissingFieldError('id', "Unit id is required"))
        result.unverified_identifiers = unverified
        if errors:
            result.validation_errors = errors
            logger.warning(f"Validation failed with {len(errors)} error(s): {errors[0]}")
            result.failure = PipelineFailure(
                stage=Stage.VALIDATE,
                reason=str(errors[0].message),
                error=errors[0],
            )
            return result

        if parent_draft is None:
            unit_id = existing_unit_id
            logger.info(f"Resuming unit {unit_id} with {len(staged)} material(s)")
        else:
            # CreateParent
            logger.info(f"Creating unit {parent_draft.id} with {len(staged)} material(s)")
            try:
                unit = self.store.create_unit(parent_draft)
            except ApiError as e:
                error = ParentCreationError(parent_draft.id, cause=e)
                log_exception(logger, error, "Unit creation failed")
                result.failure = PipelineFailure(
                    stage=Stage.CREATE_PARENT,
                    reason=error.message,
                    error=error,
                )
                return result
            unit_id = unit.id

            # Settle
            if staged and self.config.settle_delay_seconds > 0:
                self._sleep(self.config.settle_delay_seconds)

        result.parent_id = unit_id

        # ProvisionChildren
        total = len(staged)
        for child_index, material in enumerate(staged):
            if on_progress:
                on_progress(child_index + 1, total, material.identifier, "uploading...")

            error = self._provision_child(child_index, material, unit_id)
            if error is not None:
                log_exception(logger, error, "Material provisioning failed")
                if on_progress:
                    on_progress(child_index + 1, total, material.identifier, f"failed: {error.step}")
                result.remaining_material_ids = [m.identifier for m in staged[child_index:]]
                result.failure = PipelineFailure(
                    stage=Stage.PROVISION_CHILDREN,
                    reason=error.message,
                    child_index=child_index,
                    error=error,
                )
                return result

            result.created_child_count += 1
            result.created_material_ids.append(material.identifier)
            if on_progress:
                on_progress(child_index + 1, total, material.identifier, "created")

        logger.info(f"Provisioned unit {unit_id} with {result.created_child_count} material(s)")
        return result

    def _provision_child(
        self,
        child_index: int,
        material: StagedMaterial,
        unit_id: str,
    ) -> Optional[ChildProvisioningError]:
        """Upload then register one material. Returns the error, if any."""
        try:
            file_reference = self.store.upload_material_file(material.selected_file)
        except (ApiError, OSError) as e:
            return ChildProvisioningError(child_index, material.identifier, 'upload', cause=e)

        try:
            self.store.create_material(MaterialRequest(
                id=material.identifier,
                file_reference=file_reference,
                type=material.material_type,
                unit_id=unit_id,
                script=material.script,
                translation=material.translation,
            ))
        except ApiError as e:
            return ChildProvisioningError(child_index, material.identifier, 'register', cause=e)

        logger.debug(f"Created material {material.identifier} ({material.material_type})")
        return None
