# Core module - prerequisite ordering, identifier validation, provisioning
from .ordering import sort_by_prerequisite, prerequisite_candidates
from .identifiers import (
    IdentifierValidator,
    MaterialIdentifier,
    ValidationOutcome,
    derive_identifier,
    parse_identifier,
    validate_format,
    check_uniqueness,
    validate_file,
)
from .pipeline import ProvisioningPipeline, PipelineResult, PipelineFailure, Stage

__all__ = [
    'sort_by_prerequisite',
    'prerequisite_candidates',
    'IdentifierValidator',
    'MaterialIdentifier',
    'ValidationOutcome',
    'derive_identifier',
    'parse_identifier',
    'validate_format',
    'check_uniqueness',
    'validate_file',
    'ProvisioningPipeline',
    'PipelineResult',
    'PipelineFailure',
    'Stage',
]
