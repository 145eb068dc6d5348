"""Material identifier derivation and validation.

A material's identifier is its file name without the extension, with
whitespace runs replaced by underscores. It must follow the template

    <COURSE_CODE>__CHAPTER_<n>__UNIT_<n>__<SKILL>__JA_VI__<n>

e.g. ``JPD113__CHAPTER_01__UNIT_01__KANJI__JA_VI__0001``. The identifier
becomes the material's primary key, so it is also checked against the
identifiers already staged in the current run and against the store.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Collection, Optional, Sequence

from ..exceptions import (
    ApiError,
    DuplicateIdentifierError,
    FileTooLargeError,
    InvalidIdentifierError,
    NotFoundError,
    UnsupportedFileTypeError,
    ValidationError,
)
from ..logging_config import get_logger
from ..models.material import SelectedFile

logger = get_logger('identifiers')

IDENTIFIER_PATTERN = re.compile(
    r'^(?P<course_code>[A-Z0-9]+)'
    r'__CHAPTER_(?P<chapter>[0-9]+)'
    r'__UNIT_(?P<unit>[0-9]+)'
    r'__(?P<skill_token>[A-Z0-9]+)'
    r'__JA_VI__(?P<sequence>[0-9]+)\Z'
)

_EXTENSION_PATTERN = re.compile(r'\.[^/.]+$')
_WHITESPACE_PATTERN = re.compile(r'\s+')

DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MiB
DEFAULT_EXTENSIONS = ('.pdf', '.mp3')
DEFAULT_CONTENT_TYPES = ('application/pdf', 'audio/mpeg', 'audio/mp3')

# identifier -> existing record; raises NotFoundError when the id is free
ExistenceLookup = Callable[[str], Any]


@dataclass(frozen=True)
class MaterialIdentifier:
    """The parts encoded in a valid material identifier."""
    course_code: str
    chapter: str
    unit: str
    skill_token: str
    sequence: str

    @property
    def value(self) -> str:
        return (
            f"{self.course_code}__CHAPTER_{self.chapter}__UNIT_{self.unit}"
            f"__{self.skill_token}__JA_VI__{self.sequence}"
        )

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of one validation step.

    Attributes:
        identifier: The identifier that was checked
        error: The validation error, or None when the check passed
        verified: False when the remote uniqueness lookup could not decide and
                  the identifier was allowed on a best-effort basis
    """
    identifier: str
    error: Optional[ValidationError] = None
    verified: bool = True

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def derive_identifier(filename: str) -> str:
    """Strip the extension and replace whitespace runs with '_'. Case is kept."""
    stem = _EXTENSION_PATTERN.sub('', filename)
    return _WHITESPACE_PATTERN.sub('_', stem)


def parse_identifier(identifier: str) -> MaterialIdentifier:
    """Split a valid identifier into its parts.

    Raises:
        InvalidIdentifierError: If the identifier does not match the template
    """
    match = IDENTIFIER_PATTERN.fullmatch(identifier)
    if not match:
        raise InvalidIdentifierError(identifier)
    return MaterialIdentifier(**match.groupdict())


def validate_format(identifier: str, child_index: Optional[int] = None) -> ValidationOutcome:
    """Check the identifier against the fixed template."""
    if IDENTIFIER_PATTERN.fullmatch(identifier):
        return ValidationOutcome(identifier)
    return ValidationOutcome(identifier, InvalidIdentifierError(identifier, child_index))


def check_uniqueness(
    identifier: str,
    pending: Collection[str],
    lookup: Optional[ExistenceLookup] = None,
    child_index: Optional[int] = None,
) -> ValidationOutcome:
    """
    Reject identifiers already staged in this run or already in the store.

    Only a not-found answer from `lookup` proves the identifier is free. Any
    other API failure is logged and the identifier is allowed with
    ``verified=False``; the store still enforces uniqueness on creation.

    Args:
        identifier: Derived material identifier
        pending: Identifiers already staged in the current run
        lookup: Remote existence lookup (skipped when None)
        child_index: Draft position, attached to any error
    """
    if identifier in pending:
        return ValidationOutcome(
            identifier, DuplicateIdentifierError(identifier, 'pending', child_index)
        )

    if lookup is None:
        return ValidationOutcome(identifier, verified=False)

    try:
        record = lookup(identifier)
    except NotFoundError:
        return ValidationOutcome(identifier)
    except ApiError as e:
        logger.warning(
            f"Could not verify that material '{identifier}' is new, allowing it: {e}"
        )
        return ValidationOutcome(identifier, verified=False)

    if record:
        return ValidationOutcome(
            identifier, DuplicateIdentifierError(identifier, 'server', child_index)
        )
    # an empty answer is not a not-found answer
    logger.warning(f"Lookup for material '{identifier}' returned no record, allowing it")
    return ValidationOutcome(identifier, verified=False)


def validate_file(
    selected_file: SelectedFile,
    max_size: int = DEFAULT_MAX_FILE_SIZE,
    allowed_extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    allowed_content_types: Sequence[str] = DEFAULT_CONTENT_TYPES,
    child_index: Optional[int] = None,
) -> Optional[ValidationError]:
    """Return a source, type or size error for the file, or None when it is acceptable."""
    if selected_file.path is None and selected_file.data is None:
        return ValidationError(
            f"File '{selected_file.name}' has no content to upload",
            field='file',
            value=selected_file.name,
            child_index=child_index,
        )
    type_ok = (
        (selected_file.content_type or '').lower() in allowed_content_types
        or selected_file.extension in allowed_extensions
    )
    if not type_ok:
        return UnsupportedFileTypeError(
            selected_file.name, selected_file.content_type, child_index
        )
    if selected_file.size > max_size:
        return FileTooLargeError(selected_file.name, selected_file.size, max_size, child_index)
    return None


class IdentifierValidator:
    """Validates the file and derived identifier of each material draft."""

    def __init__(
        self,
        lookup: Optional[ExistenceLookup] = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        allowed_extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        allowed_content_types: Sequence[str] = DEFAULT_CONTENT_TYPES,
    ):
        self.lookup = lookup
        self.max_file_size = max_file_size
        self.allowed_extensions = tuple(ext.lower() for ext in allowed_extensions)
        self.allowed_content_types = tuple(ct.lower() for ct in allowed_content_types)

    def validate(
        self,
        selected_file: SelectedFile,
        pending: Collection[str] = (),
        child_index: Optional[int] = None,
    ) -> ValidationOutcome:
        """
        Run every check for one file, stopping at the first failure.

        Order: file source, type, size, identifier format, uniqueness. The remote
        lookup only runs for identifiers that passed every local check.
        """
        identifier = derive_identifier(selected_file.name)

        file_error = validate_file(
            selected_file,
            max_size=self.max_file_size,
            allowed_extensions=self.allowed_extensions,
            allowed_content_types=self.allowed_content_types,
            child_index=child_index,
        )
        if file_error is not None:
            return ValidationOutcome(identifier, file_error)

        outcome = validate_format(identifier, child_index)
        if not outcome.ok:
            return outcome

        return check_uniqueness(identifier, pending, self.lookup, child_index)
