"""Custom exceptions for curriculum provisioning.

Exception Hierarchy:
    CurriculumError (base)
    ├── ValidationError
    │   ├── MissingFieldError
    │   ├── InvalidIdentifierError
    │   ├── UnsupportedFileTypeError
    │   ├── FileTooLargeError
    │   ├── DuplicateIdentifierError
    │   └── NoMaterialsError
    ├── ProvisioningError
    │   ├── ParentCreationError
    │   └── ChildProvisioningError (with child_index)
    ├── ApiError (with status)
    │   ├── NotFoundError
    │   ├── AuthenticationError
    │   ├── PermissionDeniedError
    │   ├── ConflictError
    │   ├── PayloadTooLargeError
    │   ├── TransportError
    │   └── InvalidResponseError
    └── ConfigurationError
"""

from typing import Optional


class CurriculumError(Exception):
    """Base exception for all curriculum errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(CurriculumError):
    """Raised when draft data fails local validation.

    Validation errors are always reported before any side effect.
    """

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Optional[str] = None, child_index: Optional[int] = None):
        self.field = field
        self.value = value
        self.child_index = child_index
        details = {}
        if field:
            details['field'] = field
        if value is not None:
            details['value'] = str(value)[:100]  # Truncate long values
        if child_index is not None:
            details['child_index'] = child_index
        super().__init__(message, details=details)


class MissingFieldError(ValidationError):
    """Raised when a required draft field is empty."""

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"Missing required field: '{field}'", field=field)


class InvalidIdentifierError(ValidationError):
    """Raised when a material identifier does not follow the naming template."""

    TEMPLATE = "[COURSE_CODE]__CHAPTER_[digits]__UNIT_[digits]__[SKILL]__JA_VI__[digits]"

    def __init__(self, identifier: str, child_index: Optional[int] = None):
        super().__init__(
            f"Invalid material identifier '{identifier}'. "
            f"File name must follow the template: {self.TEMPLATE}",
            field='identifier',
            value=identifier,
            child_index=child_index,
        )


class UnsupportedFileTypeError(ValidationError):
    """Raised when a selected file is neither PDF nor MP3."""

    def __init__(self, filename: str, content_type: Optional[str] = None,
                 child_index: Optional[int] = None):
        self.content_type = content_type
        message = f"Unsupported file '{filename}': only PDF or MP3 files are accepted"
        if content_type:
            message += f" (got {content_type})"
        super().__init__(message, field='selected_file', value=filename,
                         child_index=child_index)


class FileTooLargeError(ValidationError):
    """Raised when a selected file exceeds the upload size ceiling."""

    def __init__(self, filename: str, size: int, max_size: int,
                 child_index: Optional[int] = None):
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"File '{filename}' is {size / (1024 * 1024):.1f}MB; "
            f"files must be at most {max_size / (1024 * 1024):.0f}MB",
            field='selected_file',
            value=filename,
            child_index=child_index,
        )


class DuplicateIdentifierError(ValidationError):
    """Raised when a material identifier is already staged or persisted."""

    def __init__(self, identifier: str, source: str = "pending",
                 child_index: Optional[int] = None):
        self.source = source
        where = "in this upload" if source == "pending" else "on the server"
        super().__init__(
            f"Material identifier '{identifier}' already exists {where}. Rename the file.",
            field='identifier',
            value=identifier,
            child_index=child_index,
        )


class NoMaterialsError(ValidationError):
    """Raised when a unit must carry at least one material and has none."""

    def __init__(self):
        super().__init__(
            "At least one material with a skill category and a file is required",
            field='materials',
        )


# =============================================================================
# Provisioning Errors
# =============================================================================

class ProvisioningError(CurriculumError):
    """Base class for failures after validation has passed."""

    def __init__(self, message: str, cause: Optional[Exception] = None,
                 details: Optional[dict] = None):
        self.cause = cause
        details = details or {}
        if isinstance(cause, ApiError) and cause.status is not None:
            details['status'] = cause.status
        super().__init__(message, details=details)


class ParentCreationError(ProvisioningError):
    """Raised when the parent unit could not be created. No children were attempted."""

    def __init__(self, unit_id: str, cause: Optional[Exception] = None):
        self.unit_id = unit_id
        message = f"Failed to create unit '{unit_id}'"
        if cause is not None:
            message += f": {getattr(cause, 'message', cause)}"
        super().__init__(message, cause=cause, details={'unit_id': unit_id})


class ChildProvisioningError(ProvisioningError):
    """Raised when one material failed to upload or register.

    Attributes:
        child_index: Zero-based index among the valid material drafts
        step: 'upload' or 'register'
    """

    def __init__(self, child_index: int, identifier: str, step: str,
                 cause: Optional[Exception] = None):
        self.child_index = child_index
        self.identifier = identifier
        self.step = step
        message = f"Failed to {step} material '{identifier}'"
        if cause is not None:
            message += f": {getattr(cause, 'message', cause)}"
        super().__init__(
            message,
            cause=cause,
            details={'child_index': child_index, 'identifier': identifier, 'step': step},
        )


# =============================================================================
# API Errors
# =============================================================================

class ApiError(CurriculumError):
    """Base class for course-content API failures.

    Attributes:
        status: HTTP status code, or None when no response was received
    """

    def __init__(self, message: str, status: Optional[int] = None,
                 details: Optional[dict] = None):
        self.status = status
        details = details or {}
        if status is not None:
            details['status'] = status
        super().__init__(message, details=details)


class NotFoundError(ApiError):
    """Raised when the requested record does not exist (404)."""

    def __init__(self, resource: str, message: Optional[str] = None):
        self.resource = resource
        super().__init__(message or f"Not found: '{resource}'", status=404,
                         details={'resource': resource})


class AuthenticationError(ApiError):
    """Raised when the session is missing or expired (401)."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Authentication required or session expired", status=401)


class PermissionDeniedError(ApiError):
    """Raised when the account lacks permission for the operation (403)."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Permission denied", status=403)


class ConflictError(ApiError):
    """Raised when the store rejects a conflicting identifier (409)."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Conflicting identifier", status=409)


class PayloadTooLargeError(ApiError):
    """Raised when the store rejects an upload as too large (413)."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Uploaded file is too large", status=413)


class TransportError(ApiError):
    """Raised when no HTTP response was received (connection error, timeout)."""

    def __init__(self, url: str, reason: Optional[str] = None):
        self.url = url
        message = f"Request to '{url}' failed"
        if reason:
            message += f": {reason}"
        super().__init__(message, details={'url': url})


class InvalidResponseError(ApiError):
    """Raised when a response body does not have the expected shape."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, status=status)


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(CurriculumError):
    """Raised when there's a configuration problem."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        super().__init__(message, details={'config_key': config_key})
