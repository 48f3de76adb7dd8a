"""Error taxonomy and the uniform operation result envelope."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ErrorKind(str, Enum):
    """Broad failure categories."""

    PROVIDER_UNAVAILABLE = "ProviderUnavailable"
    NOT_FOUND = "NotFound"
    INVALID_INPUT = "InvalidInput"
    PRECONDITION_FAILED = "PreconditionFailed"
    STALE_BINDING = "StaleBinding"
    UNEXPECTED = "Unexpected"


class ErrorCode(str, Enum):
    """Fixed set of error codes reported in operation results."""

    TREESITTER_UNAVAILABLE = "TREESITTER_UNAVAILABLE"
    NO_STRING_FOUND = "NO_STRING_FOUND"
    INVALID_SELECTION = "INVALID_SELECTION"
    EMPTY_CONTENT = "EMPTY_CONTENT"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    BUFFER_NOT_MODIFIABLE = "BUFFER_NOT_MODIFIABLE"
    NOT_IN_EDIT_SURFACE = "NOT_IN_EDIT_SURFACE"
    NO_SOURCE_BINDING = "NO_SOURCE_BINDING"
    INVALID_SOURCE_DOCUMENT = "INVALID_SOURCE_DOCUMENT"
    SESSION_OVERLAP = "SESSION_OVERLAP"
    CONTENT_TOO_LARGE = "CONTENT_TOO_LARGE"
    POSITION_INVALIDATED = "POSITION_INVALIDATED"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"
    CANCEL_FAILED = "CANCEL_FAILED"

    @property
    def kind(self) -> ErrorKind:
        """Return the category this code belongs to."""
        return _CODE_KINDS[self]


_CODE_KINDS: dict[ErrorCode, ErrorKind] = {
    ErrorCode.TREESITTER_UNAVAILABLE: ErrorKind.PROVIDER_UNAVAILABLE,
    ErrorCode.NO_STRING_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.INVALID_SELECTION: ErrorKind.INVALID_INPUT,
    ErrorCode.EMPTY_CONTENT: ErrorKind.INVALID_INPUT,
    ErrorCode.INVALID_ARGUMENT: ErrorKind.INVALID_INPUT,
    ErrorCode.BUFFER_NOT_MODIFIABLE: ErrorKind.PRECONDITION_FAILED,
    ErrorCode.NOT_IN_EDIT_SURFACE: ErrorKind.PRECONDITION_FAILED,
    ErrorCode.NO_SOURCE_BINDING: ErrorKind.PRECONDITION_FAILED,
    ErrorCode.INVALID_SOURCE_DOCUMENT: ErrorKind.PRECONDITION_FAILED,
    ErrorCode.SESSION_OVERLAP: ErrorKind.PRECONDITION_FAILED,
    ErrorCode.CONTENT_TOO_LARGE: ErrorKind.PRECONDITION_FAILED,
    ErrorCode.POSITION_INVALIDATED: ErrorKind.STALE_BINDING,
    ErrorCode.UNEXPECTED_ERROR: ErrorKind.UNEXPECTED,
    ErrorCode.CANCEL_FAILED: ErrorKind.UNEXPECTED,
}

DEFAULT_SUGGESTIONS: dict[ErrorCode, tuple[str, ...]] = {
    ErrorCode.TREESITTER_UNAVAILABLE: (
        "Select the text and retry to use the selection fallback",
        "Install the tree-sitter grammar for this file type",
        "Check that structural providers are enabled in string_breaker.toml",
    ),
    ErrorCode.NO_STRING_FOUND: (
        "Move the cursor inside the string quotes",
        "Select the text to edit instead",
    ),
    ErrorCode.INVALID_SELECTION: (
        "Select non-empty text",
        "Check that the selection lies inside the document",
    ),
    ErrorCode.EMPTY_CONTENT: ("Select text that contains content",),
    ErrorCode.BUFFER_NOT_MODIFIABLE: (
        "Check whether the document is read-only",
        "Ensure you have write permission for the file",
    ),
    ErrorCode.NOT_IN_EDIT_SURFACE: ("Start an editing session with string.break first",),
    ErrorCode.NO_SOURCE_BINDING: (
        "Cancel and restart the editing session",
        "Check that the original document is still open",
    ),
    ErrorCode.INVALID_SOURCE_DOCUMENT: (
        "The original document may have been closed",
        "Cancel and restart the editing session",
    ),
    ErrorCode.SESSION_OVERLAP: ("Save or cancel the session already editing this string",),
    ErrorCode.CONTENT_TOO_LARGE: (
        "Retry with force=true to edit anyway",
        "Raise limits.max_string_length in string_breaker.toml",
    ),
    ErrorCode.POSITION_INVALIDATED: (
        "The original document was edited outside this session",
        "Cancel and restart the editing session",
    ),
}


@dataclass(slots=True, frozen=True)
class BreakerError(Exception):
    """Expected failure raised inside an operation and reported as a result."""

    code: ErrorCode
    message: str
    suggestions: tuple[str, ...] | None = None

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


@dataclass(slots=True, frozen=True)
class OperationResult:
    """Uniform result returned by every public operation."""

    success: bool
    message: str
    data: dict[str, object] = field(default_factory=dict)
    error_code: ErrorCode | None = None
    suggestions: tuple[str, ...] = ()

    @classmethod
    def ok(cls, message: str, **data: object) -> OperationResult:
        """Build a success result."""
        return cls(success=True, message=message, data=dict(data))

    @classmethod
    def from_error(cls, error: BreakerError) -> OperationResult:
        """Build a failure result from an expected error."""
        suggestions = error.suggestions
        if suggestions is None:
            suggestions = DEFAULT_SUGGESTIONS.get(error.code, ())
        return cls(
            success=False,
            message=error.message,
            error_code=error.code,
            suggestions=tuple(suggestions),
        )

    @classmethod
    def unexpected(
        cls,
        operation: str,
        error: Exception,
        code: ErrorCode = ErrorCode.UNEXPECTED_ERROR,
    ) -> OperationResult:
        """Wrap an unexpected exception with the failing operation as context."""
        return cls(
            success=False,
            message=f"Unexpected error occurred while {operation}: {error}",
            error_code=code,
            suggestions=("Check the audit log for the failing operation",),
        )

    @property
    def error_kind(self) -> ErrorKind | None:
        """Return the failure category, or None on success."""
        if self.error_code is None:
            return None
        return self.error_code.kind

    def to_dict(self) -> dict[str, object]:
        """Return serializable result payload."""
        payload: dict[str, object] = {
            "success": self.success,
            "message": self.message,
            "data": dict(self.data),
        }
        if self.error_code is not None:
            payload["error_code"] = self.error_code.value
            payload["error_kind"] = self.error_code.kind.value
        if self.suggestions:
            payload["suggestions"] = list(self.suggestions)
        return payload
