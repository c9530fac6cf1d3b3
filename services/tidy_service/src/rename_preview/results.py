"""Explicit success/error results and the error and issue code taxonomy."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from services.tidy_service.src.exceptions import ResultUnwrapError

T = TypeVar("T")


class ErrorType(str, Enum):
    """Top-level, structural failures of engine operations."""

    INVALID_PATTERN = "invalid_pattern"
    MISSING_METADATA = "missing_metadata"
    CANCELLED = "cancelled"
    GENERATION_ERROR = "generation_error"
    DEFAULT_TEMPLATE_NOT_FOUND = "default_template_not_found"
    INVALID_FILENAME = "invalid_filename"


class RuleErrorCode(str, Enum):
    """Errors returned by rule management operations."""

    RULE_NOT_FOUND = "RULE_NOT_FOUND"
    DUPLICATE_RULE_NAME = "DUPLICATE_RULE_NAME"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    INVALID_FIELD_PATH = "INVALID_FIELD_PATH"
    INVALID_REGEX = "INVALID_REGEX"
    INVALID_PATTERN = "INVALID_PATTERN"


class IssueCode(str, Enum):
    """Codes of soft, per-proposal issues."""

    TEMPLATE_ERROR = "TEMPLATE_ERROR"
    MISSING_METADATA = "MISSING_METADATA"
    USED_FALLBACK = "USED_FALLBACK"
    SANITIZED_CHAR_REPLACEMENT = "SANITIZED_CHAR_REPLACEMENT"
    SANITIZED_RESERVED_NAME = "SANITIZED_RESERVED_NAME"
    SANITIZED_TRUNCATION = "SANITIZED_TRUNCATION"
    SANITIZED_TRAILING_FIX = "SANITIZED_TRAILING_FIX"
    INVALID_NAME = "INVALID_NAME"
    DUPLICATE_NAME = "DUPLICATE_NAME"
    FILE_EXISTS = "FILE_EXISTS"
    RULE_TEMPLATE_MISSING = "RULE_TEMPLATE_MISSING"
    FOLDER_STRUCTURE_MISSING = "FOLDER_STRUCTURE_MISSING"
    FOLDER_RESOLUTION_FAILED = "FOLDER_RESOLUTION_FAILED"


@dataclass(frozen=True)
class ResultError:
    """Why an operation failed."""

    type: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a ResultError, never both."""

    value: T | None = None
    error: ResultError | None = None

    @property
    def ok(self) -> bool:
        """True when the operation succeeded."""
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error_type: str | Enum, message: str, **details: Any) -> Result[T]:
        code = error_type.value if isinstance(error_type, Enum) else error_type
        return cls(error=ResultError(type=code, message=message, details=details))

    def unwrap(self) -> T:
        """Return the value or raise ResultUnwrapError for a failed result."""
        if self.error is not None:
            raise ResultUnwrapError(self.error.type, self.error.message)
        return self.value  # type: ignore[return-value]
