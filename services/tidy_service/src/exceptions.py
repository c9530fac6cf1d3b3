"""Custom exceptions for the tidy rename preview service."""


class TidyServiceError(Exception):
    """Base exception for all tidy service errors.

    Expected per-file problems (missing metadata, conflicts, invalid names)
    are reported as proposal issues and never raised. Exceptions in this
    hierarchy signal programmer errors or a caller insisting on a value from
    a failed result.

    Example:
        >>> try:
        ...     preview = service.preview(files, metadata).unwrap()
        ... except TidyServiceError as e:
        ...     logger.error(f"Preview failed: {e}")
    """


class ConditionEvaluationError(TidyServiceError):
    """Raised while evaluating a single rule condition.

    Caught by the rule evaluator and folded into a ``CONDITION_ERROR`` result,
    so it never escapes rule resolution.
    """

    def __init__(self, message: str, field_path: str, code: str = "EVALUATION_ERROR") -> None:
        """Initialize the error.

        Args:
            message: Human readable description
            field_path: Field path of the failing condition
            code: Machine readable error code
        """
        super().__init__(message)
        self.field_path = field_path
        self.code = code


class ResultUnwrapError(TidyServiceError):
    """Raised when ``Result.unwrap`` is called on a failed result."""

    def __init__(self, error_type: str, message: str) -> None:
        """Initialize the error.

        Args:
            error_type: Error type of the failed result
            message: Error message of the failed result
        """
        super().__init__(f"{error_type}: {message}")
        self.error_type = error_type
        self.message = message
