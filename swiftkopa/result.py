"""Result pattern for checks whose callers want a flag, not an exception.

Field validation in the wizard and status updates on the admin dashboard
report failure to a person (an inline hint, a toast), so they return a
Result instead of raising.
"""
from dataclasses import dataclass
from typing import Optional, TypeVar, Generic

T = TypeVar('T')


@dataclass(frozen=True)
class Result(Generic[T]):
    """Represents the outcome of an operation.

    Attributes:
        success: Whether the operation succeeded.
        value: The return value on success, None on failure.
        error: Human readable message on failure, None on success.
        error_type: Category of error (see ErrorType).

    Usage:
        result = validate_amount(amount, max_amount=limit.max_principal)
        if not result:
            show_hint(result.error)
    """
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, value: T = None) -> 'Result[T]':
        """Create a successful result."""
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, error_type: str = None) -> 'Result[T]':
        """Create a failure result.

        Args:
            error: Message describing what went wrong.
            error_type: Optional error category for programmatic handling.
        """
        return cls(success=False, error=error, error_type=error_type)

    def __bool__(self) -> bool:
        return self.success

    def unwrap(self) -> T:
        """Get the value, raising an exception if the operation failed.

        Raises:
            ValueError: If the operation failed.
        """
        if not self.success:
            raise ValueError(f"Result unwrap failed: {self.error}")
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get the value or a default if the operation failed."""
        return self.value if self.success else default


class ErrorType:
    """Standard error type constants."""
    VALIDATION = "VALIDATION"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    ABOVE_COLLATERAL_LIMIT = "ABOVE_COLLATERAL_LIMIT"
    MISSING_DOCUMENT = "MISSING_DOCUMENT"
    NOT_FOUND = "NOT_FOUND"
    REPOSITORY = "REPOSITORY"
