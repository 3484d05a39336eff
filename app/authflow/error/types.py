"""Error type definitions and constants

This module defines the core result and failure types shared by the
validator, the identity gateway and the flow controller.

Results:
- ValidationResult for field validation
- AuthResult for identity authority calls (success value or AuthFailure)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class ValidationResult:
    """Result of form validation

    Attributes:
        valid: Whether validation passed
        errors: Field name to message for every failing field
    """
    valid: bool
    errors: Dict[str, str]

    @classmethod
    def from_errors(cls, errors: Dict[str, str]) -> 'ValidationResult':
        """Create result from a (possibly empty) error mapping"""
        return cls(valid=not errors, errors=dict(errors))


@dataclass(frozen=True)
class AuthFailure:
    """Raw failure descriptor reported by the identity authority

    Attributes:
        code: Provider error code (e.g. "UserNotConfirmedException"), if any
        message: Provider message, if any
    """
    code: Optional[str] = None
    message: Optional[str] = None


@dataclass
class AuthResult(Generic[T]):
    """Outcome of a single identity authority call"""
    ok: bool
    value: Optional[T] = None
    failure: Optional[AuthFailure] = None

    @classmethod
    def success(cls, value: Any = None) -> 'AuthResult':
        """Create successful result"""
        return cls(ok=True, value=value)

    @classmethod
    def failed(cls, code: Optional[str] = None, message: Optional[str] = None) -> 'AuthResult':
        """Create failed result"""
        return cls(ok=False, failure=AuthFailure(code=code, message=message))


class FailureKind(Enum):
    """Recognized failure conditions that drive flow transitions"""
    UNVERIFIED_ACCOUNT = "unverified_account"
    DUPLICATE_ACCOUNT = "duplicate_account"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_OR_EXPIRED_CODE = "invalid_or_expired_code"
    UNKNOWN = "unknown"


# Shown when a call fails without any provider message
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."

# Error type to log level name
ERROR_LOG_LEVELS = {
    "validation": "INFO",
    "flow": "WARNING",
    "rejection": "INFO",
    "gateway": "ERROR",
}
