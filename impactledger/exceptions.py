"""ImpactLedger Exception Hierarchy.

Every failure in the verification engine is a precondition violation
reported synchronously to the caller. No operation commits partial state
before raising.

Exception Hierarchy:
    ImpactLedgerException (base)
    ├── AuthorizationError
    │   ├── NotAuthorized
    │   └── NotValidator
    ├── NotFoundError
    ├── InvalidInputError
    │   ├── InvalidImpactType
    │   ├── InvalidAmount
    │   ├── InvalidThreshold
    │   └── InvalidDeadline
    └── StateConflictError
        ├── AlreadyProcessed
        ├── AlreadyVoted
        ├── Expired
        └── NotYetExpired

All exceptions include rich context:
- error_code: Unique error identifier (e.g. "IL_ALREADY_VOTED")
- context: Dictionary with error-specific details
- timestamp: When the error occurred

Example:
    >>> from impactledger.exceptions import AlreadyVoted
    >>> raise AlreadyVoted(
    ...     message="Validator bob already attested claim 7",
    ...     context={"claim_id": 7, "validator": "bob"},
    ... )

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from typing import Any, Dict, Optional
from datetime import datetime
import json
import re


# ==============================================================================
# Base Exception
# ==============================================================================

class ImpactLedgerException(Exception):
    """Base exception for all ImpactLedger errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "IL_NOT_VALIDATOR")
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "IL"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now()

    def _generate_error_code(self) -> str:
        """Generate error code from the class name.

        Returns:
            Error code like "IL_ALREADY_PROCESSED"
        """
        class_name = self.__class__.__name__
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', class_name).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    @property
    def category(self) -> str:
        """Taxonomy family of this error (authorization, not_found, ...)."""
        return "internal"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary with all error details
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "category": self.category,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        return f"[{self.error_code}] - {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}')"
        )


# ==============================================================================
# Authorization
# ==============================================================================

class AuthorizationError(ImpactLedgerException):
    """Caller lacks the role required for the operation."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        actor: Optional[str] = None,
        required_role: Optional[str] = None,
    ):
        """Initialize authorization error.

        Args:
            message: Error message
            context: Error context
            actor: Identity that attempted the operation
            required_role: Role the operation requires (admin, owner, ...)
        """
        context = context or {}
        if actor is not None:
            context["actor"] = actor
        if required_role:
            context["required_role"] = required_role
        super().__init__(message, context=context)

    @property
    def category(self) -> str:
        return "authorization"


class NotAuthorized(AuthorizationError):
    """Caller is not the admin, the project owner, or the source interface."""


class NotValidator(AuthorizationError):
    """Caller is not an authorized validator for the claim's project."""


# ==============================================================================
# Not found
# ==============================================================================

class NotFoundError(ImpactLedgerException):
    """Referenced entity does not exist.

    Example:
        >>> raise NotFoundError(
        ...     message="Project 42 not found",
        ...     entity_type="project",
        ...     entity_id=42,
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[Any] = None,
    ):
        context = context or {}
        if entity_type:
            context["entity_type"] = entity_type
        if entity_id is not None:
            context["entity_id"] = entity_id
        super().__init__(message, context=context)

    @property
    def category(self) -> str:
        return "not_found"


# ==============================================================================
# Invalid input
# ==============================================================================

class InvalidInputError(ImpactLedgerException):
    """Amount, deadline, threshold or type reference out of domain."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        value: Optional[Any] = None,
    ):
        """Initialize invalid input error.

        Args:
            message: Error message
            context: Error context
            field: Name of the offending input
            value: Offending value
        """
        context = context or {}
        if field:
            context["field"] = field
            context["value"] = value
        super().__init__(message, context=context)

    @property
    def category(self) -> str:
        return "invalid_input"


class InvalidImpactType(InvalidInputError):
    """Impact type is unknown or inactive."""


class InvalidAmount(InvalidInputError):
    """Amount or conversion factor is out of range."""


class InvalidThreshold(InvalidInputError):
    """Required verification count is out of range."""


class InvalidDeadline(InvalidInputError):
    """Verification deadline is not after the current time."""


# ==============================================================================
# State conflicts
# ==============================================================================

class StateConflictError(ImpactLedgerException):
    """Operation is invalid for the claim's current state or time."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        claim_id: Optional[int] = None,
    ):
        context = context or {}
        if claim_id is not None:
            context["claim_id"] = claim_id
        super().__init__(message, context=context)

    @property
    def category(self) -> str:
        return "state_conflict"


class AlreadyProcessed(StateConflictError):
    """Claim already left the Pending state."""


class AlreadyVoted(StateConflictError):
    """Identity already attested this claim."""


class Expired(StateConflictError):
    """Verification deadline has passed."""


class NotYetExpired(StateConflictError):
    """Verification deadline has not been reached yet."""


# ==============================================================================
# Exception Utilities
# ==============================================================================

def format_exception_chain(exc: Exception) -> str:
    """Format exception chain for logging/display.

    Args:
        exc: Exception to format

    Returns:
        Formatted string with full exception chain
    """
    lines = []
    current = exc

    while current is not None:
        if isinstance(current, ImpactLedgerException):
            lines.append(str(current))
            lines.append(f"  Context: {current.context}")
        else:
            lines.append(f"{type(current).__name__}: {current}")
        current = getattr(current, "__cause__", None)

    return "\n".join(lines)


def is_retriable(exc: Exception) -> bool:
    """Check whether resubmitting the same call can later succeed.

    Only waiting for the verification deadline qualifies. Every other
    failure needs corrected input or a different caller.

    Args:
        exc: Exception to check

    Returns:
        True if the caller may resubmit unchanged later
    """
    return isinstance(exc, NotYetExpired)


__all__ = [
    "ImpactLedgerException",
    "AuthorizationError",
    "NotAuthorized",
    "NotValidator",
    "NotFoundError",
    "InvalidInputError",
    "InvalidImpactType",
    "InvalidAmount",
    "InvalidThreshold",
    "InvalidDeadline",
    "StateConflictError",
    "AlreadyProcessed",
    "AlreadyVoted",
    "Expired",
    "NotYetExpired",
    "format_exception_chain",
    "is_retriable",
]
