"""
Exception handling utilities.

Defines the domain exception taxonomy raised by distribution services.
Repository misses are translated into these at the service boundary;
database errors are never wrapped and reach the caller unchanged.
"""


class DistributionError(Exception):
    """
    Base class for distribution domain errors.

    Attributes:
        code: Numeric error code for API layers
        message: Human readable message
    """

    code: int = 500

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(DistributionError):
    """Raised when a requested entity does not exist."""

    code = 404


class ConflictError(DistributionError):
    """Raised when an entity already exists."""

    code = 409


class ValidationError(DistributionError):
    """Raised when input fails business validation."""

    code = 400


class OperationFailedError(DistributionError):
    """Raised when a business operation cannot be completed."""

    code = 422


class InsufficientBalanceError(OperationFailedError):
    """Raised when a guarded balance update finds too little money."""

    code = 4001


class ReferralChainError(DistributionError):
    """Raised when the referral chain is broken, cyclic or too deep."""

    code = 4002


class SecurityError(DistributionError):
    """Raised when a security-critical operation fails."""

    code = 403


# Exception categories based on handling strategy

# Expected business outcomes - map to 4xx, no stack trace needed
DOMAIN_ERRORS = (
    NotFoundError,
    ConflictError,
    ValidationError,
    OperationFailedError,
)


def is_domain_error(exc: Exception) -> bool:
    """
    Check if exception is an expected business outcome.

    Args:
        exc: Exception to check

    Returns:
        True if exception maps to a client error
    """
    return isinstance(exc, DOMAIN_ERRORS)
