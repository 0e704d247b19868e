"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """User-initiated action violates a business invariant"""

    pass


class InvalidSplitError(ValidationError):
    """Purchase split lines are malformed or do not sum to the purchase total"""

    pass


class InvalidTransferError(ValidationError):
    """Account transfer is between identical accounts or has no amount"""

    pass


class AllocationLimitError(ValidationError):
    """Income allocation rules exceed 100% or collide on a target"""

    pass


class InvalidFundingSourceError(ValidationError):
    """Goal funding source rows are duplicated or over-allocated"""

    pass


class InvalidPlanVersionError(ValidationError):
    """Requested plan version does not exist"""

    pass


class PurchaseNotFoundError(DomainException):
    """Purchase referenced by a duplicate resolution no longer exists"""

    pass
