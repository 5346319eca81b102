class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class PeriodNotFound(NotFoundError):
    pass


class EmployeeNotFound(NotFoundError):
    pass


class EntryNotFound(NotFoundError):
    pass


class DuplicatePeriod(DomainError):
    """Raised when a period already exists for the same tenant, month and year."""


class PeriodNotEditable(DomainError):
    """Raised when entries are written to a period that is no longer a draft."""


class InvalidTransition(DomainError):
    """Raised when a status change is not part of the lifecycle graph."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class PermissionDenied(AuthorizationError):
    """Raised when the authorization collaborator refuses a capability."""


class AggregationFailure(DomainError):
    """Raised when period totals cannot be computed. Nothing is persisted."""


class SlipNotAvailable(DomainError):
    """Raised when a payslip is requested for a period that is not approved or paid."""


class SlipNotFound(NotFoundError):
    pass
