class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidTemplateError(ValidationError):
    """Raised when a biometric template is not 128 finite numbers."""

    def __init__(self, constraint: str):
        super().__init__(f"Invalid face template: {constraint}")
        self.constraint = constraint


class EmployeeNotFoundError(DomainError):
    """Raised when an operation targets an employee that does not exist."""


class DuplicatePunchError(DomainError):
    """Raised by punch storage when (employee, date, type) already exists."""


class StoreUnavailableError(DomainError):
    """Raised when the durable store cannot be reached. Safe to retry."""

    retryable = True
