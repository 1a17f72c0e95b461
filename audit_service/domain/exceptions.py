"""Domain-specific exceptions. Pure domain layer: no infrastructure."""


class DomainError(Exception):
    """Base for all domain-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DomainValidationError(DomainError):
    """Raised when domain validation rules are violated."""


class InvalidAuditValueError(DomainValidationError):
    """Raised when result or severity is set to a value outside its enumeration."""


class InvalidPaginationError(DomainValidationError):
    """Raised when page_size is not positive or exceeds the allowed maximum."""
