"""Application-layer exceptions. Do not reuse domain exceptions."""


class ApplicationError(Exception):
    """Base for all application-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class StoreError(ApplicationError):
    """Raised when the audit store fails to insert or query. Callers see no driver detail."""


class MalformedEventError(ApplicationError):
    """Raised when a stream message cannot be parsed into an audit event envelope."""


class StreamReadError(ApplicationError):
    """Raised when the stream transport fails to deliver the next message (not tied to content)."""
