"""Domain error types."""


class DomainError(Exception):
    """Base domain error."""
    pass


class NotFoundError(DomainError):
    """Resource not found."""
    def __init__(self, resource: str, identifier: str, message: str | None = None):
        self.resource = resource
        self.identifier = identifier
        self.message = message or f"{resource} with id {identifier} not found"
        super().__init__(self.message)


class ValidationError(DomainError):
    """Validation error (invalid argument)."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthenticationError(DomainError):
    """Credentials missing or wrong."""
    def __init__(self, message: str = "Invalid credentials"):
        self.message = message
        super().__init__(message)


class AuthorizationError(DomainError):
    """Authorization error."""
    def __init__(self, message: str = "Not authorized"):
        self.message = message
        super().__init__(message)


class ConflictError(DomainError):
    """Resource conflict error."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UpstreamError(DomainError):
    """A third-party service (media host, OAuth provider, email) failed."""
    def __init__(self, service: str, message: str):
        self.service = service
        self.message = f"{service}: {message}"
        super().__init__(self.message)
