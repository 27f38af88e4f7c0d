"""
Errors raised by the client.

Hierarchy:
    RequestError            non-2xx response seen by the transport
      TransportError        same, attributed to a named client operation
        AuthenticationError 401/403 on an operation
    NotFoundError           get_fa matched no record

Response bodies are never inspected; the HTTP reason phrase is all the
detail carried.
"""

AUTH_STATUS_CODES = frozenset({401, 403})


class RequestError(Exception):
    """A single HTTP exchange came back with a non-success status."""

    def __init__(self, method: str, path: str, status_code: int, reason: str):
        self.method = method
        self.path = path
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"{method} {path}: {status_code} {reason}")


class TransportError(RequestError):
    """A client operation failed because its request failed."""

    def __init__(self, operation: str, cause: RequestError):
        super().__init__(cause.method, cause.path, cause.status_code, cause.reason)
        self.operation = operation
        # Replace the transport-level message with the operation-level one
        self.args = (f"{operation} failed: {cause.reason}",)

    @classmethod
    def wrap(cls, operation: str, cause: RequestError) -> "TransportError":
        """Build the right subclass for cause's status code."""
        if cause.status_code in AUTH_STATUS_CODES:
            return AuthenticationError(operation, cause)
        return cls(operation, cause)


class AuthenticationError(TransportError):
    """The service rejected the bearer token (or its absence)."""


class NotFoundError(LookupError):
    """A lookup by identifier matched zero records."""

    def __init__(self, uuid: str):
        self.uuid = uuid
        super().__init__(f"FA not found: {uuid}")
