"""Provider error hierarchy used across adapters and engines."""

from __future__ import annotations


class ProviderError(Exception):
    """Error reported by the remote resource provider."""

    def __init__(
        self,
        message: str,
        code: str = "",
        status_code: int | None = None,
        request_id: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.request_id = request_id
        self.operation = operation

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.append(f"code: {self.code}")
        if self.status_code is not None:
            parts.append(f"http status: {self.status_code}")
        if self.request_id:
            parts.append(f"request id: {self.request_id}")
        return ", ".join(parts)


class BadRequestError(ProviderError):
    """The provider rejected the request as malformed or invalid."""


class NotFoundError(ProviderError):
    """The addressed resource does not exist."""


class NotAuthorizedError(ProviderError):
    """Authentication or authorization failed."""


class ConflictError(ProviderError):
    """The resource is in a state that conflicts with the request."""


class ThrottledError(ProviderError):
    """The provider is rate limiting requests."""


class ServiceUnavailableError(ProviderError):
    """The provider failed with a server-side error."""
