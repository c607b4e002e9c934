"""Exceptions raised by refkit."""

from __future__ import annotations

__all__ = [
    "BackendError",
    "RefKitError",
    "UserIdResolutionNotImplementedError",
]

_RETRYABLE_STATUS = frozenset({408, 429})


class RefKitError(Exception):
    """Base exception for all refkit errors."""


class BackendError(RefKitError):
    """Failure reported by the engine behind a conversation reference store.

    Not-found conditions never surface as this error; adapters translate
    them into ``False`` / ``None`` results.

    Attributes:
        backend: Name of the adapter that raised the error (``"blob"``,
            ``"cosmos"``, ...).
        status_code: HTTP status code from the engine, if available.
        retryable: Whether the caller may reasonably retry the request.
    """

    def __init__(
        self,
        message: str,
        *,
        backend: str = "",
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.backend = backend
        self.status_code = status_code
        if retryable is None:
            retryable = status_code is not None and (
                status_code in _RETRYABLE_STATUS or status_code >= 500
            )
        self.retryable = retryable

    @classmethod
    def from_exception(cls, exc: Exception, *, backend: str, action: str) -> BackendError:
        """Wrap an engine SDK exception, keeping its HTTP status if it has one."""
        status_code = getattr(exc, "status_code", None)
        if not isinstance(status_code, int):
            status_code = None
        return cls(f"{backend} {action} failed: {exc}", backend=backend, status_code=status_code)


class UserIdResolutionNotImplementedError(RefKitError, NotImplementedError):
    """No identity resolver is configured to map an email to a user id."""
