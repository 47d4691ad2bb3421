"""
Error taxonomy for the dashboard client.

Three families reach the user: the backend could not be reached at all,
the backend rejected the call, or the input failed client-side validation.
The remaining classes guard the local state machines.
"""

from typing import Optional


class DashboardError(Exception):
    """Base class for every error raised by the dashboard client."""


class NetworkUnreachableError(DashboardError):
    """The backend did not answer (connection refused, DNS, timeout)."""

    def __init__(self, endpoint: str, detail: str = ""):
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(
            f"Backend unreachable at {endpoint}. Check that the API server is running."
        )


class ServerRejectedError(DashboardError):
    """The backend answered with a non-success status."""

    def __init__(self, status: int, message: Optional[str] = None, url: str = ""):
        self.status = status
        self.server_message = message
        self.url = url
        super().__init__(message or f"HTTP {status}")


class AuthenticationRequiredError(ServerRejectedError):
    """HTTP 401: the session token is missing or expired."""


class ValidationError(DashboardError):
    """Client-side validation failed before any request was sent."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class DocumentCycleError(DashboardError):
    """The document hierarchy returned by the backend contains a cycle."""

    def __init__(self, node_ids):
        self.node_ids = list(node_ids)
        chain = " -> ".join(str(i) for i in self.node_ids)
        super().__init__(f"Document hierarchy contains a cycle: {chain}")


class InvalidTransitionError(DashboardError):
    """A UI state machine was asked for a transition its current state forbids."""


class DialogAlreadyOpenError(DashboardError):
    """A dialog of the same kind is already open."""


def user_message(exc: BaseException, fallback: str) -> str:
    """
    Render an exception as the text shown to the user.

    Server rejections surface the server-provided message when there is one,
    otherwise the caller's fallback.
    """
    if isinstance(exc, NetworkUnreachableError):
        return str(exc)
    if isinstance(exc, ServerRejectedError):
        return exc.server_message or fallback
    if isinstance(exc, (ValidationError, DocumentCycleError,
                        InvalidTransitionError, DialogAlreadyOpenError)):
        return str(exc)
    return fallback
