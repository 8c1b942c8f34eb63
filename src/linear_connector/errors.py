"""Exception hierarchy for the Linear connector."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .annotations import Annotations


class ConnectorError(Exception):
    """Base exception for connector errors.

    ``annotations`` carries any rate-limit descriptions gathered before the
    failure so callers can still make back-off decisions.
    """

    def __init__(self, message: str, annotations: Annotations | None = None):
        super().__init__(message)
        self.annotations = annotations


class ConfigurationError(ConnectorError):
    """Invalid combination of configuration values."""


class TokenCorruptError(ConnectorError):
    """A pagination token could not be parsed."""


class CursorDecodeError(TokenCorruptError):
    """A cursor-set sub-token could not be parsed."""


class LinearError(ConnectorError):
    """Error returned by (or while talking to) the Linear API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
        annotations: Annotations | None = None,
    ):
        full_message = message
        if response:
            text = str(response)
            full_message = f"{message} - Response: {text[:500]}"
        super().__init__(full_message, annotations)
        self.status_code = status_code
        self.response = response


class TransientUpstreamError(LinearError):
    """Network failure, timeout or server error. Safe to retry with the same token."""


class RateLimitError(TransientUpstreamError):
    """The API rejected the request because of rate limiting."""


class DataShapeError(ConnectorError):
    """The API returned an unexpected number of objects, or an object of unexpected shape."""


class RoleOperationError(ConnectorError):
    """A role cannot be granted or revoked through the API."""


class UnknownRoleError(RoleOperationError):
    """The role id is not one of the known roles."""


class PrincipalTypeError(ConnectorError):
    """A grant or revoke was attempted for an unsupported principal type."""


def with_context(err: ConnectorError, context: str) -> ConnectorError:
    """Return a copy of *err* with ``linear-connector: <context>`` prepended.

    The exception class, status code and annotations are preserved so a
    retryable error stays retryable.
    """
    message = f"linear-connector: {context}: {err}"
    if isinstance(err, LinearError):
        wrapped: ConnectorError = type(err)(
            message, status_code=err.status_code, annotations=err.annotations
        )
    else:
        wrapped = type(err)(message, annotations=err.annotations)
    return wrapped
