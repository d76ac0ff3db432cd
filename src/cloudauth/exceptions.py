"""Exception hierarchy for cloudauth.

All exceptions inherit from :class:`CloudAuthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`cloudauth.exit_codes`.
The CLI entry point in :func:`cloudauth.app.main` catches ``CloudAuthError``
and exits with the matching code.

Subclass hierarchy::

    CloudAuthError (exit 1)
    +-- ValidationError          (exit 2)
    +-- CredentialError          (exit 3)
    +-- UnresolvedError          (exit 4)
    +-- TransportError           (exit 6)
    |   +-- HostUnreachableError (exit 6)
    +-- ConfigurationError       (exit 1)

Discovery steps that merely find a source absent never raise; steps that
find an explicitly configured source broken always do.
"""

from __future__ import annotations

from typing import Any

from cloudauth.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_CREDENTIAL,
    EXIT_REFRESH_FAILURE,
    EXIT_TRANSPORT_ERROR,
    EXIT_UNRESOLVED,
)


class CloudAuthError(Exception):
    """Base exception for all cloudauth errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


class ValidationError(CloudAuthError):
    """Raised when a credential description is missing a field or declares the wrong type."""

    exit_code = EXIT_INVALID_CREDENTIAL


class TransportError(CloudAuthError):
    """Raised when the underlying transport fails.

    Args:
        message: Error description, usually taken from the response body.
        status: HTTP status code when the server answered, ``None`` when
            the request never produced a response.
        errors: Individual error entries from a Google API error body.
    """

    exit_code = EXIT_TRANSPORT_ERROR

    def __init__(
        self,
        message: str,
        status: int | None = None,
        errors: list[dict[str, Any]] | None = None,
        exit_code: int | None = None,
    ):
        super().__init__(message, exit_code)
        self.status = status
        self.errors = errors or []


class HostUnreachableError(TransportError):
    """Raised when the host cannot be resolved or refuses the connection.

    Platform detection treats this as "not running on the platform" rather
    than as a failure.
    """


class CredentialError(CloudAuthError):
    """Raised when an access token cannot be issued or refreshed.

    ``status`` carries the HTTP status of the failed token request, if any.
    """

    exit_code = EXIT_REFRESH_FAILURE

    def __init__(self, message: str, status: int | None = None, exit_code: int | None = None):
        super().__init__(message, exit_code)
        self.status = status


class ConfigurationError(CloudAuthError):
    """Raised when an explicitly configured credential source is broken, or settings are invalid."""

    exit_code = EXIT_GENERIC_FAILURE


class UnresolvedError(CloudAuthError):
    """Raised when no default credential source succeeded."""

    exit_code = EXIT_UNRESOLVED
