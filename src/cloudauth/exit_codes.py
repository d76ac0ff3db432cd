"""Numeric process exit codes for the ``cloudauth`` command.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~cloudauth.exceptions.CloudAuthError` subclass.
Shell wrappers can inspect the exit code to tell a broken credential file
apart from a host that simply has no credentials, without parsing stderr.

Example::

    $ cloudauth token
    $ echo $?
    4   # EXIT_UNRESOLVED -- no default credentials were found
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or an explicitly configured source is broken."""

EXIT_INVALID_CREDENTIAL = 2
"""A credential description is missing a required field or has the wrong type."""

EXIT_REFRESH_FAILURE = 3
"""An access token could not be issued or refreshed."""

EXIT_UNRESOLVED = 4
"""No default credential source could be found."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused, error status)."""
