"""Build a credential from its JSON description.

:class:`CredentialLoader` dispatches on the description's ``type`` field:

========================  ==============================================
``type``                  Variant
========================  ==============================================
``authorized_user``       :class:`~cloudauth.credentials.UserRefreshCredential`
``service_account``       :class:`~cloudauth.credentials.ServiceAccountCredential`
========================  ==============================================

Anything else, including a missing ``type``, is a
:class:`~cloudauth.exceptions.ValidationError`.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import IO, Any, Optional, Union

from cloudauth.auth.expiring import ExpiringTokenClient
from cloudauth.config import AuthSettings
from cloudauth.credentials.description import DescriptionLike, coerce_info, read_description
from cloudauth.credentials.service_account.credential import (
    SERVICE_ACCOUNT_TYPE,
    ServiceAccountCredential,
)
from cloudauth.credentials.user_refresh.credential import (
    AUTHORIZED_USER_TYPE,
    UserRefreshCredential,
)
from cloudauth.exceptions import ValidationError
from cloudauth.models import CredentialInfo
from cloudauth.transport import Transport

logger = logging.getLogger(__name__)

_SUBJECT = "the credential description"


class CredentialLoader:
    """Turn descriptions into credentials sharing one transport and settings.

    Args:
        transport: Passed to every credential this loader creates.
        settings: Passed to every credential this loader creates.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
    ) -> None:
        self.settings = settings or AuthSettings()
        self.transport = transport or Transport(self.settings)

    def from_info(self, info: DescriptionLike | None) -> ExpiringTokenClient:
        """Create the credential named by ``info["type"]``.

        Raises:
            ValidationError: The description is absent, its ``type`` is
                missing or unknown, or the variant rejects it.
        """
        parsed = coerce_info(info, _SUBJECT)
        if not parsed.type:
            raise ValidationError(
                "The incoming JSON object does not contain a type field; expected "
                f"'{AUTHORIZED_USER_TYPE}' or '{SERVICE_ACCOUNT_TYPE}'"
            )
        if parsed.type == AUTHORIZED_USER_TYPE:
            return UserRefreshCredential.from_info(
                parsed, transport=self.transport, settings=self.settings
            )
        if parsed.type == SERVICE_ACCOUNT_TYPE:
            return ServiceAccountCredential.from_info(
                parsed, transport=self.transport, settings=self.settings
            )
        raise ValidationError(f"Unsupported credential type '{parsed.type}'")

    def from_stream(self, stream: IO[Any] | None) -> ExpiringTokenClient:
        """Read a JSON description from *stream* and build its credential."""
        return self.from_info(read_description(stream, _SUBJECT))

    def from_file(self, path: Union[str, os.PathLike[str]]) -> ExpiringTokenClient:
        """Load the credential described by the file at *path*.

        Symlinks are resolved first; the target must be a regular file.

        Raises:
            ValidationError: The file is missing, not a regular file,
                unreadable, or holds an invalid description.
        """
        return self.from_info(self.read_info(path))

    @staticmethod
    def read_info(path: Union[str, os.PathLike[str]]) -> CredentialInfo:
        """Return the description stored at *path* without building a credential.

        Symlinks are resolved first; the target must be a regular file.

        Raises:
            ValidationError: The file is missing, not a regular file,
                unreadable, or not a JSON object.
        """
        resolved = Path(os.path.realpath(path))
        if not resolved.is_file():
            raise ValidationError(f"The file at {path} does not exist, or it is not a file.")
        logger.debug("Loading credential description from %s", resolved)
        try:
            with resolved.open("rb") as fh:
                return read_description(fh, _SUBJECT)
        except OSError as exc:
            raise ValidationError(f"Unable to read the credential file {path}: {exc}") from exc
