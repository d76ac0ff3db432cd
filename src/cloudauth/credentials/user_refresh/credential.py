"""Refresh-token exchange credential.

This module provides :class:`UserRefreshCredential`, the ``authorized_user``
variant written by ``gcloud auth application-default login``. It exchanges a
long-lived ``refresh_token`` (plus the OAuth client id and secret) for
short-lived access tokens at the token endpoint, following the refresh grant
of :rfc:`6749` section 6.

See Also:
    :class:`cloudauth.auth.expiring.ExpiringTokenClient` for caching and retry.
"""

from __future__ import annotations

import logging
from typing import IO, Any, Optional

from cloudauth.auth.expiring import ExpiringTokenClient
from cloudauth.config import AuthSettings
from cloudauth.credentials.description import DescriptionLike, coerce_info, read_description
from cloudauth.exceptions import CredentialError, ValidationError
from cloudauth.models import CachedToken
from cloudauth.transport import Transport

logger = logging.getLogger(__name__)

AUTHORIZED_USER_TYPE = "authorized_user"

_SUBJECT = "the user refresh token"


class UserRefreshCredential(ExpiringTokenClient):
    """Exchange a refresh token for access tokens.

    Args:
        client_id: OAuth client id.
        client_secret: OAuth client secret.
        refresh_token: Long-lived refresh token.
        token_url: Token endpoint; defaults to ``settings.token_url``.
        transport: Request capability.
        settings: Shared settings.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        token_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
    ) -> None:
        super().__init__(transport=transport, settings=settings)
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.token_url = token_url or self.settings.token_url
        self.project_id: Optional[str] = None

    @property
    def kind(self) -> str:
        return AUTHORIZED_USER_TYPE

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    def load_info(self, info: DescriptionLike | None) -> None:
        """Populate this credential from a description.

        Every check runs before any field is assigned, so a failed load
        leaves the instance exactly as it was.

        Raises:
            ValidationError: The description is missing, is not of type
                ``authorized_user``, or lacks ``client_id``,
                ``client_secret``, or ``refresh_token``.
        """
        parsed = coerce_info(info, _SUBJECT)
        if parsed.type != AUTHORIZED_USER_TYPE:
            raise ValidationError(
                'The incoming JSON object does not have the "authorized_user" type'
            )
        if not parsed.client_id:
            raise ValidationError("The incoming JSON object does not contain a client_id field")
        if not parsed.client_secret:
            raise ValidationError(
                "The incoming JSON object does not contain a client_secret field"
            )
        if not parsed.refresh_token:
            raise ValidationError(
                "The incoming JSON object does not contain a refresh_token field"
            )

        self.client_id = parsed.client_id
        self.client_secret = parsed.client_secret
        self.refresh_token = parsed.refresh_token
        self.project_id = parsed.project_id
        self.credentials = None

    @classmethod
    def from_info(
        cls,
        info: DescriptionLike | None,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
    ) -> UserRefreshCredential:
        """Create a credential from an in-memory description."""
        credential = cls(transport=transport, settings=settings)
        credential.load_info(info)
        return credential

    @classmethod
    def from_stream(
        cls,
        stream: IO[Any] | None,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
    ) -> UserRefreshCredential:
        """Create a credential from a stream of JSON."""
        return cls.from_info(read_description(stream, _SUBJECT), transport, settings)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh_access_token(self) -> CachedToken:
        """POST ``grant_type=refresh_token`` to the token endpoint."""
        if not (self.client_id and self.client_secret and self.refresh_token):
            raise CredentialError(
                "client_id, client_secret and refresh_token are all required to refresh"
            )
        token = self._fetch_token(
            self.token_url,
            data={
                "grant_type": "refresh_token",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
            },
            headers={"Accept": "application/json"},
            refresh_token=self.refresh_token,
        )
        if token.refresh_token and token.refresh_token != self.refresh_token:
            logger.debug("Token endpoint rotated the refresh token")
            self.refresh_token = token.refresh_token
        return token
