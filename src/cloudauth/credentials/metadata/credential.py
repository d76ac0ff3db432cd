"""Metadata-server credential for Compute Engine style hosts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from cloudauth.auth.expiring import AuthErrorT, ExpiringTokenClient
from cloudauth.config import METADATA_FLAVOR_HEADER, METADATA_FLAVOR_VALUE, AuthSettings
from cloudauth.models import CachedToken
from cloudauth.transport import Transport

METADATA_KIND = "metadata"
PLACEHOLDER_REFRESH_TOKEN = "compute-placeholder"

FORBIDDEN_HINT = (
    "A Forbidden error was returned while attempting to retrieve an access "
    "token for the Compute Engine built-in service account. This may be because "
    "the Compute Engine instance does not have the correct permission scopes "
    "specified."
)
NOT_FOUND_HINT = (
    "A Not Found error was returned while attempting to retrieve an access "
    "token for the Compute Engine built-in service account. This may be because "
    "the Compute Engine instance does not have any permission scopes specified."
)


class MetadataCredential(ExpiringTokenClient):
    """Fetch tokens for the host's built-in service account.

    The instance starts with an already-expired placeholder token so the
    first request always goes to the metadata server.

    Args:
        token_url: Metadata token endpoint; defaults to
            ``settings.metadata_token_url``.
        transport: Request capability.
        settings: Shared settings.
    """

    def __init__(
        self,
        token_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
    ) -> None:
        super().__init__(transport=transport, settings=settings)
        self.token_url = token_url or self.settings.metadata_token_url
        self.credentials = CachedToken(
            access_token=None,
            expiry=datetime(1970, 1, 1, tzinfo=timezone.utc),
            refresh_token=PLACEHOLDER_REFRESH_TOKEN,
        )

    @property
    def kind(self) -> str:
        return METADATA_KIND

    def refresh_access_token(self) -> CachedToken:
        return self._fetch_token(
            self.token_url,
            method="GET",
            headers={METADATA_FLAVOR_HEADER: METADATA_FLAVOR_VALUE},
            refresh_token=PLACEHOLDER_REFRESH_TOKEN,
        )

    def _augment_error(self, exc: AuthErrorT) -> AuthErrorT:
        if exc.status == 403:
            hint = FORBIDDEN_HINT
        elif exc.status == 404:
            hint = NOT_FOUND_HINT
        else:
            return exc
        return type(exc)(f"{hint} {exc.message}", status=exc.status)
