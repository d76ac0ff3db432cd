"""Canonical Pydantic models shared across cloudauth modules.

**Credential description models** -- parsed from JSON credential files:
    :class:`CredentialInfo`.

**Token models** -- produced by the refresh engine:
    :class:`TokenResponse` and :class:`CachedToken`.

**Resolver output models**:
    :class:`ServiceAccountIdentity`.

All models use Pydantic v2. :class:`CredentialInfo` uses ``extra="allow"``
so that fields this package does not interpret (``auth_uri``,
``client_x509_cert_url``, ...) survive a round trip.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# --- Credential description ---


class CredentialInfo(BaseModel):
    """A credential description as found in a JSON key or ADC file.

    The ``type`` field selects the credential variant: ``authorized_user``
    for refresh-token credentials written by ``gcloud auth
    application-default login``, ``service_account`` for downloaded
    service-account keys.

    Example::

        CredentialInfo(
            type="authorized_user",
            client_id="c1",
            client_secret="s1",
            refresh_token="r1",
        )
    """

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = Field(
        default=None, description="Credential kind: authorized_user or service_account"
    )
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None
    client_email: Optional[str] = None
    private_key: Optional[str] = None
    private_key_id: Optional[str] = None
    project_id: Optional[str] = None


# --- Tokens ---


class TokenResponse(BaseModel):
    """Successful response body of a token endpoint or the metadata token path."""

    model_config = ConfigDict(extra="allow")

    access_token: str
    expires_in: Optional[float] = None
    token_type: str = "Bearer"
    refresh_token: Optional[str] = None


class CachedToken(BaseModel):
    """An access token together with its absolute expiry.

    ``expiry`` is an absolute UTC instant, never a duration. A token is
    usable only while ``now < expiry``; callers can ask for an earlier cut-off
    with ``margin``.

    Attributes:
        access_token: The bearer token string.
        expiry: UTC instant after which the token must not be used.
        refresh_token: Long-lived token or sentinel kept across refreshes.
    """

    access_token: Optional[str] = None
    expiry: datetime
    refresh_token: Optional[str] = None

    @classmethod
    def from_response(
        cls,
        response: TokenResponse,
        refresh_token: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CachedToken:
        """Build a token from a token-endpoint response.

        A missing ``expires_in`` is treated as one hour.
        """
        issued = now or utcnow()
        lifetime = response.expires_in if response.expires_in is not None else 3600.0
        return cls(
            access_token=response.access_token,
            expiry=issued + timedelta(seconds=float(lifetime)),
            refresh_token=response.refresh_token or refresh_token,
        )

    def is_usable(self, now: Optional[datetime] = None, margin: float = 0.0) -> bool:
        """Return ``True`` if the token exists and has not reached its expiry."""
        if not self.access_token:
            return False
        current = now or utcnow()
        expiry = self.expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return current < expiry - timedelta(seconds=margin)


# --- Resolver outputs ---


class ServiceAccountIdentity(BaseModel):
    """The service-account email and, when known, its private key."""

    client_email: str
    private_key: Optional[str] = None
