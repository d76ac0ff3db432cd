"""Service-account JWT bearer credential.

:class:`ServiceAccountCredential` signs a short assertion with the account's
private key and exchanges it at the token endpoint using the JWT bearer
grant of :rfc:`7523`. Tokens are cached and refreshed by
:class:`~cloudauth.auth.expiring.ExpiringTokenClient`.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import IO, Any, Optional

from cloudauth.auth import signing
from cloudauth.auth.expiring import ExpiringTokenClient
from cloudauth.config import JWT_LIFETIME_SECONDS, AuthSettings
from cloudauth.credentials.description import DescriptionLike, coerce_info, read_description
from cloudauth.exceptions import CredentialError, ValidationError
from cloudauth.models import CachedToken, CredentialInfo
from cloudauth.transport import Transport

SERVICE_ACCOUNT_TYPE = "service_account"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

_SUBJECT = "the service account credentials"


def require_key_material(info: CredentialInfo) -> None:
    """Raise :class:`ValidationError` unless *info* names an email and a key."""
    if not info.client_email:
        raise ValidationError("The incoming JSON object does not contain a client_email field")
    if not info.private_key:
        raise ValidationError("The incoming JSON object does not contain a private_key field")


class ServiceAccountCredential(ExpiringTokenClient):
    """Obtain access tokens by signing a JWT assertion.

    Args:
        service_account_email: Issuer and subject of the assertion.
        private_key: PEM-encoded RSA private key.
        scopes: OAuth scopes requested in the assertion.
        private_key_id: Optional ``kid`` placed in the assertion header.
        project_id: Project the account belongs to.
        token_url: Token endpoint and assertion audience.
        transport: Request capability.
        settings: Shared settings.
    """

    def __init__(
        self,
        service_account_email: Optional[str] = None,
        private_key: Optional[str] = None,
        scopes: Optional[Iterable[str]] = None,
        private_key_id: Optional[str] = None,
        project_id: Optional[str] = None,
        token_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
    ) -> None:
        super().__init__(transport=transport, settings=settings)
        self.service_account_email = service_account_email
        self.private_key = private_key
        self.private_key_id = private_key_id
        self.scopes: frozenset[str] = frozenset(scopes or ())
        self.project_id = project_id
        self.token_url = token_url or self.settings.token_url

    @property
    def kind(self) -> str:
        return SERVICE_ACCOUNT_TYPE

    def create_scoped_required(self) -> bool:
        return not self.scopes

    def with_scopes(self, scopes: Iterable[str]) -> ServiceAccountCredential:
        """Return a copy of this credential that requests *scopes*.

        The copy shares the transport and settings but starts with an empty
        token cache.
        """
        return type(self)(
            service_account_email=self.service_account_email,
            private_key=self.private_key,
            scopes=scopes,
            private_key_id=self.private_key_id,
            project_id=self.project_id,
            token_url=self.token_url,
            transport=self.transport,
            settings=self.settings,
        )

    @classmethod
    def from_info(
        cls,
        info: DescriptionLike | None,
        scopes: Optional[Iterable[str]] = None,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
    ) -> ServiceAccountCredential:
        """Create a credential from a ``service_account`` description.

        Raises:
            ValidationError: ``client_email`` or ``private_key`` is missing.
        """
        parsed = coerce_info(info, _SUBJECT)
        require_key_material(parsed)
        return cls(
            service_account_email=parsed.client_email,
            private_key=parsed.private_key,
            scopes=scopes,
            private_key_id=parsed.private_key_id,
            project_id=parsed.project_id,
            transport=transport,
            settings=settings,
        )

    @classmethod
    def from_stream(
        cls,
        stream: IO[Any] | None,
        scopes: Optional[Iterable[str]] = None,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
    ) -> ServiceAccountCredential:
        """Create a credential from a stream of JSON."""
        return cls.from_info(read_description(stream, _SUBJECT), scopes, transport, settings)

    def build_assertion(self, now: Optional[int] = None) -> str:
        """Sign the bearer assertion sent to the token endpoint."""
        if not self.service_account_email or not self.private_key:
            raise CredentialError("A service account email and private key are required")
        issued_at = int(time.time()) if now is None else now
        payload: dict[str, Any] = {
            "iss": self.service_account_email,
            "sub": self.service_account_email,
            "aud": self.token_url,
            "iat": issued_at,
            "exp": issued_at + JWT_LIFETIME_SECONDS,
        }
        if self.scopes:
            payload["scope"] = " ".join(sorted(self.scopes))
        header: dict[str, Any] = {"alg": signing.DEFAULT_ALGORITHM}
        if self.private_key_id:
            header["kid"] = self.private_key_id
        return signing.sign(header, payload, self.private_key)

    def refresh_access_token(self) -> CachedToken:
        """Exchange a fresh assertion for an access token."""
        return self._fetch_token(
            self.token_url,
            data={"grant_type": JWT_BEARER_GRANT, "assertion": self.build_assertion()},
            headers={"Accept": "application/json"},
        )
