"""Token cache, lazy refresh, and the single 401 retry.

This module provides :class:`ExpiringTokenClient`, the base class of every
credential variant that obtains its access token over the network
(refresh-token exchange, service-account JWT bearer, metadata service).

The engine guarantees that every outgoing request carries a token that has
not reached its expiry:

- **Lazy refresh** -- a cached :class:`~cloudauth.models.CachedToken` is
  reused while ``now < expiry``; otherwise the variant's
  :meth:`~ExpiringTokenClient.refresh_access_token` is called first.
- **Single retry** -- a 401 on the first attempt discards the token,
  refreshes unconditionally, and retries once. A second 401 is final and
  every other failure is raised immediately.
- **Serialized refresh** -- refreshes run under a per-instance lock; a caller
  that waited on the lock reuses the token installed by the caller that
  held it instead of refreshing again.

A token is installed only after a refresh returns, so a refresh that raises
leaves the previous cached state untouched.
"""

from __future__ import annotations

import logging
import threading
from abc import abstractmethod
from typing import Any, NoReturn, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from cloudauth.auth.base import RequestMetadata, TokenBearingCredential
from cloudauth.config import AuthSettings
from cloudauth.exceptions import CredentialError, TransportError
from cloudauth.models import CachedToken, TokenResponse
from cloudauth.transport import RequestConfig, Transport, TransportResponse

logger = logging.getLogger(__name__)

AuthErrorT = TypeVar("AuthErrorT", TransportError, CredentialError)


class ExpiringTokenClient(TokenBearingCredential):
    """Base class for credentials whose tokens are issued over the network.

    Subclasses implement :meth:`refresh_access_token`; everything else --
    caching, expiry checks, serialization, and the 401 retry -- lives here.

    Args:
        transport: Request capability shared with the resolver. A private
            :class:`~cloudauth.transport.Transport` is created when omitted.
        settings: Endpoints, timeout, and expiry margin.

    Attributes:
        credentials: The currently cached token, or ``None`` before the
            first refresh.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
    ) -> None:
        self.settings = settings or AuthSettings()
        self.transport = transport or Transport(self.settings)
        self.credentials: Optional[CachedToken] = None
        self._refresh_lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Variant hook
    # ------------------------------------------------------------------ #

    @abstractmethod
    def refresh_access_token(self) -> CachedToken:
        """Obtain a brand-new token from the issuing endpoint.

        Implementations must not touch :attr:`credentials`; the engine
        installs the returned token.

        Raises:
            TransportError: The token request failed.
            CredentialError: The response could not be turned into a token.
        """
        ...

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def get_request_metadata(self, target_uri: Optional[str] = None) -> RequestMetadata:
        """Return an ``Authorization: Bearer`` header, refreshing first if needed.

        Raises:
            CredentialError: The refresh failed. Not retried here.
        """
        token = self._ensure_token()
        return RequestMetadata(headers={"Authorization": f"Bearer {token.access_token}"})

    def get_access_token(self) -> str:
        """Return a usable access token string, refreshing first if needed."""
        token = self._ensure_token()
        if not token.access_token:
            raise CredentialError(f"The {self.kind} credential holds no access token")
        return token.access_token

    def request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        data: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> TransportResponse:
        """Send an authorized request, retrying once if it comes back 401.

        Args:
            url: Absolute request URL.
            method: HTTP method.
            headers: Extra request headers. ``Authorization`` is overwritten.
            data: Form-encoded body.
            json_body: JSON-serialisable body.

        Returns:
            The :class:`~cloudauth.transport.TransportResponse`.

        Raises:
            CredentialError: A token could not be obtained.
            TransportError: The request failed with anything but a first
                401, or failed with 401 again after the refresh.
        """
        config = RequestConfig(
            url=url,
            method=method,
            headers=dict(headers or {}),
            data=data,
            json_body=json_body,
        )

        token = self._ensure_token()
        try:
            return self._send(config, token)
        except TransportError as exc:
            if exc.status != 401:
                self._raise_augmented(exc)
            logger.debug("Got 401 from %s %s, refreshing token and retrying once", method, url)

        token = self._ensure_token(stale=token)
        try:
            return self._send(config, token)
        except TransportError as exc:
            self._raise_augmented(exc)

    # ------------------------------------------------------------------ #
    # Helpers for subclasses
    # ------------------------------------------------------------------ #

    def _fetch_token(
        self,
        url: str,
        method: str = "POST",
        data: Optional[dict[str, str]] = None,
        headers: Optional[dict[str, str]] = None,
        refresh_token: Optional[str] = None,
    ) -> CachedToken:
        """Call a token endpoint and turn its JSON answer into a :class:`CachedToken`.

        Raises:
            TransportError: The token endpoint answered with an error status.
            CredentialError: The body has no ``access_token``.
        """
        config = RequestConfig(url=url, method=method, data=data, headers=dict(headers or {}))
        response = self.transport.request(config)
        if not isinstance(response.data, dict):
            raise CredentialError("Token response is not a JSON object", status=response.status)
        try:
            parsed = TokenResponse.model_validate(response.data)
        except PydanticValidationError as exc:
            raise CredentialError(
                "Token response missing 'access_token' field", status=response.status
            ) from exc
        return CachedToken.from_response(parsed, refresh_token=refresh_token)

    def _augment_error(self, exc: AuthErrorT) -> AuthErrorT:
        """Return a more actionable version of *exc*. Identity by default."""
        return exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_token(self, stale: Optional[CachedToken] = None) -> CachedToken:
        """Return a usable token, refreshing under the lock when necessary.

        Args:
            stale: A token the server just rejected. If it is still the
                cached one it is discarded; if another caller already
                replaced it, the replacement is reused.
        """
        with self._refresh_lock:
            current = self.credentials
            if current is not None and stale is not None:
                if current.access_token == stale.access_token:
                    current = current.model_copy(update={"access_token": None})
                    self.credentials = current
            if current is not None and current.is_usable(margin=self.settings.expiry_margin):
                return current

            logger.debug("Refreshing access token for %s credential", self.kind)
            token = self._refresh()
            self.credentials = token
            return token

    def _refresh(self) -> CachedToken:
        try:
            token = self.refresh_access_token()
        except TransportError as exc:
            error = CredentialError(
                f"Could not refresh access token: {exc.message}", status=exc.status
            )
            raise self._augment_error(error) from exc
        except CredentialError as exc:
            augmented = self._augment_error(exc)
            if augmented is exc:
                raise
            raise augmented from exc
        if not token.access_token:
            raise CredentialError(f"The {self.kind} token endpoint returned no access token")
        return token

    def _send(self, config: RequestConfig, token: CachedToken) -> TransportResponse:
        headers = dict(config.headers)
        headers["Authorization"] = f"Bearer {token.access_token}"
        return self.transport.request(config.model_copy(update={"headers": headers}))

    def _raise_augmented(self, exc: TransportError) -> NoReturn:
        augmented = self._augment_error(exc)
        if augmented is exc:
            raise exc
        raise augmented from exc
