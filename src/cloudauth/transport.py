"""HTTP transport used by credentials, the resolver, and platform detection.

This module provides :class:`Transport`, a thin blocking wrapper around
:class:`httpx.Client` exposing a single capability::

    transport.request(RequestConfig(url=..., method=..., headers=...)) -> TransportResponse

On top of ``httpx`` it adds:

- **User agent** -- the configured product token is appended to any
  caller-supplied ``User-Agent`` exactly once.
- **Error mapping** -- error statuses raise
  :class:`~cloudauth.exceptions.TransportError` with the status preserved;
  DNS failures and refused connections raise
  :class:`~cloudauth.exceptions.HostUnreachableError` so that callers can
  tell "host does not exist" apart from "host answered with an error".
- **Error bodies** -- Google-style ``{"error": {"errors": [...]}}`` bodies
  are collapsed into a single newline-joined message.

Connection pooling, TLS, and redirects are left to ``httpx``.
"""

from __future__ import annotations

import threading
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from cloudauth.config import AuthSettings
from cloudauth.exceptions import HostUnreachableError, TransportError


class RequestConfig(BaseModel):
    """Description of a single outgoing request.

    Attributes:
        url: Absolute request URL.
        method: HTTP method.
        headers: Request headers; ``Authorization`` is added by credentials.
        data: Form-encoded body (``application/x-www-form-urlencoded``).
        json_body: JSON-serialisable body.
        timeout: Per-request timeout override in seconds.
    """

    url: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    data: Optional[dict[str, str]] = None
    json_body: Any = None
    timeout: Optional[float] = None


class TransportResponse(BaseModel):
    """A completed response with a 2xx/3xx status.

    ``data`` is the decoded JSON body when the server declared a JSON
    content type, otherwise the body text. Header names are lower-cased.
    """

    data: Any = None
    headers: dict[str, str] = Field(default_factory=dict)
    status: int = 200


class Transport:
    """Blocking request capability backed by :class:`httpx.Client`.

    The ``httpx.Client`` is created lazily on first use unless one is
    supplied, which is how tests inject an :class:`httpx.MockTransport`.
    A supplied client is never closed by :meth:`close`.

    Args:
        settings: Timeout and user-agent source. Defaults to
            :class:`~cloudauth.config.AuthSettings`.
        client: Optional pre-built ``httpx.Client``.

    Example::

        with Transport() as transport:
            resp = transport.request(RequestConfig(url="http://metadata.google.internal"))
    """

    def __init__(
        self,
        settings: Optional[AuthSettings] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings or AuthSettings()
        self._client = client
        self._owns_client = client is None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        with self._lock:
            if self._client is not None and self._owns_client:
                self._client.close()
                self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def configure(self, config: RequestConfig) -> RequestConfig:
        """Return a copy of *config* with the user agent applied.

        The product token is appended to an existing ``User-Agent`` unless
        that header already contains it.
        """
        headers = dict(config.headers)
        agent = self._settings.user_agent
        existing = None
        for key in headers:
            if key.lower() == "user-agent":
                existing = key
                break
        if existing is None:
            headers["User-Agent"] = agent
        elif agent not in headers[existing]:
            headers[existing] = f"{headers[existing]} {agent}"
        return config.model_copy(update={"headers": headers})

    def request(self, config: RequestConfig) -> TransportResponse:
        """Send *config* and return the decoded response.

        Raises:
            HostUnreachableError: The host could not be resolved or refused
                the connection.
            TransportError: Timeout, other network failure, or an HTTP
                status of 400 or above (``status`` set).
        """
        config = self.configure(config)
        kwargs: dict[str, Any] = {
            "method": config.method,
            "url": config.url,
            "headers": config.headers,
        }
        if config.data is not None:
            kwargs["data"] = config.data
        elif config.json_body is not None:
            kwargs["json"] = config.json_body
        if config.timeout is not None:
            kwargs["timeout"] = config.timeout

        try:
            response = self._get_client().request(**kwargs)
        except httpx.ConnectError as exc:
            raise HostUnreachableError(f"Could not connect to {config.url}: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise TransportError(f"Request to {config.url} timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request to {config.url} failed: {exc}") from exc

        data = _decode_body(response)
        if response.status_code >= 400:
            message, errors = _error_message(data, response.status_code)
            raise TransportError(message, status=response.status_code, errors=errors)

        return TransportResponse(
            data=data,
            headers={k.lower(): v for k, v in response.headers.items()},
            status=response.status_code,
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get_client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(
                    timeout=self._settings.timeout,
                    follow_redirects=True,
                )
            return self._client


def _decode_body(response: httpx.Response) -> Any:
    """Decode JSON bodies; return text for everything else."""
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


def _error_message(data: Any, status: int) -> tuple[str, list[dict[str, Any]]]:
    """Extract a readable message (and the individual errors) from an error body.

    Handles the Google API shape ``{"error": {"message", "errors": [...]}}``
    and the OAuth2 shape ``{"error": "invalid_grant", "error_description": ...}``.
    """
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            errors = [e for e in error.get("errors") or [] if isinstance(e, dict)]
            messages = [str(e["message"]) for e in errors if e.get("message")]
            if messages:
                return "\n".join(messages), errors
            if error.get("message"):
                return str(error["message"]), errors
        elif isinstance(error, str):
            description = data.get("error_description")
            return (f"{error}: {description}" if description else error), []
        if data.get("message"):
            return str(data["message"]), []
    if isinstance(data, str) and data.strip():
        return data.strip()[:500], []
    return f"HTTP {status}", []

