"""Abstract base class for credentials.

This module defines the two foundational types of the auth subsystem:

- :class:`RequestMetadata` -- a plain container for the HTTP headers a
  credential produces for one outgoing request.
- :class:`TokenBearingCredential` -- the abstract base class every credential
  variant extends.

To implement a new credential, subclass :class:`TokenBearingCredential` and
implement :meth:`~TokenBearingCredential.get_request_metadata`. Variants that
obtain tokens over the network should extend
:class:`~cloudauth.auth.expiring.ExpiringTokenClient` instead, which adds
caching, refresh, and the single 401 retry.

See Also:
    :mod:`cloudauth.credentials` for the concrete variants.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Optional


class RequestMetadata:
    """Headers to inject into an outgoing request.

    Args:
        headers: HTTP headers to add (e.g. ``{"Authorization": "Bearer ..."}``).

    Example::

        metadata = RequestMetadata(headers={"Authorization": "Bearer tok123"})
        assert metadata.headers["Authorization"] == "Bearer tok123"
    """

    def __init__(self, headers: dict[str, str] | None = None):
        self.headers = headers or {}

    def __repr__(self) -> str:
        return f"RequestMetadata(headers={sorted(self.headers)})"


class TokenBearingCredential(ABC):
    """Abstract base class for all credential variants.

    Every variant provides:

    1. A :attr:`kind` property naming the variant (``"authorized_user"``,
       ``"service_account"``, ``"jwt_access"``, ``"metadata"``,
       ``"delegated"``). The kind is fixed for the life of the instance.
    2. A :meth:`get_request_metadata` implementation returning the headers
       for a request to *target_uri*.

    Attributes:
        project_id: Project the credential belongs to, when known.
    """

    project_id: Optional[str] = None

    @property
    @abstractmethod
    def kind(self) -> str:
        """Return the variant identifier of this credential."""
        ...

    @abstractmethod
    def get_request_metadata(self, target_uri: Optional[str] = None) -> RequestMetadata:
        """Return the headers that authorize a request to *target_uri*.

        Args:
            target_uri: The URI being called. Only variants that bind their
                token to an audience use it.

        Raises:
            CredentialError: If a token has to be issued and that fails.
        """
        ...

    async def get_request_metadata_async(
        self, target_uri: Optional[str] = None
    ) -> RequestMetadata:
        """Awaitable form of :meth:`get_request_metadata`.

        The blocking path runs in a worker thread. Cancelling the awaiting
        task abandons the result; it never leaves a half-installed token
        behind because tokens are only installed after a refresh completes.
        """
        return await asyncio.to_thread(self.get_request_metadata, target_uri)

    def create_scoped_required(self) -> bool:
        """Return ``True`` if scopes must be supplied before the credential can be used."""
        return False
