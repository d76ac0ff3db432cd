"""Credential resolution and the token lifecycle engine.

The main entry points are:

- :class:`TokenBearingCredential` -- abstract base class of every credential
  variant.
- :class:`ExpiringTokenClient` -- caching, lazy refresh, and the single 401
  retry shared by network-refreshed variants.
- :class:`CredentialLoader` -- builds a credential from a JSON description.
- :class:`PlatformDetector` -- memoized metadata-server probe.
- :class:`ApplicationDefaultCredentialsResolver` -- the default credential
  and project chains.
- :class:`IdentityTokenTicket` -- decoded identity token holder.

Typical usage::

    from cloudauth.auth import ApplicationDefaultCredentialsResolver

    result = ApplicationDefaultCredentialsResolver().get_application_default()
    response = result.credential.request("https://www.googleapis.com/storage/v1/b?project=p")
"""

from cloudauth.auth.base import RequestMetadata, TokenBearingCredential
from cloudauth.auth.expiring import ExpiringTokenClient
from cloudauth.auth.loader import CredentialLoader
from cloudauth.auth.platform import PlatformDetector
from cloudauth.auth.resolver import ADCResult, ApplicationDefaultCredentialsResolver
from cloudauth.auth.ticket import IdentityTokenTicket

__all__ = [
    "ADCResult",
    "ApplicationDefaultCredentialsResolver",
    "CredentialLoader",
    "ExpiringTokenClient",
    "IdentityTokenTicket",
    "PlatformDetector",
    "RequestMetadata",
    "TokenBearingCredential",
]
