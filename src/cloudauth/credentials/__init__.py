"""Concrete credential variants.

Each variant lives in its own subpackage and extends
:class:`~cloudauth.auth.base.TokenBearingCredential`:

* :class:`UserRefreshCredential` -- ``authorized_user`` refresh-token exchange.
* :class:`ServiceAccountCredential` -- ``service_account`` JWT bearer grant.
* :class:`JWTAccessCredential` -- self-signed JWT per target URI.
* :class:`MetadataCredential` -- the host's built-in account via the metadata server.
* :class:`DelegatedHeaderCredential` -- fixed IAM authority headers.

Example::

    from cloudauth.credentials import UserRefreshCredential

    with open("adc.json", "rb") as fh:
        credential = UserRefreshCredential.from_stream(fh)
    headers = credential.get_request_metadata().headers
"""

from cloudauth.credentials.delegated import DelegatedHeaderCredential
from cloudauth.credentials.jwt_access import JWTAccessCredential
from cloudauth.credentials.metadata import MetadataCredential
from cloudauth.credentials.service_account import ServiceAccountCredential
from cloudauth.credentials.user_refresh import UserRefreshCredential

__all__ = [
    "DelegatedHeaderCredential",
    "JWTAccessCredential",
    "MetadataCredential",
    "ServiceAccountCredential",
    "UserRefreshCredential",
]
