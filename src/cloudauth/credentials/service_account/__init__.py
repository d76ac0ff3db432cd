"""Service-account credential.

Implements the ``service_account`` type: a signed JWT assertion is traded
for an access token using the JWT bearer grant of :rfc:`7523`.

See Also:
    :class:`~cloudauth.credentials.service_account.credential.ServiceAccountCredential`
"""

from cloudauth.credentials.service_account.credential import ServiceAccountCredential

__all__ = ["ServiceAccountCredential"]
