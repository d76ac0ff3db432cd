"""Refresh-token credential.

Implements the ``authorized_user`` type written by
``gcloud auth application-default login``. A long-lived refresh token is
exchanged for access tokens at the OAuth token endpoint.

See Also:
    :class:`~cloudauth.credentials.user_refresh.credential.UserRefreshCredential`
"""

from cloudauth.credentials.user_refresh.credential import UserRefreshCredential

__all__ = ["UserRefreshCredential"]
