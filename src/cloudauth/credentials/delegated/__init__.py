"""Delegated-authority header credential.

See Also:
    :class:`~cloudauth.credentials.delegated.credential.DelegatedHeaderCredential`
"""

from cloudauth.credentials.delegated.credential import DelegatedHeaderCredential

__all__ = ["DelegatedHeaderCredential"]
