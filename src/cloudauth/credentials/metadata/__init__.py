"""Metadata-server credential.

Fetches tokens for the built-in service account of a Compute Engine style
host from ``metadata.google.internal``.

See Also:
    :class:`~cloudauth.credentials.metadata.credential.MetadataCredential`
"""

from cloudauth.credentials.metadata.credential import MetadataCredential

__all__ = ["MetadataCredential"]
