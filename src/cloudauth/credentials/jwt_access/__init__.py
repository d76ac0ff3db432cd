"""Self-signed JWT access credential.

See Also:
    :class:`~cloudauth.credentials.jwt_access.credential.JWTAccessCredential`
"""

from cloudauth.credentials.jwt_access.credential import JWTAccessCredential

__all__ = ["JWTAccessCredential"]
