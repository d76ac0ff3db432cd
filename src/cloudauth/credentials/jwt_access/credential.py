"""Self-signed JWT access credential.

No token endpoint is involved: every call to
:meth:`JWTAccessCredential.get_request_metadata` signs a new JWT whose
audience is the URI being called, and sends it directly as the bearer token.
"""

from __future__ import annotations

import time
from typing import IO, Any, Optional

from cloudauth.auth import signing
from cloudauth.auth.base import RequestMetadata, TokenBearingCredential
from cloudauth.config import JWT_LIFETIME_SECONDS
from cloudauth.credentials.description import DescriptionLike, coerce_info, read_description
from cloudauth.credentials.service_account.credential import require_key_material
from cloudauth.exceptions import CredentialError

JWT_ACCESS_KIND = "jwt_access"

_SUBJECT = "the service account credentials"


class JWTAccessCredential(TokenBearingCredential):
    """Authorize each request with a JWT signed for that request's audience.

    Args:
        email: Service account email; issuer and subject of the JWT.
        key: PEM-encoded RSA private key.
        key_id: Optional ``kid`` header value.
        project_id: Project the account belongs to.
    """

    def __init__(
        self,
        email: Optional[str] = None,
        key: Optional[str] = None,
        key_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> None:
        self.email = email
        self.key = key
        self.key_id = key_id
        self.project_id = project_id

    @property
    def kind(self) -> str:
        return JWT_ACCESS_KIND

    @classmethod
    def from_info(cls, info: DescriptionLike | None) -> JWTAccessCredential:
        parsed = coerce_info(info, _SUBJECT)
        require_key_material(parsed)
        return cls(
            email=parsed.client_email,
            key=parsed.private_key,
            key_id=parsed.private_key_id,
            project_id=parsed.project_id,
        )

    @classmethod
    def from_stream(cls, stream: IO[Any] | None) -> JWTAccessCredential:
        return cls.from_info(read_description(stream, _SUBJECT))

    def get_request_metadata(self, target_uri: Optional[str] = None) -> RequestMetadata:
        """Sign a JWT for *target_uri* and return it as a bearer header.

        Raises:
            CredentialError: *target_uri* is missing or the key cannot sign.
        """
        if not target_uri:
            raise CredentialError("A target URI is required to sign a JWT access token")
        if not self.email or not self.key:
            raise CredentialError("A service account email and private key are required")
        issued_at = int(time.time())
        payload = {
            "iss": self.email,
            "sub": self.email,
            "aud": target_uri,
            "iat": issued_at,
            "exp": issued_at + JWT_LIFETIME_SECONDS,
        }
        header: dict[str, Any] = {"alg": signing.DEFAULT_ALGORITHM}
        if self.key_id:
            header["kid"] = self.key_id
        token = signing.sign(header, payload, self.key)
        return RequestMetadata(headers={"Authorization": f"Bearer {token}"})
