"""JWT signing and decoding primitives.

Thin adapter over :mod:`jwt` (PyJWT with the ``cryptography`` backend) so
the rest of the package only speaks in terms of::

    sign(header, payload, key) -> token
    decode(token) -> DecodedToken(header, payload)

:func:`decode` does **not** verify signatures; it exists for inspecting
tokens this package produced and for tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jwt

from cloudauth.exceptions import CredentialError, ValidationError

DEFAULT_ALGORITHM = "RS256"


@dataclass(frozen=True)
class DecodedToken:
    """The header and payload segments of a JWT."""

    header: dict[str, Any]
    payload: dict[str, Any]


def sign(header: dict[str, Any], payload: dict[str, Any], key: str) -> str:
    """Sign *payload* with *key* and return the compact JWT.

    Args:
        header: JOSE header. ``alg`` defaults to ``RS256``; any other
            entries (e.g. ``kid``) are copied into the token header.
        payload: Claims to sign.
        key: PEM-encoded private key.

    Raises:
        CredentialError: If the key cannot be used for signing.
    """
    extra = dict(header)
    algorithm = extra.pop("alg", DEFAULT_ALGORITHM)
    extra.pop("typ", None)
    try:
        return jwt.encode(payload, key, algorithm=algorithm, headers=extra or None)
    except (ValueError, TypeError, jwt.PyJWTError) as exc:
        raise CredentialError(f"Unable to sign JWT with the configured private key: {exc}") from exc


def decode(token: str) -> DecodedToken:
    """Split *token* into header and payload without verifying the signature.

    Raises:
        ValidationError: If *token* is not a well-formed JWT.
    """
    try:
        header = jwt.get_unverified_header(token)
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise ValidationError(f"Malformed JWT: {exc}") from exc
    return DecodedToken(header=header, payload=payload)
