"""Decoded identity token holder."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from cloudauth.auth import signing

USER_ATTRIBUTE = "sub"


class IdentityTokenTicket(BaseModel):
    """Immutable envelope (JOSE header) and payload (claims) of an identity token.

    Signature verification is the caller's concern; a ticket only holds
    what was verified.

    Example::

        ticket = IdentityTokenTicket(envelope={"alg": "RS256"}, payload={"sub": "123"})
        assert ticket.subject_id() == "123"
    """

    model_config = ConfigDict(frozen=True)

    envelope: dict[str, Any]
    payload: dict[str, Any]

    @classmethod
    def from_jwt(cls, token: str) -> IdentityTokenTicket:
        """Split a compact JWT into a ticket without checking its signature."""
        decoded = signing.decode(token)
        return cls(envelope=decoded.header, payload=decoded.payload)

    def subject_id(self) -> Optional[str]:
        """Return the ``sub`` claim, or ``None`` if the payload has none."""
        value = self.payload.get(USER_ATTRIBUTE)
        return None if value is None else str(value)

    def attributes(self) -> dict[str, dict[str, Any]]:
        return {"envelope": self.envelope, "payload": self.payload}
