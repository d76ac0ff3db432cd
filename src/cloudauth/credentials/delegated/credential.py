"""Delegated-authority header credential."""

from __future__ import annotations

from typing import Optional

from cloudauth.auth.base import RequestMetadata, TokenBearingCredential

DELEGATED_KIND = "delegated"
AUTHORITY_SELECTOR_HEADER = "x-goog-iam-authority-selector"
AUTHORIZATION_TOKEN_HEADER = "x-goog-iam-authorization-token"


class DelegatedHeaderCredential(TokenBearingCredential):
    """Attach a fixed authority selector and authorization token to requests.

    Nothing is refreshed; the two values are sent verbatim on every request.
    """

    def __init__(self, authority_selector: str, authorization_token: str) -> None:
        self.authority_selector = authority_selector
        self.authorization_token = authorization_token

    @property
    def kind(self) -> str:
        return DELEGATED_KIND

    def get_request_metadata(self, target_uri: Optional[str] = None) -> RequestMetadata:
        return RequestMetadata(
            headers={
                AUTHORITY_SELECTOR_HEADER: self.authority_selector,
                AUTHORIZATION_TOKEN_HEADER: self.authorization_token,
            }
        )
