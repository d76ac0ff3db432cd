"""Tests for the self-signed JWT access credential."""

from __future__ import annotations

import time
from typing import Any

import jwt
import pytest

from cloudauth.credentials import JWTAccessCredential
from cloudauth.exceptions import CredentialError, ValidationError


def _claims(headers: dict[str, str], public_key_pem: str, audience: str) -> dict[str, Any]:
    token = headers["Authorization"].removeprefix("Bearer ")
    return jwt.decode(token, public_key_pem, algorithms=["RS256"], audience=audience)


class TestJWTAccess:
    def test_claims_bound_to_target(
        self, service_account_info: dict[str, Any], public_key_pem: str
    ) -> None:
        credential = JWTAccessCredential.from_info(service_account_info)
        target = "https://pubsub.googleapis.com/"

        before = int(time.time())
        claims = _claims(credential.get_request_metadata(target).headers, public_key_pem, target)

        assert claims["iss"] == claims["sub"] == service_account_info["client_email"]
        assert claims["aud"] == target
        assert abs(claims["iat"] - before) <= 1
        assert claims["exp"] == claims["iat"] + 3600

    def test_different_targets_different_audiences(
        self, service_account_info: dict[str, Any], public_key_pem: str
    ) -> None:
        credential = JWTAccessCredential.from_info(service_account_info)
        first = credential.get_request_metadata("https://a.googleapis.com/")
        second = credential.get_request_metadata("https://b.googleapis.com/")

        assert first.headers != second.headers
        assert _claims(first.headers, public_key_pem, "https://a.googleapis.com/")["aud"] == (
            "https://a.googleapis.com/"
        )
        assert _claims(second.headers, public_key_pem, "https://b.googleapis.com/")["aud"] == (
            "https://b.googleapis.com/"
        )

    def test_key_id_in_header(self, service_account_info: dict[str, Any]) -> None:
        credential = JWTAccessCredential.from_info(service_account_info)
        token = credential.get_request_metadata("https://x/").headers["Authorization"][7:]
        assert jwt.get_unverified_header(token)["kid"] == "kid-1"

    def test_never_requires_scopes(self, service_account_info: dict[str, Any]) -> None:
        credential = JWTAccessCredential.from_info(service_account_info)
        assert credential.create_scoped_required() is False
        assert credential.kind == "jwt_access"
        assert credential.project_id == "sa-project"

    def test_target_required(self, service_account_info: dict[str, Any]) -> None:
        credential = JWTAccessCredential.from_info(service_account_info)
        with pytest.raises(CredentialError, match="target URI"):
            credential.get_request_metadata()

    def test_missing_email(self, service_account_info: dict[str, Any]) -> None:
        del service_account_info["client_email"]
        with pytest.raises(ValidationError, match="client_email"):
            JWTAccessCredential.from_info(service_account_info)

    def test_missing_private_key(self, service_account_info: dict[str, Any]) -> None:
        service_account_info["private_key"] = ""
        with pytest.raises(ValidationError, match="private_key"):
            JWTAccessCredential.from_info(service_account_info)
