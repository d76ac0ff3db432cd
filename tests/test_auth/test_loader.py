"""Tests for CredentialLoader dispatch and file handling."""

from __future__ import annotations

import io
import json
import os
from pathlib import Path
from typing import Any

import pytest

from cloudauth.auth import CredentialLoader
from cloudauth.credentials import ServiceAccountCredential, UserRefreshCredential
from cloudauth.exceptions import ValidationError


def _write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestDispatch:
    def test_authorized_user(self, user_info: dict[str, Any]) -> None:
        credential = CredentialLoader().from_info(user_info)
        assert isinstance(credential, UserRefreshCredential)

    def test_service_account(self, service_account_info: dict[str, Any]) -> None:
        credential = CredentialLoader().from_info(service_account_info)
        assert isinstance(credential, ServiceAccountCredential)
        assert credential.project_id == "sa-project"

    def test_missing_type(self, user_info: dict[str, Any]) -> None:
        del user_info["type"]
        with pytest.raises(ValidationError, match="does not contain a type field"):
            CredentialLoader().from_info(user_info)

    def test_unknown_type(self, user_info: dict[str, Any]) -> None:
        user_info["type"] = "external_account"
        with pytest.raises(ValidationError, match="Unsupported credential type 'external_account'"):
            CredentialLoader().from_info(user_info)

    def test_not_an_object(self) -> None:
        with pytest.raises(ValidationError, match="Expected a JSON object"):
            CredentialLoader().from_stream(io.StringIO("[1, 2]"))

    def test_wrong_field_type(self, user_info: dict[str, Any]) -> None:
        user_info["client_id"] = ["not", "a", "string"]
        with pytest.raises(ValidationError, match="malformed"):
            CredentialLoader().from_info(user_info)

    def test_shares_transport_and_settings(self, user_info: dict[str, Any]) -> None:
        loader = CredentialLoader()
        credential = loader.from_info(user_info)
        assert credential.transport is loader.transport
        assert credential.settings is loader.settings


class TestFromFile:
    def test_regular_file(self, tmp_path: Path, user_info: dict[str, Any]) -> None:
        path = _write_json(tmp_path / "adc.json", user_info)
        credential = CredentialLoader().from_file(path)
        assert credential.kind == "authorized_user"

    def test_symlink_is_followed(self, tmp_path: Path, user_info: dict[str, Any]) -> None:
        target = _write_json(tmp_path / "real" / "adc.json", user_info)
        link = tmp_path / "link.json"
        os.symlink(target, link)
        assert CredentialLoader().from_file(link).kind == "authorized_user"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError, match="does not exist, or it is not a file"):
            CredentialLoader().from_file(tmp_path / "nope.json")

    def test_directory_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError, match="does not exist, or it is not a file"):
            CredentialLoader().from_file(tmp_path)

    def test_malformed_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ValidationError, match="Unable to parse credential JSON"):
            CredentialLoader().from_file(path)

    def test_read_info_preserves_unknown_fields(self, tmp_path: Path, user_info: dict[str, Any]) -> None:
        user_info["quota_project_id"] = "billing"
        path = _write_json(tmp_path / "adc.json", user_info)
        info = CredentialLoader.read_info(path)
        assert info.model_dump()["quota_project_id"] == "billing"
