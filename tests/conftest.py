"""Shared test fixtures for cloudauth.

Provides reusable fixtures for faking HTTP with :class:`httpx.MockTransport`,
generating RSA signing keys, isolating the process environment, and
resetting global output and logging state between tests. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from cloudauth.auth import resolver as resolver_module
from cloudauth.config import AuthSettings
from cloudauth.output import reset_output
from cloudauth.transport import Transport


ENV_VARS = [
    "GOOGLE_APPLICATION_CREDENTIALS",
    "GCLOUD_PROJECT",
    "GOOGLE_CLOUD_PROJECT",
    "GCE_METADATA_HOST",
    "CLOUDAUTH_TOKEN_URL",
    "CLOUDAUTH_TIMEOUT",
    "CLOUDAUTH_EXPIRY_MARGIN",
    "APPDATA",
]


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams the cached
    references go stale once the test finishes.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_cloudauth_logger() -> None:
    """Remove handlers the CLI callback installed on the package logger."""
    yield
    logger = logging.getLogger("cloudauth")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _no_gcloud(monkeypatch: pytest.MonkeyPatch) -> None:
    """Behave as if the gcloud SDK is not installed unless a test says otherwise."""

    def _missing(*args: Any, **kwargs: Any) -> Any:
        raise FileNotFoundError("gcloud")

    monkeypatch.setattr(resolver_module.subprocess, "run", _missing)


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Clear credential-related variables and point HOME at an empty directory.

    Returns:
        The temporary HOME directory.
    """
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    return home


# ---------------------------------------------------------------------------
# Keys and credential descriptions
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    """PEM (PKCS#8) private key, as found in service-account JSON keys."""
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_key_pem(rsa_key: rsa.RSAPrivateKey) -> str:
    return rsa_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@pytest.fixture
def user_info() -> dict[str, Any]:
    """An ``authorized_user`` description."""
    return {
        "type": "authorized_user",
        "client_id": "c1",
        "client_secret": "s1",
        "refresh_token": "r1",
    }


@pytest.fixture
def service_account_info(private_key_pem: str) -> dict[str, Any]:
    """A ``service_account`` description with a real RSA key."""
    return {
        "type": "service_account",
        "project_id": "sa-project",
        "private_key_id": "kid-1",
        "private_key": private_key_pem,
        "client_email": "robot@sa-project.iam.gserviceaccount.com",
        "client_id": "1234567890",
    }


# ---------------------------------------------------------------------------
# HTTP faking
# ---------------------------------------------------------------------------


class RecordingHandler:
    """Wrap an ``httpx.MockTransport`` handler and keep every request it sees."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def settings() -> AuthSettings:
    return AuthSettings()


@pytest.fixture
def make_transport(settings: AuthSettings):
    """Factory building a :class:`Transport` whose requests go to *handler*.

    Returns:
        A callable ``make(handler) -> (transport, recorder)``.
    """
    clients: list[httpx.Client] = []

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
    ) -> tuple[Transport, RecordingHandler]:
        recorder = RecordingHandler(handler)
        client = httpx.Client(transport=httpx.MockTransport(recorder))
        clients.append(client)
        return Transport(settings, client=client), recorder

    yield _make
    for client in clients:
        client.close()
