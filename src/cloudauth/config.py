"""Configuration: well-known locations, environment lookup, and settings.

This module holds everything cloudauth reads from the process environment:

* **Constants** -- environment variable names, the well-known credential
  file name, metadata-service paths, and the SDK command line.
* **Well-known file** -- :func:`well_known_credentials_path` computes the
  platform- and OS-specific location written by ``gcloud auth
  application-default login``.
* **Settings** -- :class:`AuthSettings` collects endpoints, timeouts, and the
  expiry margin; :func:`load_settings` applies environment overrides on top
  of the defaults.
* **Data directory** -- :func:`get_data_dir` for CLI crash logs, XDG
  compliant on Linux/BSD.

Functions that read the environment accept an optional ``environ`` mapping
so callers (and tests) can resolve against something other than
``os.environ``.
"""

from __future__ import annotations

import os
import platform
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from cloudauth import __version__
from cloudauth.exceptions import ConfigurationError

_APP_NAME = "cloudauth"

CREDENTIALS_ENV_VAR = "GOOGLE_APPLICATION_CREDENTIALS"
"""Names a credential file to use. When set, it must point at a valid file."""

PROJECT_ENV_VARS: tuple[str, ...] = ("GCLOUD_PROJECT", "GOOGLE_CLOUD_PROJECT")
"""Project id variables, checked in this order."""

METADATA_HOST_ENV_VAR = "GCE_METADATA_HOST"

WELL_KNOWN_DIR = "gcloud"
WELL_KNOWN_FILE = "application_default_credentials.json"

DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"
DEFAULT_METADATA_HOST = "metadata.google.internal"
DEFAULT_METADATA_IP = "169.254.169.254"

METADATA_FLAVOR_HEADER = "Metadata-Flavor"
METADATA_FLAVOR_VALUE = "Google"

METADATA_TOKEN_PATH = "/computeMetadata/v1beta1/instance/service-accounts/default/token"
METADATA_SERVICE_ACCOUNTS_PATH = "/computeMetadata/v1/instance/service-accounts/?recursive=true"
METADATA_PROJECT_PATH = "/computeMetadata/v1/project/project-id"

SDK_PROJECT_COMMAND: tuple[str, ...] = (
    "gcloud", "-q", "config", "list", "core/project", "--format=json",
)

JWT_LIFETIME_SECONDS = 3600
"""Lifetime of every JWT this package signs (assertions and self-signed tokens)."""

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


# --- Environment helpers ---


def get_env(name: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the value of *name*, treating an empty string as unset."""
    env = os.environ if environ is None else environ
    value = env.get(name)
    return value or None


def _is_windows(system: Optional[str] = None) -> bool:
    """Return True if *system* (default: the running OS) is Windows."""
    name = system if system is not None else platform.system()
    return name.lower().startswith("win")


def well_known_credentials_path(
    environ: Optional[Mapping[str, str]] = None,
    system: Optional[str] = None,
) -> Optional[Path]:
    """Return the location of the well-known ADC file, or ``None``.

    On Windows: ``%APPDATA%\\gcloud\\application_default_credentials.json``.
    Elsewhere: ``$HOME/.config/gcloud/application_default_credentials.json``.

    ``None`` is returned when the root variable (``APPDATA`` or ``HOME``) is
    unset. The file itself is not checked for existence.

    Args:
        environ: Environment mapping, defaults to ``os.environ``.
        system: OS name as reported by :func:`platform.system`.
    """
    if _is_windows(system):
        root = get_env("APPDATA", environ)
        if not root:
            return None
        base = Path(root)
    else:
        home = get_env("HOME", environ)
        if not home:
            return None
        base = Path(home) / ".config"
    return base / WELL_KNOWN_DIR / WELL_KNOWN_FILE


# --- Settings ---


class AuthSettings(BaseModel):
    """Endpoints and policies shared by the transport, credentials, and resolver.

    Attributes:
        token_url: OAuth2 token endpoint for refresh-token and JWT-bearer exchanges.
        metadata_host: Hostname of the metadata service.
        metadata_ip: Link-local address used for the project-id lookup,
            avoiding a DNS round trip.
        timeout: Per-request timeout in seconds.
        expiry_margin: Seconds before ``expiry`` at which a cached token is
            already treated as expired.
        user_agent: Product token appended to outgoing ``User-Agent`` headers.
    """

    token_url: str = DEFAULT_TOKEN_URL
    metadata_host: str = DEFAULT_METADATA_HOST
    metadata_ip: str = DEFAULT_METADATA_IP
    timeout: float = Field(default=30.0, gt=0)
    expiry_margin: float = Field(default=0.0, ge=0)
    user_agent: str = f"{_APP_NAME}/{__version__}"

    @property
    def metadata_root_url(self) -> str:
        return f"http://{self.metadata_host}"

    @property
    def metadata_token_url(self) -> str:
        return f"http://{self.metadata_host}{METADATA_TOKEN_PATH}"

    @property
    def metadata_service_accounts_url(self) -> str:
        return f"http://{self.metadata_host}{METADATA_SERVICE_ACCOUNTS_PATH}"

    @property
    def metadata_project_url(self) -> str:
        return f"http://{self.metadata_ip}{METADATA_PROJECT_PATH}"


_SETTINGS_ENV_MAP: dict[str, str] = {
    "CLOUDAUTH_TOKEN_URL": "token_url",
    "CLOUDAUTH_TIMEOUT": "timeout",
    "CLOUDAUTH_EXPIRY_MARGIN": "expiry_margin",
    METADATA_HOST_ENV_VAR: "metadata_host",
}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> AuthSettings:
    """Build :class:`AuthSettings` from defaults overridden by environment variables.

    Recognised variables: ``CLOUDAUTH_TOKEN_URL``, ``CLOUDAUTH_TIMEOUT``,
    ``CLOUDAUTH_EXPIRY_MARGIN``, and ``GCE_METADATA_HOST``.

    Raises:
        ConfigurationError: If an override cannot be parsed (e.g. a
            non-numeric timeout).
    """
    overrides: dict[str, str] = {}
    for var, field in _SETTINGS_ENV_MAP.items():
        value = get_env(var, environ)
        if value is not None:
            overrides[field] = value
    try:
        return AuthSettings.model_validate(overrides)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid cloudauth settings in environment: {exc}") from exc


# --- Data directory ---


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/cloudauth/`` (default ``~/.local/share/cloudauth/``).
    On macOS/Windows: ``~/.cloudauth/``.
    """
    system = platform.system()
    if system == "Linux" or system.endswith("BSD"):
        base = os.environ.get("XDG_DATA_HOME", "")
        root = Path(base) if base else Path.home() / ".local" / "share"
        path = root / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path
