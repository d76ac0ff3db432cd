"""Application Default Credentials resolution.

:class:`ApplicationDefaultCredentialsResolver` answers two questions for the
running process:

**Which credential?** The first source that yields one wins:

1. The file named by ``GOOGLE_APPLICATION_CREDENTIALS``. If the variable is
   set the file must load; a failure stops the chain.
2. The well-known file written by ``gcloud auth application-default login``.
   Skipped when absent; a present but broken file stops the chain.
3. The metadata server. When the platform is detected a
   :class:`~cloudauth.credentials.MetadataCredential` is returned, with no
   project id attached.

**Which project?** The first non-empty answer wins:

1. ``GCLOUD_PROJECT`` then ``GOOGLE_CLOUD_PROJECT``.
2. The ``project_id`` of the resolved credential, or of the file named by
   ``GOOGLE_APPLICATION_CREDENTIALS``.
3. ``gcloud config list core/project`` (best effort).
4. The metadata server, if the platform was already detected (best effort).

Both answers are memoized on the resolver.

Example::

    resolver = ApplicationDefaultCredentialsResolver()
    result = resolver.get_application_default()
    headers = result.credential.get_request_metadata().headers
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import threading
from dataclasses import dataclass
from typing import IO, Any, Mapping, Optional, Union

from cloudauth.auth.base import TokenBearingCredential
from cloudauth.auth.loader import CredentialLoader
from cloudauth.auth.platform import PlatformDetector
from cloudauth.config import (
    CREDENTIALS_ENV_VAR,
    METADATA_FLAVOR_HEADER,
    METADATA_FLAVOR_VALUE,
    PROJECT_ENV_VARS,
    SDK_PROJECT_COMMAND,
    AuthSettings,
    get_env,
    load_settings,
    well_known_credentials_path,
)
from cloudauth.credentials.description import DescriptionLike, coerce_info, read_description
from cloudauth.credentials.metadata.credential import MetadataCredential
from cloudauth.exceptions import (
    CloudAuthError,
    ConfigurationError,
    CredentialError,
    TransportError,
    UnresolvedError,
    ValidationError,
)
from cloudauth.models import CredentialInfo, ServiceAccountIdentity
from cloudauth.transport import RequestConfig, Transport

logger = logging.getLogger(__name__)

HELP_URL = "https://developers.google.com/accounts/docs/application-default-credentials"
NOT_FOUND_MESSAGE = (
    f"Could not load the default credentials. Browse to {HELP_URL} for more information."
)

_SUBJECT = "the credential description"


@dataclass(frozen=True)
class ADCResult:
    """A resolved credential and the independently resolved project id."""

    credential: TokenBearingCredential
    project_id: Optional[str] = None


class ApplicationDefaultCredentialsResolver:
    """Locate the default credential and project for this process.

    Args:
        transport: Shared request capability for every credential created
            and for metadata lookups.
        settings: Endpoints and policies. Loaded from *environ* when omitted.
        environ: Environment mapping; ``os.environ`` when omitted.
        platform_detector: Detector to consult; one sharing *transport* is
            created when omitted.
        system: OS name used to locate the well-known file; the running OS
            when omitted.

    Attributes:
        cached_credential: The memoized result of the credential chain.
        cached_project_id: The memoized result of the project chain.
        json_content: The description behind the last credential loaded
            from a file, stream, or mapping.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        settings: Optional[AuthSettings] = None,
        environ: Optional[Mapping[str, str]] = None,
        platform_detector: Optional[PlatformDetector] = None,
        system: Optional[str] = None,
    ) -> None:
        self.environ = environ
        self.settings = settings or load_settings(environ)
        self.transport = transport or Transport(self.settings)
        self.loader = CredentialLoader(self.transport, self.settings)
        self.platform_detector = platform_detector or PlatformDetector(
            self.transport, self.settings
        )
        self.system = system
        self.cached_credential: Optional[TokenBearingCredential] = None
        self.cached_project_id: Optional[str] = None
        self.json_content: Optional[CredentialInfo] = None
        self._credential_lock = threading.Lock()
        self._project_lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Credential chain
    # ------------------------------------------------------------------ #

    def get_application_default(self) -> ADCResult:
        """Resolve (or return the memoized) default credential and project id.

        A metadata-server credential comes back without a project id; ask
        :meth:`get_default_project_id` for it.

        Raises:
            ConfigurationError: An explicitly configured source is broken.
            UnresolvedError: No source produced a credential, or platform
                detection failed unexpectedly.
        """
        with self._credential_lock:
            if self.cached_credential is None:
                self.cached_credential = self._resolve_credential()
            credential = self.cached_credential
        if isinstance(credential, MetadataCredential):
            return ADCResult(credential=credential)
        return ADCResult(credential=credential, project_id=self.get_default_project_id())

    def _resolve_credential(self) -> TokenBearingCredential:
        credential = self._from_environment_variable()
        if credential is not None:
            return credential

        credential = self._from_well_known_file()
        if credential is not None:
            return credential

        try:
            on_platform = self.platform_detector.is_platform()
        except TransportError as exc:
            raise UnresolvedError(
                f"Unexpected error while acquiring application default credentials: {exc.message}"
            ) from exc
        if on_platform:
            logger.debug("Using the metadata server credential")
            return MetadataCredential(transport=self.transport, settings=self.settings)
        raise UnresolvedError(NOT_FOUND_MESSAGE)

    def _from_environment_variable(self) -> Optional[TokenBearingCredential]:
        path = get_env(CREDENTIALS_ENV_VAR, self.environ)
        if not path:
            return None
        logger.debug("Using credential file from %s", CREDENTIALS_ENV_VAR)
        try:
            return self.from_file(path)
        except ValidationError as exc:
            raise ConfigurationError(
                "Unable to read the credential file specified by the "
                f"{CREDENTIALS_ENV_VAR} environment variable. {exc.message}"
            ) from exc

    def _from_well_known_file(self) -> Optional[TokenBearingCredential]:
        path = well_known_credentials_path(self.environ, self.system)
        if path is None or not path.exists():
            return None
        logger.debug("Using well-known credential file %s", path)
        try:
            return self.from_file(path)
        except ValidationError as exc:
            raise ConfigurationError(
                f"Unable to read the default credential file at {path}. {exc.message}"
            ) from exc

    # ------------------------------------------------------------------ #
    # Explicit descriptions
    # ------------------------------------------------------------------ #

    def from_info(self, info: DescriptionLike | None) -> TokenBearingCredential:
        """Build a credential from a description and remember the description."""
        parsed = coerce_info(info, _SUBJECT)
        credential = self.loader.from_info(parsed)
        self.json_content = parsed
        return credential

    def from_stream(self, stream: IO[Any] | None) -> TokenBearingCredential:
        """Build a credential from a JSON stream and remember the description."""
        return self.from_info(read_description(stream, _SUBJECT))

    def from_file(self, path: Union[str, os.PathLike[str]]) -> TokenBearingCredential:
        """Build a credential from a JSON file and remember the description."""
        return self.from_info(self.loader.read_info(path))

    # ------------------------------------------------------------------ #
    # Project chain
    # ------------------------------------------------------------------ #

    def get_default_project_id(self) -> Optional[str]:
        """Resolve (or return the memoized) project id; ``None`` if unknown.

        Raises:
            ConfigurationError: ``GOOGLE_APPLICATION_CREDENTIALS`` names a
                broken file.
        """
        with self._project_lock:
            if self.cached_project_id:
                return self.cached_project_id
            project_id = (
                self._project_from_environment()
                or self._project_from_credential()
                or self._project_from_sdk()
                or self._project_from_metadata()
            )
            if project_id:
                self.cached_project_id = project_id
            return project_id

    def _project_from_environment(self) -> Optional[str]:
        for name in PROJECT_ENV_VARS:
            value = get_env(name, self.environ)
            if value:
                return value
        return None

    def _project_from_credential(self) -> Optional[str]:
        if self.cached_credential is not None:
            return self.cached_credential.project_id
        path = get_env(CREDENTIALS_ENV_VAR, self.environ)
        if not path:
            return None
        try:
            return self.loader.read_info(path).project_id
        except ValidationError as exc:
            raise ConfigurationError(
                "Unable to read the credential file specified by the "
                f"{CREDENTIALS_ENV_VAR} environment variable. {exc.message}"
            ) from exc

    def _project_from_sdk(self) -> Optional[str]:
        try:
            completed = subprocess.run(
                SDK_PROJECT_COMMAND,
                capture_output=True,
                text=True,
                timeout=self.settings.timeout,
                check=True,
            )
        except FileNotFoundError:
            logger.debug("gcloud is not installed; skipping SDK project lookup")
            return None
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("gcloud project lookup failed: %s", exc)
            return None
        try:
            config = json.loads(completed.stdout)
        except json.JSONDecodeError as exc:
            logger.warning("gcloud returned unparsable configuration: %s", exc)
            return None
        core = config.get("core") if isinstance(config, dict) else None
        project = core.get("project") if isinstance(core, dict) else None
        return project or None

    def _project_from_metadata(self) -> Optional[str]:
        if self.platform_detector.result is not True:
            return None
        try:
            response = self.transport.request(
                RequestConfig(
                    url=self.settings.metadata_project_url,
                    headers={METADATA_FLAVOR_HEADER: METADATA_FLAVOR_VALUE},
                )
            )
        except CloudAuthError as exc:
            logger.warning("Metadata project lookup failed: %s", exc.message)
            return None
        if not isinstance(response.data, str):
            return None
        return response.data.strip() or None

    # ------------------------------------------------------------------ #
    # Service account identity
    # ------------------------------------------------------------------ #

    def get_credentials(self) -> ServiceAccountIdentity:
        """Return the service-account email (and key, when known) in use.

        Uses the remembered description when one was loaded; otherwise asks
        the metadata server for the default service account.

        Raises:
            UnresolvedError: No description was loaded and the process is
                not on the platform, or the description names no account.
            CredentialError: The metadata server gave no usable answer.
        """
        if self.json_content is not None:
            if not self.json_content.client_email:
                raise UnresolvedError(
                    "The loaded credential does not name a service account (no client_email)."
                )
            return ServiceAccountIdentity(
                client_email=self.json_content.client_email,
                private_key=self.json_content.private_key,
            )

        try:
            on_platform = self.platform_detector.is_platform()
        except TransportError as exc:
            raise UnresolvedError(
                f"Unexpected error while detecting the platform: {exc.message}"
            ) from exc
        if not on_platform:
            raise UnresolvedError(
                "No credential description was loaded and the metadata server is not available."
            )

        try:
            response = self.transport.request(
                RequestConfig(
                    url=self.settings.metadata_service_accounts_url,
                    headers={METADATA_FLAVOR_HEADER: METADATA_FLAVOR_VALUE},
                )
            )
        except TransportError as exc:
            raise CredentialError(
                f"Failure from metadata server: {exc.message}", status=exc.status
            ) from exc
        accounts = response.data if isinstance(response.data, dict) else {}
        default = accounts.get("default")
        email = default.get("email") if isinstance(default, dict) else None
        if not email:
            raise CredentialError("Failure from metadata server: no default service account.")
        return ServiceAccountIdentity(client_email=email)
