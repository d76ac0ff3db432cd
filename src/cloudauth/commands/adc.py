"""Application Default Credentials commands.

Provides ``cloudauth token``, ``cloudauth project``, ``cloudauth whoami``
and ``cloudauth detect``. Each command builds one
:class:`~cloudauth.auth.ApplicationDefaultCredentialsResolver` from the
process environment and prints a single result to stdout, so the commands
compose in shell scripts::

    curl -H "Authorization: Bearer $(cloudauth token)" \\
        "https://storage.googleapis.com/storage/v1/b?project=$(cloudauth project)"
"""

from __future__ import annotations

from typing import NoReturn, Optional

import typer

from cloudauth.auth import ApplicationDefaultCredentialsResolver
from cloudauth.config import CLOUD_PLATFORM_SCOPE, CREDENTIALS_ENV_VAR, load_settings
from cloudauth.credentials import ServiceAccountCredential
from cloudauth.exceptions import CloudAuthError
from cloudauth.exit_codes import EXIT_UNRESOLVED
from cloudauth.output import (
    OutputFormat,
    debug,
    error,
    format_response,
    get_output,
    print_data,
    suggest,
)


def build_resolver() -> ApplicationDefaultCredentialsResolver:
    """Create a resolver for the current process environment."""
    return ApplicationDefaultCredentialsResolver(settings=load_settings())


def _fail(exc: CloudAuthError) -> NoReturn:
    error(exc.message)
    raise typer.Exit(code=exc.exit_code) from None


def token_command(
    target: Optional[str] = typer.Option(
        None, "--target", "-t", help="URI the token will be sent to (audience of self-signed JWTs)."
    ),
    scopes: Optional[list[str]] = typer.Option(
        None, "--scope", "-s", help="OAuth scope for service accounts. Repeatable."
    ),
) -> None:
    """Print an access token for the default credential.

    Service-account credentials need scopes; ``cloud-platform`` is used
    unless ``--scope`` is given.

    Example::

        cloudauth token
        cloudauth --json token --scope https://www.googleapis.com/auth/devstorage.read_only
    """
    resolver = build_resolver()
    try:
        result = resolver.get_application_default()
        credential = result.credential
        if isinstance(credential, ServiceAccountCredential) and (
            scopes or credential.create_scoped_required()
        ):
            credential = credential.with_scopes(scopes or [CLOUD_PLATFORM_SCOPE])
        metadata = credential.get_request_metadata(target)
    except CloudAuthError as exc:
        _fail(exc)

    debug(f"Token issued by {credential.kind} credential")
    token = metadata.headers.get("Authorization", "").removeprefix("Bearer ")
    if get_output().format == OutputFormat.JSON:
        format_response(
            {"access_token": token, "kind": credential.kind, "project_id": result.project_id}
        )
    else:
        print_data(token)


def project_command() -> None:
    """Print the default project id.

    Example::

        cloudauth project
    """
    resolver = build_resolver()
    try:
        project_id = resolver.get_default_project_id()
    except CloudAuthError as exc:
        _fail(exc)

    if not project_id:
        error("No project id could be determined.")
        suggest("Set GOOGLE_CLOUD_PROJECT or run: gcloud config set project <id>")
        raise typer.Exit(code=EXIT_UNRESOLVED)

    if get_output().format == OutputFormat.JSON:
        format_response({"project_id": project_id})
    else:
        print_data(project_id)


def whoami_command() -> None:
    """Print the service account behind the default credential.

    Example::

        cloudauth whoami
    """
    resolver = build_resolver()
    try:
        result = resolver.get_application_default()
        identity = resolver.get_credentials()
    except CloudAuthError as exc:
        _fail(exc)

    if get_output().format == OutputFormat.JSON:
        format_response({"client_email": identity.client_email, "kind": result.credential.kind})
    else:
        print_data(identity.client_email)


def detect_command() -> None:
    """Print whether this process runs on Google Cloud.

    Exits 0 in both cases; only an unexpected probe failure is an error.
    """
    resolver = build_resolver()
    try:
        on_platform = resolver.platform_detector.is_platform()
    except CloudAuthError as exc:
        _fail(exc)

    if get_output().format == OutputFormat.JSON:
        format_response({"on_platform": on_platform})
    else:
        print_data("true" if on_platform else "false")
    if not on_platform:
        suggest(
            f"Off the platform, set {CREDENTIALS_ENV_VAR} "
            "or run: gcloud auth application-default login"
        )
