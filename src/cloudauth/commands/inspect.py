"""Inspect command -- validate a credential file without using it.

``cloudauth inspect PATH`` parses the file exactly as the resolver would and
prints what kind of credential it describes. Secrets (client secret,
refresh token, private key) are never printed, and no request is sent.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer

from cloudauth.auth import CredentialLoader
from cloudauth.exceptions import CloudAuthError
from cloudauth.output import error, format_response, success


def inspect_command(
    path: Path = typer.Argument(help="Credential JSON file to validate."),
) -> None:
    """Validate a credential file and print its non-secret fields.

    Example::

        cloudauth inspect ~/.config/gcloud/application_default_credentials.json
    """
    loader = CredentialLoader()
    try:
        info = loader.read_info(path)
        credential = loader.from_info(info)
    except CloudAuthError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None

    summary: dict[str, Any] = {"type": credential.kind}
    if info.client_id:
        summary["client_id"] = info.client_id
    if info.client_email:
        summary["client_email"] = info.client_email
    if info.private_key_id:
        summary["private_key_id"] = info.private_key_id
    summary["project_id"] = info.project_id

    format_response(summary)
    success(f"{path} is a valid {credential.kind} credential.")
