"""Parsing of credential descriptions shared by all loadable variants.

A description arrives either as an in-memory mapping or as a readable
stream of UTF-8 JSON. Both paths end in a validated
:class:`~cloudauth.models.CredentialInfo`; every failure is reported as
:class:`~cloudauth.exceptions.ValidationError`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import IO, Any, Union

from pydantic import ValidationError as PydanticValidationError

from cloudauth.exceptions import ValidationError
from cloudauth.models import CredentialInfo

DescriptionLike = Union[CredentialInfo, Mapping[str, Any]]


def coerce_info(info: DescriptionLike | None, subject: str) -> CredentialInfo:
    """Validate *info* into a :class:`CredentialInfo`.

    Args:
        info: A mapping or an already-parsed :class:`CredentialInfo`.
        subject: What the description should contain, used in the error
            for a missing description (e.g. ``"the user refresh token"``).

    Raises:
        ValidationError: *info* is ``None``, not a mapping, or has fields
            of the wrong type.
    """
    if info is None:
        raise ValidationError(f"Must pass in a JSON object containing {subject}.")
    if isinstance(info, CredentialInfo):
        return info
    if not isinstance(info, Mapping):
        raise ValidationError(
            f"Expected a JSON object containing {subject}, got {type(info).__name__}."
        )
    try:
        return CredentialInfo.model_validate(dict(info))
    except PydanticValidationError as exc:
        raise ValidationError(f"The incoming JSON object is malformed: {exc}") from exc


def read_description(stream: IO[Any] | None, subject: str) -> CredentialInfo:
    """Read a whole stream (text or bytes) and parse it as a description.

    Raises:
        ValidationError: The stream is ``None``, not UTF-8, or not JSON.
    """
    if stream is None:
        raise ValidationError(f"Must pass in a stream containing {subject}.")
    raw = stream.read()
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError(f"Credential stream is not valid UTF-8: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Unable to parse credential JSON: {exc}") from exc
    return coerce_info(data, subject)
