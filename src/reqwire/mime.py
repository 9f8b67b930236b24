# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Canonical MIME strings and Content-Type/Accept validation."""

from __future__ import annotations

from enum import Enum
from typing import Any, Final

from .errors import InvalidAcceptType, InvalidContentType

JSON: Final = "application/json"
EDN: Final = "application/edn"
TEXT: Final = "text/plain"
MULTIPART: Final = "multipart/form-data"
FORM: Final = "application/x-www-form-urlencoded"


class MimeShorthand(str, Enum):
    """Shorthand names accepted for `content_type` and `accept`."""

    JSON = "json"
    EDN = "edn"
    TEXT = "text"
    MULTIPART = "multipart"
    FORM = "form"


SHORTHANDS: Final[dict[str, str]] = {
    MimeShorthand.JSON.value: JSON,
    MimeShorthand.EDN.value: EDN,
    MimeShorthand.TEXT.value: TEXT,
    MimeShorthand.MULTIPART.value: MULTIPART,
    MimeShorthand.FORM.value: FORM,
}


def resolve_mime(value: Any) -> Any:
    """Map a shorthand (str or MimeShorthand) to its MIME string; other values pass through."""
    if isinstance(value, MimeShorthand):
        return SHORTHANDS[value.value]
    if isinstance(value, str):
        return SHORTHANDS.get(value, value)
    return value


def validate_content_type(value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidContentType(value)
    return value


def validate_accept(value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidAcceptType(value)
    return value


def mime_essence(value: str) -> str:
    """
    Return the type/subtype part of a MIME string, lower-cased.

    Example:
      "application/json; charset=utf-8" -> "application/json"
    """
    return value.split(";", 1)[0].strip().lower()


__all__ = [
    "EDN",
    "FORM",
    "JSON",
    "MULTIPART",
    "MimeShorthand",
    "SHORTHANDS",
    "TEXT",
    "mime_essence",
    "resolve_mime",
    "validate_accept",
    "validate_content_type",
]
