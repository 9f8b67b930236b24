# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Header helpers.

HTTP header field names are case-insensitive (RFC 9110). Built requests keep
headers in a plain ordered dict, so setting a header must replace any existing
entry regardless of its casing.
"""

from __future__ import annotations

from collections.abc import Mapping


def _find_key(headers: Mapping[str, str], name: str) -> str | None:
    lower = name.lower()
    for key in headers:
        if key.lower() == lower:
            return key
    return None


def set_header(headers: dict[str, str], name: str, value: object) -> dict[str, str]:
    """Set `name` to `str(value)`, replacing an existing header with any casing."""
    existing = _find_key(headers, name)
    if existing is not None:
        del headers[existing]
    headers[str(name)] = str(value)
    return headers


def set_default_header(headers: dict[str, str], name: str, value: object) -> dict[str, str]:
    """Set `name` only if no header with that name exists yet."""
    if _find_key(headers, name) is None:
        headers[str(name)] = str(value)
    return headers


def header_value(headers: Mapping[str, str] | None, name: str, default: str | None = None) -> str | None:
    """Return a header value using case-insensitive key matching."""
    if not headers or not name:
        return default
    key = _find_key(headers, name)
    if key is None:
        return default
    return headers[key]


__all__ = ["header_value", "set_default_header", "set_header"]
