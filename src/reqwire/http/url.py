# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL assembly: base URI + location + query."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import urljoin, urlparse

import httpx

_PRIMITIVES = (str, int, float, bool, type(None))


def build_base_dir_url(base_url: str) -> str:
    """
    Convert a base URI into a "directory" URL suitable for relative `urljoin()` calls.

    Example:
      http://host/app -> http://host/app/
    """
    parsed = urlparse(str(base_url or ""))
    path = parsed.path.rstrip("/") + "/"
    return parsed._replace(path=path, params="", query="", fragment="").geturl()


def join_location(base_uri: str | httpx.URL | None, location: str | httpx.URL) -> str:
    """
    Resolve `location` against `base_uri`.

    The base is treated as a directory, so `http://x/a` + `b` is `http://x/a/b`.
    Absolute locations (with a scheme) are returned unchanged.
    """
    location_str = str(location)
    if not base_uri:
        return location_str
    if urlparse(location_str).scheme:
        return location_str
    return urljoin(build_base_dir_url(str(base_uri)), location_str.lstrip("/"))


def _query_value(value: Any) -> Any:
    if isinstance(value, _PRIMITIVES):
        return value
    if isinstance(value, (list, tuple)):
        return [v if isinstance(v, _PRIMITIVES) else str(v) for v in value]
    return str(value)


def append_query(url: str, query: Mapping[Any, Any] | None) -> str:
    """Merge `query` into the URL's query string, keeping existing parameters."""
    if not query:
        return str(httpx.URL(url))
    params = {str(key): _query_value(value) for key, value in query.items()}
    return str(httpx.URL(url).copy_merge_params(params))


def build_url(base_uri: str | httpx.URL | None, location: str | httpx.URL, query: Mapping[Any, Any] | None) -> str:
    return append_query(join_location(base_uri, location), query)


__all__ = ["append_query", "build_base_dir_url", "build_url", "join_location"]
