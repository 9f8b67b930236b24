# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request/response data models used across reqwire."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import timedelta
from typing import Any

import httpx

Headers = dict[str, str]


@dataclass(frozen=True)
class BasicAuth:
    username: str
    password: str


@dataclass(frozen=True)
class BearerAuth:
    token: str


@dataclass(frozen=True)
class BodyPart:
    """
    One named part of a multipart/form-data body.

    `content` is a file reference (Path, PathLike or file:// URL), a binary or
    text stream, bytes, or a str. `file_name` adds `filename=` to the
    Content-Disposition header; file references supply a default.
    """

    name: str
    content: Any
    content_type: str | None = None
    file_name: str | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("multipart body parts require a name")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BodyPart:
        return cls(
            name=data.get("name"),
            content=data.get("content"),
            content_type=data.get("content_type", data.get("contentType")),
            file_name=data.get("file_name", data.get("fileName")),
        )


_CAMEL_ALIASES = {
    "baseUri": "base_uri",
    "contentType": "content_type",
    "acceptLanguage": "accept_language",
    "apiKey": "api_key",
}

class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


# Distinguishes "not given" from an explicit value for content_type/accept.
UNSET: Any = _Unset()


@dataclass(frozen=True)
class RequestContext:
    """
    Caller-side description of an HTTP exchange.

    `method` and `location` are required at build time. `content_type` and
    `accept` fall back to JSON only when left unset; every other optional field
    emits nothing when absent.
    """

    location: str | httpx.URL | None = None
    method: str | None = None
    base_uri: str | httpx.URL | None = None
    query: Mapping[str, Any] | None = None
    headers: Mapping[str, str] | None = None
    body: Any = None
    content_type: Any = UNSET
    accept: Any = UNSET
    accept_language: str | None = None
    authorization: Any = None
    api_key: str | None = None
    timeout: timedelta | int | float | None = None
    version: str | float | None = None
    client: httpx.Client | httpx.AsyncClient | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RequestContext:
        """Build a context from a dict using snake_case or camelCase keys; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_ALIASES.get(str(key), str(key))
            if name not in known:
                continue
            if name in {"content_type", "accept"} and value is None:
                continue
            values[name] = value
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> RequestContext:
        return replace(self, **overrides)


@dataclass(frozen=True)
class WireBody:
    """
    Transport-ready request body.

    `content` is None for requests without a body, bytes, or a byte source read
    in chunks (file-like object, iterable or async iterable of bytes). `length`
    is the total size when known; unknown lengths are sent chunked.
    """

    content: Any = None
    length: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.content is None


EMPTY_BODY = WireBody()


@dataclass
class HttpRequest:
    """Fully built request consumed by the transports."""

    method: str
    url: str
    headers: Headers = field(default_factory=dict)
    body: WireBody = EMPTY_BODY
    timeout: float | None = None
    http_version: str | None = None
    boundary: str | None = None


@dataclass(frozen=True)
class Response:
    """
    Response envelope.

    `body` starts as the raw response stream and is replaced by the decoders in
    `reqwire.response`. The stream is single-pass: decode it once per request.
    """

    res: Any
    status_code: int
    body: Any = None
    content_type: str | None = None

    @property
    def headers(self) -> httpx.Headers:
        return getattr(self.res, "headers", None) or httpx.Headers()

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code <= 299


__all__ = [
    "BasicAuth",
    "BearerAuth",
    "BodyPart",
    "EMPTY_BODY",
    "Headers",
    "HttpRequest",
    "RequestContext",
    "Response",
    "UNSET",
    "WireBody",
]
