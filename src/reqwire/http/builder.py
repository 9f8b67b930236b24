# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Turn a RequestContext into a fully built HttpRequest."""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from ..body import encode_body
from ..errors import InvalidHttpMethod, InvalidHttpVersion, InvalidTimeoutType, MissingRequestField
from ..mime import JSON, MULTIPART, mime_essence, resolve_mime, validate_accept, validate_content_type
from ..multipart import MultipartStream, content_type_header, create_multipart_boundary
from .headers import set_header
from .models import UNSET, BasicAuth, BearerAuth, HttpRequest, RequestContext
from .url import build_url

logger = logging.getLogger(__name__)

HTTP_METHODS = {"get": "GET", "post": "POST", "put": "PUT", "patch": "PATCH", "delete": "DELETE", "head": "HEAD"}
HTTP_VERSIONS = {"1.1": "1.1", "2.0": "2.0"}


def resolve_method(method: Any) -> str:
    if method is None:
        raise MissingRequestField("method")
    name = getattr(method, "value", method)
    resolved = HTTP_METHODS.get(str(name).lower())
    if resolved is None:
        raise InvalidHttpMethod(method)
    return resolved


def resolve_version(version: Any) -> str:
    if isinstance(version, bool):
        raise InvalidHttpVersion(version)
    resolved = HTTP_VERSIONS.get(str(version))
    if resolved is None:
        raise InvalidHttpVersion(version)
    return resolved


def resolve_timeout(timeout: Any) -> float:
    """Return the timeout in seconds. Numbers are milliseconds."""
    if isinstance(timeout, timedelta):
        seconds = timeout.total_seconds()
    elif isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
        seconds = timeout / 1000
    else:
        raise InvalidTimeoutType(timeout)
    if seconds < 0:
        raise InvalidTimeoutType(timeout)
    return seconds


def str_to_base64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def format_authorization(authorization: Any) -> str:
    """
    Render an Authorization header value.

    Accepts BasicAuth/BearerAuth, {"kind": "basic"|"bearer", ...} mappings,
    ("basic", {"username", "password"}) and ("bearer", token) tuples; anything
    else is used verbatim.
    """
    if isinstance(authorization, BasicAuth):
        return "Basic " + str_to_base64(f"{authorization.username}:{authorization.password}")
    if isinstance(authorization, BearerAuth):
        return f"Bearer {authorization.token}"
    if isinstance(authorization, Mapping) and "kind" in authorization:
        kind = str(getattr(authorization["kind"], "name", authorization["kind"])).lower()
        if kind == "basic":
            return "Basic " + str_to_base64(f"{authorization.get('username')}:{authorization.get('password')}")
        if kind == "bearer":
            return f"Bearer {authorization.get('token')}"
    if isinstance(authorization, (tuple, list)) and len(authorization) == 2:
        kind, payload = authorization
        kind = str(getattr(kind, "name", kind)).lower()
        if kind == "basic" and isinstance(payload, Mapping):
            return "Basic " + str_to_base64(f"{payload.get('username')}:{payload.get('password')}")
        if kind == "bearer":
            return f"Bearer {payload}"
    return str(authorization)


def _boundary_param(content_type: str) -> str | None:
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "boundary" and value.strip():
            return value.strip().strip('"')
    return None


def build_request(context: RequestContext | Mapping[str, Any]) -> HttpRequest:
    """
    Build an HttpRequest from a context.

    All validation happens here, before any I/O. When the content type is
    multipart, the boundary in the Content-Type header is the one used to frame
    the composed body.
    """
    ctx = context if isinstance(context, RequestContext) else RequestContext.from_mapping(context)
    if ctx.location is None:
        raise MissingRequestField("location")
    method = resolve_method(ctx.method)
    timeout = resolve_timeout(ctx.timeout) if ctx.timeout is not None else None
    http_version = resolve_version(ctx.version) if ctx.version is not None else None

    content_type = JSON if ctx.content_type is UNSET else resolve_mime(ctx.content_type)
    accept = JSON if ctx.accept is UNSET else resolve_mime(ctx.accept)
    content_type_str = validate_content_type(content_type) if content_type is not None else None
    accept_str = validate_accept(accept) if accept is not None else None

    boundary = create_multipart_boundary()
    body = encode_body(ctx.body, content_type, boundary)

    headers: dict[str, str] = {}
    for name, value in (ctx.headers or {}).items():
        set_header(headers, str(name), value)

    if ctx.accept_language is not None:
        set_header(headers, "Accept-Language", ctx.accept_language)

    if content_type_str is not None:
        if isinstance(body.content, MultipartStream):
            content_type_str = body.content.content_type
            boundary = body.content.boundary
        elif mime_essence(content_type_str) == MULTIPART:
            boundary = _boundary_param(content_type_str) or boundary
            content_type_str = content_type_header(boundary)
        set_header(headers, "Content-Type", content_type_str)

    if accept_str is not None:
        set_header(headers, "Accept", accept_str)

    if ctx.authorization is not None:
        set_header(headers, "Authorization", format_authorization(ctx.authorization))

    if ctx.api_key is not None:
        set_header(headers, "X-API-KEY", ctx.api_key)

    if body.length is not None and not body.is_empty:
        set_header(headers, "Content-Length", body.length)

    request = HttpRequest(
        method=method,
        url=build_url(ctx.base_uri, ctx.location, ctx.query),
        headers=headers,
        body=body,
        timeout=timeout,
        http_version=http_version,
        boundary=boundary if content_type_str and mime_essence(content_type_str) == MULTIPART else None,
    )
    logger.debug("Built %s %s", request.method, request.url)
    return request


__all__ = [
    "HTTP_METHODS",
    "HTTP_VERSIONS",
    "build_request",
    "format_authorization",
    "resolve_method",
    "resolve_timeout",
    "resolve_version",
]
