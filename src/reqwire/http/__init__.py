# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request building, client and transport exports."""

from .builder import build_request, format_authorization
from .client import (
    ClientProvider,
    close_default_client,
    create_default_async_http_client,
    create_default_http_client,
    get_default_provider,
    set_default_provider,
)
from .headers import header_value, set_header
from .httpx_client import AsyncResponseStream, AsyncTransport, SyncTransport
from .models import (
    BasicAuth,
    BearerAuth,
    BodyPart,
    Headers,
    HttpRequest,
    RequestContext,
    Response,
    WireBody,
)
from .url import append_query, build_url, join_location

__all__ = [
    "AsyncResponseStream",
    "AsyncTransport",
    "BasicAuth",
    "BearerAuth",
    "BodyPart",
    "ClientProvider",
    "Headers",
    "HttpRequest",
    "RequestContext",
    "Response",
    "SyncTransport",
    "WireBody",
    "append_query",
    "build_request",
    "build_url",
    "close_default_client",
    "create_default_async_http_client",
    "create_default_http_client",
    "format_authorization",
    "get_default_provider",
    "header_value",
    "join_location",
    "set_default_provider",
    "set_header",
]
