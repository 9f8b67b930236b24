# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
reqwire package entrypoint.

Callers describe an HTTP exchange as a RequestContext; reqwire builds the
request (including streamed multipart bodies), sends it through a blocking or
non-blocking httpx client, and returns a Response envelope whose body is
decoded on demand as text, JSON or EDN.
"""

from . import mime
from .config import HttpSettings, load_http_settings
from .errors import (
    EdnSyntaxError,
    FailureStatusCode,
    InvalidAcceptType,
    InvalidContentType,
    InvalidHttpMethod,
    InvalidHttpVersion,
    InvalidTimeoutType,
    MissingRequestField,
    ReqwireError,
    UnknownContentTypeForSerialization,
    UnsupportedBodySource,
)
from .http import (
    BasicAuth,
    BearerAuth,
    BodyPart,
    ClientProvider,
    HttpRequest,
    RequestContext,
    Response,
    WireBody,
    build_request,
    close_default_client,
    get_default_provider,
    set_default_provider,
)
from .log import setup_logging
from .multipart import compose_multipart
from .response import (
    EOF,
    assert_success,
    is_success,
    read_edn,
    read_edn_async,
    read_json,
    read_json_async,
    read_text,
    read_text_async,
)
from .runtime import HttpSession, get, get_async, post, post_async, send, send_async
from .version import __version__

__all__ = [
    "BasicAuth",
    "BearerAuth",
    "BodyPart",
    "ClientProvider",
    "EOF",
    "EdnSyntaxError",
    "FailureStatusCode",
    "HttpRequest",
    "HttpSession",
    "HttpSettings",
    "InvalidAcceptType",
    "InvalidContentType",
    "InvalidHttpMethod",
    "InvalidHttpVersion",
    "InvalidTimeoutType",
    "MissingRequestField",
    "ReqwireError",
    "RequestContext",
    "Response",
    "UnknownContentTypeForSerialization",
    "UnsupportedBodySource",
    "WireBody",
    "assert_success",
    "build_request",
    "close_default_client",
    "compose_multipart",
    "get",
    "get_async",
    "get_default_provider",
    "is_success",
    "load_http_settings",
    "mime",
    "post",
    "post_async",
    "read_edn",
    "read_edn_async",
    "read_json",
    "read_json_async",
    "read_text",
    "read_text_async",
    "send",
    "send_async",
    "set_default_provider",
    "setup_logging",
    "__version__",
]
