# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Error taxonomy.

Everything except `FailureStatusCode` is raised while a request is being built,
before any network I/O. Transport failures (httpx exceptions) are never wrapped.
"""

from __future__ import annotations

from typing import Any


class ReqwireError(Exception):
    """Base class for all reqwire errors. `details` carries the offending data."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.details: dict[str, Any] = details


class InvalidContentType(ReqwireError, ValueError):
    def __init__(self, value: Any):
        super().__init__(f"invalid content-type: {value!r} (expected a MIME string)", value=value)
        self.value = value


class InvalidAcceptType(ReqwireError, ValueError):
    def __init__(self, value: Any):
        super().__init__(f"invalid accept type: {value!r} (expected a MIME string)", value=value)
        self.value = value


class InvalidHttpVersion(ReqwireError, ValueError):
    def __init__(self, value: Any):
        super().__init__(f"invalid HTTP version {value!r} (only supports 1.1 and 2.0)", value=value)
        self.value = value


class InvalidTimeoutType(ReqwireError, ValueError):
    def __init__(self, timeout: Any):
        super().__init__(
            f"invalid timeout {timeout!r} (expected a timedelta or a non-negative number of milliseconds)",
            timeout=timeout,
        )
        self.timeout = timeout


class InvalidHttpMethod(ReqwireError, ValueError):
    def __init__(self, method: Any):
        super().__init__(f"invalid HTTP method: {method!r}", method=method)
        self.method = method


class MissingRequestField(ReqwireError, ValueError):
    def __init__(self, field: str):
        super().__init__(f"no {field} provided", field=field)
        self.field = field


class UnknownContentTypeForSerialization(ReqwireError):
    def __init__(self, content_type: Any):
        super().__init__(f"can't serialize body; unknown content-type {content_type!r}", content_type=content_type)
        self.content_type = content_type


class UnsupportedBodySource(ReqwireError, TypeError):
    """Raised for body sources that cannot be read, e.g. a non-file:// URI."""

    def __init__(self, message: str, *, source: Any = None):
        super().__init__(message, source=source)
        self.source = source


class EdnSyntaxError(ReqwireError, ValueError):
    pass


class FailureStatusCode(ReqwireError):
    """Raised by `assert_success` for responses outside the 2xx range."""

    def __init__(self, status_code: int | None, body: Any = None):
        super().__init__(f"request failed with status code {status_code}", status_code=status_code, body=body)
        self.status_code = status_code
        self.body = body


__all__ = [
    "EdnSyntaxError",
    "FailureStatusCode",
    "InvalidAcceptType",
    "InvalidContentType",
    "InvalidHttpMethod",
    "InvalidHttpVersion",
    "InvalidTimeoutType",
    "MissingRequestField",
    "ReqwireError",
    "UnknownContentTypeForSerialization",
    "UnsupportedBodySource",
]
