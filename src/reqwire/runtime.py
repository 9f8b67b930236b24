# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level reqwire facade: send a RequestContext and get a Response envelope."""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import Any

from .config import HttpSettings
from .http.builder import build_request
from .http.client import ClientProvider, get_default_provider
from .http.httpx_client import AsyncTransport, SyncTransport
from .http.models import RequestContext, Response

ContextLike = RequestContext | Mapping[str, Any]


def _as_context(context: ContextLike) -> RequestContext:
    return context if isinstance(context, RequestContext) else RequestContext.from_mapping(context)


class HttpSession:
    """
    Wires one ClientProvider into the blocking and non-blocking transports.

    Without an explicit provider the process-wide default is used, and closing
    the session leaves it alone. A session constructed with its own provider or
    settings owns that provider and closes it on exit.
    """

    def __init__(self, provider: ClientProvider | None = None, *, settings: HttpSettings | None = None):
        self._owns_provider = provider is None and settings is not None
        if provider is None and settings is not None:
            provider = ClientProvider(settings)
        self._provider = provider
        self._sync = SyncTransport(provider)
        self._async = AsyncTransport(provider)

    @property
    def provider(self) -> ClientProvider:
        return self._provider or get_default_provider()

    def send(self, context: ContextLike) -> Response:
        """Build and send a request, blocking until response headers arrive."""
        ctx = _as_context(context)
        return self._sync.send(build_request(ctx), client=ctx.client)

    def send_async(self, context: ContextLike) -> Awaitable[Response]:
        """
        Build a request now and return an awaitable that sends it.

        Validation errors raise immediately; wrap the result in
        `asyncio.ensure_future` for a Task handle.
        """
        ctx = _as_context(context)
        return self._async.send(build_request(ctx), client=ctx.client)

    def get(self, location: Any, query: Mapping[str, Any] | None = None, context: ContextLike | None = None) -> Response:
        return self.send(_with_call(context, location=location, method="get", query=query))

    def post(
        self,
        location: Any,
        body: Any,
        query: Mapping[str, Any] | None = None,
        context: ContextLike | None = None,
    ) -> Response:
        return self.send(_with_call(context, location=location, method="post", query=query, body=body))

    def get_async(
        self, location: Any, query: Mapping[str, Any] | None = None, context: ContextLike | None = None
    ) -> Awaitable[Response]:
        return self.send_async(_with_call(context, location=location, method="get", query=query))

    def post_async(
        self,
        location: Any,
        body: Any,
        query: Mapping[str, Any] | None = None,
        context: ContextLike | None = None,
    ) -> Awaitable[Response]:
        return self.send_async(_with_call(context, location=location, method="post", query=query, body=body))

    def close(self) -> None:
        if self._owns_provider and self._provider is not None:
            self._provider.close()

    async def aclose(self) -> None:
        if self._owns_provider and self._provider is not None:
            await self._provider.aclose()

    def __enter__(self) -> HttpSession:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()

    async def __aenter__(self) -> HttpSession:
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        await self.aclose()


def _with_call(context: ContextLike | None, **overrides: Any) -> RequestContext:
    ctx = _as_context(context or {})
    return ctx.with_overrides(**{key: value for key, value in overrides.items() if value is not None})


_default_session = HttpSession()


def send(context: ContextLike) -> Response:
    """Synchronously send a request described by `context` using the default client."""
    return _default_session.send(context)


def send_async(context: ContextLike) -> Awaitable[Response]:
    """Asynchronously send a request described by `context` using the default client."""
    return _default_session.send_async(context)


def get(location: Any, query: Mapping[str, Any] | None = None, context: ContextLike | None = None) -> Response:
    return _default_session.get(location, query, context)


def post(location: Any, body: Any, query: Mapping[str, Any] | None = None, context: ContextLike | None = None) -> Response:
    return _default_session.post(location, body, query, context)


def get_async(
    location: Any, query: Mapping[str, Any] | None = None, context: ContextLike | None = None
) -> Awaitable[Response]:
    return _default_session.get_async(location, query, context)


def post_async(
    location: Any, body: Any, query: Mapping[str, Any] | None = None, context: ContextLike | None = None
) -> Awaitable[Response]:
    return _default_session.post_async(location, body, query, context)


__all__ = [
    "HttpSession",
    "get",
    "get_async",
    "post",
    "post_async",
    "send",
    "send_async",
]
