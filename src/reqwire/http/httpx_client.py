# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
httpx-backed transports.

Both strategies consume the same HttpRequest from the builder. They return as
soon as response headers arrive; the body stays a stream on the envelope until
one of the decoders in `reqwire.response` reads it.
"""

from __future__ import annotations

import io
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from ..streams import IterStream, aiter_chunks, iter_chunks
from .client import ClientProvider, get_default_provider
from .headers import set_default_header
from .models import HttpRequest, Response

logger = logging.getLogger(__name__)


class AsyncResponseStream:
    """Single-pass async byte stream over a streamed httpx response."""

    def __init__(self, response: httpx.Response, chunk_size: int | None = None):
        self._response = response
        self._chunk_size = chunk_size

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes(self._chunk_size):
                yield chunk
        finally:
            await self._response.aclose()

    async def aread(self) -> bytes:
        try:
            return await self._response.aread()
        finally:
            await self._response.aclose()

    async def aclose(self) -> None:
        await self._response.aclose()


def _response_content_type(response: httpx.Response) -> str | None:
    values = response.headers.get_list("content-type")
    return values[0] if values else None


def _request_headers(request: HttpRequest, user_agent: str) -> dict[str, str]:
    headers = dict(request.headers)
    set_default_header(headers, "User-Agent", user_agent)
    return headers


def _timeout(request: HttpRequest) -> Any:
    return request.timeout if request.timeout is not None else httpx.USE_CLIENT_DEFAULT


def _sync_content(content: Any, chunk_size: int) -> Any:
    if content is None or isinstance(content, bytes):
        return content
    if hasattr(content, "read"):
        return iter_chunks(content, chunk_size)
    return content


class SyncTransport:
    """Blocking strategy: returns once the response headers are received."""

    def __init__(self, provider: ClientProvider | None = None):
        self._provider = provider

    @property
    def provider(self) -> ClientProvider:
        return self._provider or get_default_provider()

    def send(self, request: HttpRequest, client: httpx.Client | None = None) -> Response:
        provider = self.provider
        settings = provider.settings
        client = client or provider.client(request.http_version)
        native_request = client.build_request(
            request.method,
            request.url,
            headers=_request_headers(request, settings.user_agent),
            content=_sync_content(request.body.content, settings.chunk_size),
            timeout=_timeout(request),
        )
        try:
            native = client.send(native_request, stream=True)
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %s", request.method, request.url, exc)
            raise
        logger.debug("%s %s -> %s", request.method, request.url, native.status_code)
        body = io.BufferedReader(IterStream(native.iter_bytes(settings.chunk_size), on_close=native.close))
        return Response(
            res=native,
            status_code=native.status_code,
            body=body,
            content_type=_response_content_type(native),
        )


class AsyncTransport:
    """Non-blocking strategy: `send` returns an awaitable completing once headers arrive."""

    def __init__(self, provider: ClientProvider | None = None):
        self._provider = provider

    @property
    def provider(self) -> ClientProvider:
        return self._provider or get_default_provider()

    async def send(self, request: HttpRequest, client: httpx.AsyncClient | None = None) -> Response:
        provider = self.provider
        settings = provider.settings
        client = client or provider.async_client(request.http_version)
        content = request.body.content
        if content is not None and not isinstance(content, bytes):
            content = aiter_chunks(content, settings.chunk_size)
        native_request = client.build_request(
            request.method,
            request.url,
            headers=_request_headers(request, settings.user_agent),
            content=content,
            timeout=_timeout(request),
        )
        try:
            native = await client.send(native_request, stream=True)
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %s", request.method, request.url, exc)
            raise
        logger.debug("%s %s -> %s", request.method, request.url, native.status_code)
        return Response(
            res=native,
            status_code=native.status_code,
            body=AsyncResponseStream(native, settings.chunk_size),
            content_type=_response_content_type(native),
        )


__all__ = ["AsyncResponseStream", "AsyncTransport", "SyncTransport"]
