# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
httpx client factories and the default-client provider.

A ClientProvider lazily builds one httpx client per (call shape, protocol)
and hands the same instance to every request until it is closed. Async
clients are additionally keyed by the running event loop, since an
`httpx.AsyncClient` connection pool cannot outlive or cross the loop that
opened it.

Closing swaps the held clients out before closing them, so a request racing
with `close()` either gets the old client or a freshly built one, never a
closed instance from the provider.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import weakref
from collections.abc import Callable

import httpx

from ..config import HttpSettings, load_http_settings

logger = logging.getLogger(__name__)


def create_default_http_client(settings: HttpSettings | None = None, *, http2: bool | None = None) -> httpx.Client:
    """Factory for the default blocking httpx client."""
    settings = settings or load_http_settings()
    return httpx.Client(
        http2=settings.http2 if http2 is None else http2,
        follow_redirects=settings.allow_redirects,
        timeout=settings.timeout,
        verify=settings.verify_ssl,
    )


def create_default_async_http_client(
    settings: HttpSettings | None = None, *, http2: bool | None = None
) -> httpx.AsyncClient:
    """Factory for the default non-blocking httpx client."""
    settings = settings or load_http_settings()
    return httpx.AsyncClient(
        http2=settings.http2 if http2 is None else http2,
        follow_redirects=settings.allow_redirects,
        timeout=settings.timeout,
        verify=settings.verify_ssl,
    )


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _close_async_client(client: httpx.AsyncClient, loop: asyncio.AbstractEventLoop | None) -> None:
    """
    Close `client` on the loop that owns it.

    Clients of a running loop are closed by a task scheduled on that loop (from
    any thread). Clients built outside a loop are closed on the caller's loop
    when there is one, else by a short-lived `asyncio.run`.
    """
    if loop is None:
        loop = _running_loop()
        if loop is None:
            asyncio.run(client.aclose())
            return
    if loop.is_closed():
        logger.debug("Dropping httpx.AsyncClient whose event loop is already closed")
        return
    if loop.is_running():
        asyncio.run_coroutine_threadsafe(client.aclose(), loop)
    else:
        loop.run_until_complete(client.aclose())


class ClientProvider:
    """Owns the lazily created default clients."""

    def __init__(
        self,
        settings: HttpSettings | None = None,
        *,
        factory: Callable[..., httpx.Client] | None = None,
        async_factory: Callable[..., httpx.AsyncClient] | None = None,
    ):
        self.settings = settings or load_http_settings()
        self._factory = factory or create_default_http_client
        self._async_factory = async_factory or create_default_async_http_client
        self._lock = threading.Lock()
        self._clients: dict[bool, httpx.Client] = {}
        self._async_clients: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[bool, httpx.AsyncClient]] = (
            weakref.WeakKeyDictionary()
        )
        # Async clients requested outside any running loop.
        self._unbound_async_clients: dict[bool, httpx.AsyncClient] = {}

    def _wants_http2(self, http_version: str | None) -> bool:
        if http_version is None:
            return self.settings.http2
        return http_version == "2.0"

    def client(self, http_version: str | None = None) -> httpx.Client:
        http2 = self._wants_http2(http_version)
        with self._lock:
            client = self._clients.get(http2)
            if client is None:
                logger.debug("Creating default httpx.Client (http2=%s)", http2)
                client = self._factory(self.settings, http2=http2)
                self._clients[http2] = client
            return client

    def async_client(self, http_version: str | None = None) -> httpx.AsyncClient:
        """Return the async client for the running event loop, building it on first use in that loop."""
        http2 = self._wants_http2(http_version)
        loop = _running_loop()
        with self._lock:
            if loop is None:
                clients = self._unbound_async_clients
            else:
                clients = self._async_clients.setdefault(loop, {})
            client = clients.get(http2)
            if client is None:
                logger.debug("Creating default httpx.AsyncClient (http2=%s, bound=%s)", http2, loop is not None)
                client = self._async_factory(self.settings, http2=http2)
                clients[http2] = client
            return client

    def close(self) -> None:
        """
        Close every held client; the next request builds new ones.

        Blocking clients close immediately. Async clients bound to a running
        loop are closed by a task on that loop, so in-flight requests on them
        finish first.
        """
        with self._lock:
            clients, self._clients = self._clients, {}
            bound, self._async_clients = self._async_clients, weakref.WeakKeyDictionary()
            unbound, self._unbound_async_clients = self._unbound_async_clients, {}
        for client in clients.values():
            client.close()
        for loop, loop_clients in list(bound.items()):
            for async_client in loop_clients.values():
                _close_async_client(async_client, loop)
        for async_client in unbound.values():
            _close_async_client(async_client, None)

    async def aclose(self) -> None:
        """Close every held client, awaiting the ones that belong to the current loop."""
        loop = asyncio.get_running_loop()
        with self._lock:
            own = self._async_clients.pop(loop, {})
        for client in own.values():
            await client.aclose()
        self.close()


_default_provider: ClientProvider | None = None
_default_provider_lock = threading.Lock()


def get_default_provider() -> ClientProvider:
    """Return the process-wide provider, creating it on first use."""
    global _default_provider
    with _default_provider_lock:
        if _default_provider is None:
            _default_provider = ClientProvider()
        return _default_provider


def set_default_provider(provider: ClientProvider | None) -> ClientProvider | None:
    """Install `provider` as the process-wide default and return the previous one (not closed)."""
    global _default_provider
    with _default_provider_lock:
        previous, _default_provider = _default_provider, provider
    return previous


def close_default_client() -> None:
    """Close the default clients (blocking and async) if they exist."""
    with _default_provider_lock:
        provider = _default_provider
    if provider is not None:
        provider.close()


__all__ = [
    "ClientProvider",
    "close_default_client",
    "create_default_async_http_client",
    "create_default_http_client",
    "get_default_provider",
    "set_default_provider",
]
