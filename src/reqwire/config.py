# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for reqwire."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"reqwire/{__version__}"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class HttpSettings:
    """HTTP client defaults used when the library builds its own clients."""

    timeout: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    allow_redirects: bool = False
    verify_ssl: bool = True
    chunk_size: int = 64 * 1024
    http2: bool = False

    @classmethod
    def from_env(cls) -> "HttpSettings":
        """Create settings from environment variables (evaluated at call time)."""
        chunk_size = _int_env("REQWIRE_HTTP_CHUNK_SIZE", cls.chunk_size)
        if chunk_size <= 0:
            chunk_size = cls.chunk_size
        return cls(
            timeout=_float_env("REQWIRE_HTTP_TIMEOUT", cls.timeout),
            user_agent=os.getenv("REQWIRE_USER_AGENT", cls.user_agent),
            allow_redirects=_bool_env("REQWIRE_HTTP_REDIRECTS", cls.allow_redirects),
            verify_ssl=_bool_env("REQWIRE_HTTP_VERIFY_SSL", cls.verify_ssl),
            chunk_size=chunk_size,
            http2=_bool_env("REQWIRE_HTTP2", cls.http2),
        )


def load_http_settings() -> HttpSettings:
    """Load HTTP settings from environment with sensible defaults."""
    return HttpSettings.from_env()
