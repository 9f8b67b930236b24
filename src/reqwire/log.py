# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging helpers for reqwire."""

from __future__ import annotations

import logging
import os

DEFAULT_LOG_LEVEL = os.getenv("REQWIRE_LOG_LEVEL", "WARNING").upper()

# httpx/httpcore log every connection event at DEBUG/INFO.
_TRANSPORT_LOGGERS = ("httpx", "httpcore", "hpack")


def setup_logging(level: str | None = None, *, transport_level: str | None = None) -> None:
    """
    Configure standard logging for CLI/library use.

    Transport loggers stay at WARNING unless `transport_level` is given, so
    `REQWIRE_LOG_LEVEL=DEBUG` shows request building without connection noise.
    """
    effective_level = (level or DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, effective_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    noisy_level = getattr(logging, (transport_level or "WARNING").upper(), logging.WARNING)
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


__all__ = ["setup_logging"]
