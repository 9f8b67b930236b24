# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Lazy byte-stream primitives.

Request bodies (files, caller streams, multipart compositions) and response
bodies are moved through these in bounded chunks; nothing here reads a source
before the consumer asks for its bytes.
"""

from __future__ import annotations

import io
import os
from collections.abc import AsyncIterable, AsyncIterator, Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import IO, Any

import anyio.to_thread

DEFAULT_CHUNK_SIZE = 64 * 1024


def is_text_stream(stream: Any) -> bool:
    """Return True when `stream.read()` yields str rather than bytes."""
    if isinstance(stream, io.TextIOBase):
        return True
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        return False
    try:
        return isinstance(stream.read(0), str)
    except (AttributeError, OSError, TypeError, ValueError):
        return False


def peek_length(stream: Any) -> int | None:
    """Remaining byte count of a regular binary file object, or None when it cannot be known."""
    try:
        size = os.fstat(stream.fileno()).st_size
        return max(size - stream.tell(), 0)
    except (AttributeError, OSError, ValueError):
        return None


def iter_chunks(stream: Any, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield bytes from a binary or text file-like object until EOF. Text is encoded UTF-8."""
    encode = is_text_stream(stream)
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            return
        yield chunk.encode("utf-8") if encode else bytes(chunk)


async def aiter_chunks(source: Any, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """
    Adapt a sync byte source (file-like or iterable of bytes) or an async iterable to an async iterator.

    Sync sources are pulled one chunk at a time on a worker thread, so file reads
    never block the event loop.
    """
    if isinstance(source, AsyncIterable):
        async for chunk in source:
            yield chunk
        return
    chunks = iter_chunks(source, chunk_size) if hasattr(source, "read") else iter(source)
    while True:
        chunk = await anyio.to_thread.run_sync(next, chunks, None)
        if chunk is None:
            return
        yield chunk


class IterStream(io.RawIOBase):
    """Readable binary stream over an iterator of byte chunks."""

    def __init__(self, chunks: Iterable[bytes], on_close: Callable[[], None] | None = None):
        super().__init__()
        self._chunks = iter(chunks)
        self._pending = b""
        self._on_close = on_close

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # noqa: ANN001
        while not self._pending:
            try:
                self._pending = bytes(next(self._chunks))
            except StopIteration:
                return 0
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed and self._on_close is not None:
            self._on_close()
        super().close()


@dataclass(frozen=True)
class Source:
    """
    One segment of a chained stream.

    `open` is called only when the segment is reached. Segments with `owned=True`
    are closed when exhausted; caller-supplied streams are left open.
    """

    open: Callable[[], IO[bytes]]
    length: int | None = None
    owned: bool = True

    @classmethod
    def from_bytes(cls, data: bytes) -> Source:
        return cls(open=lambda: io.BytesIO(data), length=len(data))

    @classmethod
    def from_file(cls, path: Any, length: int | None = None) -> Source:
        return cls(open=lambda: open(path, "rb"), length=length)

    @classmethod
    def from_stream(cls, stream: Any) -> Source:
        if is_text_stream(stream) or not hasattr(stream, "readinto"):
            return cls(open=lambda: IterStream(iter_chunks(stream)), length=None, owned=True)
        return cls(open=lambda: stream, length=None, owned=False)

    @classmethod
    def from_iterable(cls, chunks: Iterable[bytes]) -> Source:
        return cls(open=lambda: IterStream(chunks), length=None)


class SequenceStream(io.RawIOBase):
    """
    Concatenation of `Source` segments read strictly in order.

    Only the current segment is open at any time; `length` is the total size
    when every segment knows its own, else None.
    """

    def __init__(self, sources: Iterable[Source]):
        super().__init__()
        self._sources = list(sources)
        self._index = 0
        self._current: IO[bytes] | None = None
        self._current_owned = True

    @property
    def length(self) -> int | None:
        total = 0
        for source in self._sources:
            if source.length is None:
                return None
            total += source.length
        return total

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # noqa: ANN001
        while self._index < len(self._sources):
            if self._current is None:
                source = self._sources[self._index]
                self._current = source.open()
                self._current_owned = source.owned
            data = self._current.read(len(buffer))
            if data:
                size = len(data)
                buffer[:size] = data
                return size
            self._release_current()
            self._index += 1
        return 0

    def _release_current(self) -> None:
        if self._current is not None and self._current_owned:
            self._current.close()
        self._current = None

    def __iter__(self) -> Iterator[bytes]:  # type: ignore[override]
        return iter_chunks(self)

    def close(self) -> None:
        if not self.closed:
            self._release_current()
            self._index = len(self._sources)
        super().close()


class PushbackReader:
    """
    Character reader with unlimited pushback over a text stream.

    Reads the underlying stream in blocks; `read_char` returns "" at EOF.
    """

    def __init__(self, stream: IO[str], block_size: int = 8192):
        self._stream = stream
        self._block_size = block_size
        self._pushback: list[str] = []
        self._block = ""
        self._pos = 0

    def read_char(self) -> str:
        if self._pushback:
            return self._pushback.pop()
        if self._pos >= len(self._block):
            self._block = self._stream.read(self._block_size)
            self._pos = 0
            if not self._block:
                return ""
        ch = self._block[self._pos]
        self._pos += 1
        return ch

    def unread(self, ch: str) -> None:
        if ch:
            self._pushback.append(ch)

    def read(self, size: int = -1) -> str:
        parts: list[str] = []
        while self._pushback and size != 0:
            parts.append(self._pushback.pop())
            size -= 1
        if size != 0:
            buffered = self._block[self._pos :] if size < 0 else self._block[self._pos : self._pos + size]
            self._pos += len(buffered)
            parts.append(buffered)
            if size > 0:
                size -= len(buffered)
            if size != 0:
                parts.append(self._stream.read(size))
        return "".join(parts)

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> PushbackReader:
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        self.close()


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "IterStream",
    "PushbackReader",
    "SequenceStream",
    "Source",
    "aiter_chunks",
    "is_text_stream",
    "iter_chunks",
    "peek_length",
]
