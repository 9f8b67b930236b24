# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Response body decoding and status checks.

Each decoder consumes the envelope's current body and returns a new envelope
with the decoded value in `body`. Response streams are single-pass: decoding
the same envelope twice, or from two tasks at once, is a caller error.
"""

from __future__ import annotations

import io
import json
from collections.abc import AsyncIterable, Iterable, Mapping
from dataclasses import replace
from typing import Any

from .edn import EOF, EdnReader
from .errors import FailureStatusCode, UnsupportedBodySource
from .http.models import Response
from .streams import IterStream, PushbackReader, is_text_stream, iter_chunks


def _binary_reader(body: Any) -> io.BufferedIOBase | None:
    if isinstance(body, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(body))
    if isinstance(body, io.BufferedIOBase):
        return body
    if isinstance(body, io.RawIOBase):
        return io.BufferedReader(body)
    if hasattr(body, "read"):
        return io.BufferedReader(IterStream(iter_chunks(body), on_close=getattr(body, "close", None)))
    if isinstance(body, Iterable) and not isinstance(body, (str, Mapping)):
        return io.BufferedReader(IterStream(body))
    return None


def coerce_to_pushback_reader(body: Any) -> PushbackReader:
    """Wrap a response body (reader, text/binary stream, bytes, str or byte iterator) for character reading."""
    if isinstance(body, PushbackReader):
        return body
    if isinstance(body, str):
        return PushbackReader(io.StringIO(body))
    if hasattr(body, "read") and is_text_stream(body):
        return PushbackReader(body)
    binary = _binary_reader(body)
    if binary is None:
        raise UnsupportedBodySource(
            f"cannot read a response body of type {type(body).__name__}; it may already be decoded",
            source=body,
        )
    return PushbackReader(io.TextIOWrapper(binary, encoding="utf-8"))


def read_text(response: Response) -> Response:
    """Consume the whole body as UTF-8 text."""
    with coerce_to_pushback_reader(response.body) as reader:
        return replace(response, body=reader.read())


def read_json(response: Response) -> Response:
    """Consume the whole body as one JSON document."""
    with coerce_to_pushback_reader(response.body) as reader:
        return replace(response, body=json.load(reader))


def read_edn(response: Response, eof: Any = EOF, **parse_options: Any) -> Response:
    """
    Consume the body as a sequence of EDN values.

    Values are read until the reader reports `eof`; the sentinel itself is
    dropped and the values are returned as a list in read order.
    """
    with coerce_to_pushback_reader(response.body) as reader:
        values = EdnReader(reader, **parse_options).read_all(eof)
    return replace(response, body=values)


async def _read_all_bytes(body: Any) -> bytes:
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if hasattr(body, "aread"):
        return await body.aread()
    if isinstance(body, AsyncIterable):
        chunks = [chunk async for chunk in body]
        return b"".join(chunks)
    raise UnsupportedBodySource(
        f"cannot asynchronously read a response body of type {type(body).__name__}",
        source=body,
    )


async def _read_all_text(body: Any) -> str:
    if isinstance(body, str):
        return body
    return (await _read_all_bytes(body)).decode("utf-8")


async def read_text_async(response: Response) -> Response:
    return replace(response, body=await _read_all_text(response.body))


async def read_json_async(response: Response) -> Response:
    return replace(response, body=json.loads(await _read_all_text(response.body)))


async def read_edn_async(response: Response, eof: Any = EOF, **parse_options: Any) -> Response:
    text = await _read_all_text(response.body)
    values = EdnReader(PushbackReader(io.StringIO(text)), **parse_options).read_all(eof)
    return replace(response, body=values)


def is_success(response: Response) -> bool:
    return 200 <= response.status_code <= 299


def _is_decoded(body: Any) -> bool:
    return not (
        hasattr(body, "read")
        or hasattr(body, "aread")
        or isinstance(body, (PushbackReader, AsyncIterable))
        or (isinstance(body, Iterable) and not isinstance(body, (str, bytes, bytearray, Mapping, list, tuple)))
    )


def assert_success(response: Response) -> Response:
    """Return the envelope if its status is 2xx, else raise FailureStatusCode (never decodes the body)."""
    if is_success(response):
        return response
    body = response.body if _is_decoded(response.body) else None
    raise FailureStatusCode(response.status_code, body)


__all__ = [
    "EOF",
    "assert_success",
    "coerce_to_pushback_reader",
    "is_success",
    "read_edn",
    "read_edn_async",
    "read_json",
    "read_json_async",
    "read_text",
    "read_text_async",
]
