# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Request body encoding.

A body is classified once into one of the variants below. Raw bytes/strings,
streams, files and prepared WireBody instances are sent as they are; only
structured values (mappings, sequences, scalars) are serialized according to
the request content type.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, Iterator, Mapping, Sequence, Set
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union
from urllib.parse import quote
from uuid import UUID

import edn_format

from .errors import UnknownContentTypeForSerialization
from .http.models import EMPTY_BODY, WireBody
from .mime import EDN, FORM, JSON, MULTIPART, TEXT, mime_essence, validate_content_type
from .multipart import coerce_to_path, compose_multipart
from .streams import SequenceStream, Source, is_text_stream, iter_chunks, peek_length


@dataclass(frozen=True)
class EmptyBody:
    pass


@dataclass(frozen=True)
class PreparedBody:
    wire: WireBody


@dataclass(frozen=True)
class RawBody:
    data: bytes


@dataclass(frozen=True)
class StreamBody:
    stream: Any


@dataclass(frozen=True)
class FilePathBody:
    path: Path


@dataclass(frozen=True)
class StructuredBody:
    value: Any


BodyVariant = Union[EmptyBody, PreparedBody, RawBody, StreamBody, FilePathBody, StructuredBody]


def classify_body(body: Any) -> BodyVariant:
    if body is None:
        return EmptyBody()
    if isinstance(body, WireBody):
        return PreparedBody(body)
    if isinstance(body, (bytes, bytearray, memoryview)):
        return RawBody(bytes(body))
    if isinstance(body, str):
        return RawBody(body.encode("utf-8"))
    path = coerce_to_path(body)
    if path is not None:
        return FilePathBody(path)
    if hasattr(body, "read") or isinstance(body, (Iterator, AsyncIterable)):
        return StreamBody(body)
    return StructuredBody(body)


def _json_key(key: Any) -> Any:
    if isinstance(key, (str, int, float, bool)) or key is None:
        return key
    if isinstance(key, (edn_format.Keyword, edn_format.Symbol)):
        return key.name
    if isinstance(key, Enum):
        return key.value
    return str(key)


def _jsonable(value: Any) -> Any:
    """Convert EDN/Python containers into JSON-serializable structures (keywords become strings)."""
    if isinstance(value, Mapping):
        return {_json_key(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (Sequence, Set)) and not isinstance(value, (str, bytes, bytearray)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (edn_format.Keyword, edn_format.Symbol)):
        return value.name
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return _jsonable(dict(value))
    if isinstance(value, (list, tuple, set, frozenset)):
        return _jsonable(list(value))
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_json(value: Any) -> str:
    return json.dumps(_jsonable(value), default=_json_default)


def encode_edn(value: Any) -> str:
    return edn_format.dumps(value)


def encode_form(value: Any) -> str:
    """URL-encode a mapping (or sequence of pairs) as `k=v&k=v`, keeping iteration order."""
    pairs = value.items() if isinstance(value, Mapping) else value
    return "&".join(
        f"{quote(_form_str(k), safe='')}={quote(_form_str(v), safe='')}" for k, v in pairs
    )


def _form_str(value: Any) -> str:
    if isinstance(value, (edn_format.Keyword, edn_format.Symbol)):
        return value.name
    return str(value)


def _stream_wire(stream: Any) -> WireBody:
    if isinstance(stream, AsyncIterable) or (isinstance(stream, Iterator) and not hasattr(stream, "read")):
        return WireBody(content=stream)
    if is_text_stream(stream):
        return WireBody(content=iter_chunks(stream))
    return WireBody(content=stream, length=peek_length(stream))


def _file_wire(path: Path) -> WireBody:
    size = path.stat().st_size
    source = Source.from_file(path, length=size)
    return WireBody(content=SequenceStream([source]), length=size)


def encode_body(body: Any, content_type: Any, boundary: str | None = None) -> WireBody:
    """
    Turn a logical body into a WireBody.

    `content_type` must already be resolved from shorthand to a MIME string.
    `boundary` is used when a structured body is composed as multipart.
    """
    variant = classify_body(body)
    if isinstance(variant, EmptyBody):
        return EMPTY_BODY
    if isinstance(variant, PreparedBody):
        return variant.wire
    if isinstance(variant, RawBody):
        return WireBody(content=variant.data, length=len(variant.data))
    if isinstance(variant, StreamBody):
        return _stream_wire(variant.stream)
    if isinstance(variant, FilePathBody):
        return _file_wire(variant.path)
    return encode_structured(variant.value, content_type, boundary)


def encode_structured(value: Any, content_type: Any, boundary: str | None = None) -> WireBody:
    essence = mime_essence(validate_content_type(content_type))
    if essence == JSON:
        text = encode_json(value)
    elif essence == EDN:
        text = encode_edn(value)
    elif essence == MULTIPART:
        stream = compose_multipart(value, boundary)
        return WireBody(content=stream, length=stream.length)
    elif essence == FORM:
        text = encode_form(value)
    elif essence == TEXT:
        text = str(value)
    else:
        raise UnknownContentTypeForSerialization(content_type)
    data = text.encode("utf-8")
    return WireBody(content=data, length=len(data))


__all__ = [
    "BodyVariant",
    "EmptyBody",
    "FilePathBody",
    "PreparedBody",
    "RawBody",
    "StreamBody",
    "StructuredBody",
    "classify_body",
    "encode_body",
    "encode_edn",
    "encode_form",
    "encode_json",
    "encode_structured",
]
