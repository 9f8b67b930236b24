# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
multipart/form-data body composition.

The composed body is a single lazily-read stream: each part's header block and
its content are chained segments, and file parts are opened only when the
reader reaches them. Framing follows RFC 2046 with CRLF line endings:

    --<boundary>\\r\\n
    Content-Disposition: form-data; name="<name>"[; filename="<file>"]\\r\\n
    [Content-Type: <type>\\r\\n]
    \\r\\n
    <content>
    \\r\\n--<boundary>\\r\\n ... \\r\\n--<boundary>--
"""

from __future__ import annotations

import logging
import mimetypes
import os
import uuid
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any
from urllib.request import url2pathname

import httpx

from .errors import UnsupportedBodySource
from .http.models import BodyPart
from .mime import MULTIPART
from .streams import SequenceStream, Source

logger = logging.getLogger(__name__)

BOUNDARY_PREFIX = "----ReqwireFormBoundary"


def create_multipart_boundary() -> str:
    return f"{BOUNDARY_PREFIX}{uuid.uuid4().hex}"


def content_type_header(boundary: str) -> str:
    return f"{MULTIPART}; boundary={boundary}"


def coerce_to_path(value: Any) -> Path | None:
    """
    Return `value` as a filesystem Path if it is a file reference, else None.

    Raises UnsupportedBodySource for URLs with a scheme other than file://.
    """
    if isinstance(value, os.PathLike):
        return Path(value)
    if isinstance(value, httpx.URL):
        if value.scheme != "file":
            raise UnsupportedBodySource(f"only file:// URIs are supported, got {value}", source=value)
        return Path(url2pathname(value.path))
    return None


def probe_content_type(path: Path) -> str | None:
    """Best-effort content type from the file name; None when unknown."""
    try:
        guessed, _ = mimetypes.guess_type(path.name)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Content-type probe failed for %s: %s", path, exc)
        return None
    if guessed is None:
        logger.debug("No content-type known for %s; omitting part Content-Type", path)
    return guessed


def _quote_param(value: str) -> str:
    return str(value).replace("\r", "%0D").replace("\n", "%0A").replace('"', "%22")


def render_part_header(
    boundary: str,
    name: str,
    *,
    file_name: str | None = None,
    content_type: str | None = None,
    first: bool = True,
) -> bytes:
    disposition = f'Content-Disposition: form-data; name="{_quote_param(name)}"'
    if file_name:
        disposition += f'; filename="{_quote_param(file_name)}"'
    lines = [f"--{boundary}", disposition]
    if content_type:
        lines.append(f"Content-Type: {content_type}")
    header = "\r\n".join(lines) + "\r\n\r\n"
    if not first:
        header = "\r\n" + header
    return header.encode("utf-8")


def _content_source(content: Any) -> Source:
    if isinstance(content, (bytes, bytearray, memoryview)):
        return Source.from_bytes(bytes(content))
    if isinstance(content, str):
        return Source.from_bytes(content.encode("utf-8"))
    if hasattr(content, "read"):
        return Source.from_stream(content)
    if isinstance(content, Iterable) and not isinstance(content, Mapping):
        return Source.from_iterable(content)
    raise UnsupportedBodySource(
        f"unsupported multipart content of type {type(content).__name__}",
        source=content,
    )


def _coerce_part(part: Any) -> BodyPart:
    if isinstance(part, BodyPart):
        return part
    if isinstance(part, Mapping):
        return BodyPart.from_mapping(part)
    raise UnsupportedBodySource(f"multipart parts must be BodyPart or mappings, got {type(part).__name__}", source=part)


def _part_sources(part: BodyPart, boundary: str, first: bool) -> Iterator[Source]:
    path = coerce_to_path(part.content)
    if path is not None:
        file_name = part.file_name or path.name
        content_type = part.content_type or probe_content_type(path)
        yield Source.from_bytes(
            render_part_header(boundary, part.name, file_name=file_name, content_type=content_type, first=first)
        )
        yield Source.from_file(path, length=path.stat().st_size)
        return

    yield Source.from_bytes(
        render_part_header(
            boundary,
            part.name,
            file_name=part.file_name,
            content_type=part.content_type,
            first=first,
        )
    )
    yield _content_source(part.content)


class MultipartStream(SequenceStream):
    """A composed multipart body; `boundary` is the token used in its framing."""

    def __init__(self, sources: Iterable[Source], boundary: str):
        super().__init__(sources)
        self.boundary = boundary

    @property
    def content_type(self) -> str:
        return content_type_header(self.boundary)


def compose_multipart(parts: Iterable[Any], boundary: str | None = None) -> MultipartStream:
    """
    Compose `parts` (BodyPart instances or mappings) into one multipart stream.

    Part headers are rendered and file sizes are read up front so errors surface
    while the request is built; part contents are only read as the stream is consumed.
    """
    boundary = boundary or create_multipart_boundary()
    sources: list[Source] = []
    for index, raw_part in enumerate(parts):
        sources.extend(_part_sources(_coerce_part(raw_part), boundary, first=index == 0))
    trailer = f"--{boundary}--" if not sources else f"\r\n--{boundary}--"
    sources.append(Source.from_bytes(trailer.encode("utf-8")))
    return MultipartStream(sources, boundary)


__all__ = [
    "BOUNDARY_PREFIX",
    "MultipartStream",
    "coerce_to_path",
    "compose_multipart",
    "content_type_header",
    "create_multipart_boundary",
    "probe_content_type",
    "render_part_header",
]
