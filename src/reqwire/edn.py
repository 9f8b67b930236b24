# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Incremental EDN reading.

EDN bodies may hold any number of concatenated top-level values. `EdnReader`
delimits one top-level form at a time from a PushbackReader (so a stream is
never read further than the value being returned, plus one lookahead
character) and hands the form text to `edn_format` for parsing.
"""

from __future__ import annotations

from typing import Any

import edn_format

from .errors import EdnSyntaxError
from .streams import PushbackReader


class _Eof:
    def __repr__(self) -> str:
        return "EOF"


EOF: Any = _Eof()

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())
_DELIMITERS = frozenset('()[]{}";')


def _is_whitespace(ch: str) -> bool:
    return ch.isspace() or ch == ","


class EdnReader:
    """Read successive EDN values from a PushbackReader."""

    def __init__(self, reader: PushbackReader, **parse_options: Any):
        self._reader = reader
        self._parse_options = parse_options

    def read(self, eof: Any = EOF) -> Any:
        """Return the next value, or `eof` when the stream holds no further values."""
        form = self._next_form()
        if form is None:
            return eof
        try:
            return edn_format.loads(form, **self._parse_options)
        except edn_format.EDNDecodeError as exc:
            raise EdnSyntaxError(f"invalid EDN value {form[:80]!r}: {exc}", form=form) from exc

    def read_all(self, eof: Any = EOF) -> list[Any]:
        values: list[Any] = []
        while True:
            value = self.read(eof)
            if value is eof or (type(value) is type(eof) and value == eof):
                return values
            values.append(value)

    def _skip_whitespace_and_comments(self) -> str:
        """Return the first significant character, or "" at EOF."""
        while True:
            ch = self._reader.read_char()
            if not ch:
                return ""
            if _is_whitespace(ch):
                continue
            if ch == ";":
                self._skip_line()
                continue
            return ch

    def _skip_line(self) -> None:
        while True:
            ch = self._reader.read_char()
            if not ch or ch == "\n":
                return

    def _next_form(self) -> str | None:
        while True:
            ch = self._skip_whitespace_and_comments()
            if not ch:
                return None
            if ch == "#":
                nxt = self._reader.read_char()
                if nxt == "_":
                    if self._next_form() is None:
                        raise EdnSyntaxError("EOF after #_ discard")
                    continue
                if nxt == "{":
                    return "#{" + self._read_collection("}")
                if nxt and not _is_whitespace(nxt) and nxt not in _DELIMITERS:
                    tag = "#" + nxt + self._read_token()
                    value = self._next_form()
                    if value is None:
                        raise EdnSyntaxError(f"EOF after tag {tag}")
                    return f"{tag} {value}"
                raise EdnSyntaxError(f"invalid dispatch character after '#': {nxt!r}")
            if ch in _OPENERS:
                return ch + self._read_collection(_OPENERS[ch])
            if ch in _CLOSERS:
                raise EdnSyntaxError(f"unmatched delimiter {ch!r}")
            if ch == '"':
                return self._read_string()
            if ch == "\\":
                first = self._reader.read_char()
                if not first:
                    raise EdnSyntaxError("EOF in character literal")
                return ch + first + self._read_token()
            return ch + self._read_token()

    def _read_token(self) -> str:
        chars: list[str] = []
        while True:
            ch = self._reader.read_char()
            if not ch:
                break
            if _is_whitespace(ch) or ch in _DELIMITERS:
                self._reader.unread(ch)
                break
            chars.append(ch)
        return "".join(chars)

    def _read_string(self) -> str:
        chars = ['"']
        while True:
            ch = self._reader.read_char()
            if not ch:
                raise EdnSyntaxError("EOF while reading string")
            chars.append(ch)
            if ch == "\\":
                escaped = self._reader.read_char()
                if not escaped:
                    raise EdnSyntaxError("EOF while reading string")
                chars.append(escaped)
            elif ch == '"':
                return "".join(chars)

    def _read_collection(self, closer: str) -> str:
        """Read up to and including the delimiter matching `closer`; the opener was already consumed."""
        chars: list[str] = []
        expected = [closer]
        while expected:
            ch = self._reader.read_char()
            if not ch:
                raise EdnSyntaxError(f"EOF while reading collection, expected {expected[-1]!r}")
            if ch == '"':
                chars.append(self._read_string())
                continue
            if ch == "\\":
                chars.append(ch + self._reader.read_char())
                continue
            if ch == ";":
                self._skip_line()
                chars.append("\n")
                continue
            if ch in _OPENERS:
                expected.append(_OPENERS[ch])
            elif ch in _CLOSERS:
                if ch != expected.pop():
                    raise EdnSyntaxError(f"unmatched delimiter {ch!r}")
            chars.append(ch)
        return "".join(chars)


__all__ = ["EOF", "EdnReader"]
