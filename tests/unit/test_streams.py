# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import io
import threading

from reqwire.streams import (
    IterStream,
    PushbackReader,
    SequenceStream,
    Source,
    aiter_chunks,
    is_text_stream,
    iter_chunks,
    peek_length,
)


class RecordingStream(io.BytesIO):
    def __init__(self, data: bytes):
        super().__init__(data)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


def test_is_text_stream_distinguishes_text_and_binary():
    assert is_text_stream(io.StringIO("x")) is True
    assert is_text_stream(io.BytesIO(b"x")) is False


def test_iter_chunks_encodes_text_as_utf8():
    chunks = list(iter_chunks(io.StringIO("héllo"), chunk_size=2))
    assert b"".join(chunks) == "héllo".encode("utf-8")


def test_peek_length_uses_remaining_file_size(tmp_path):
    path = tmp_path / "data.bin"
    path.write_bytes(b"0123456789")
    with open(path, "rb") as handle:
        handle.read(4)
        assert peek_length(handle) == 6
    assert peek_length(iter([b"x"])) is None


def test_iter_stream_reads_across_chunks_and_runs_close_hook():
    closed = []
    stream = IterStream([b"ab", b"", b"cde"], on_close=lambda: closed.append(True))
    assert stream.read() == b"abcde"
    stream.close()
    stream.close()
    assert closed == [True]


def test_sequence_stream_opens_sources_lazily():
    opened = []

    def opener(name, data):
        def _open():
            opened.append(name)
            return io.BytesIO(data)

        return _open

    stream = SequenceStream(
        [Source(open=opener("a", b"aaa"), length=3), Source(open=opener("b", b"bb"), length=2)]
    )
    assert opened == []
    assert stream.length == 5
    first = stream.read(3)
    assert first == b"aaa"
    assert opened == ["a"]
    assert stream.read() == b"bb"
    assert opened == ["a", "b"]


def test_sequence_stream_length_unknown_when_any_source_unknown():
    stream = SequenceStream([Source.from_bytes(b"x"), Source.from_iterable(iter([b"y"]))])
    assert stream.length is None
    assert b"".join(stream) == b"xy"


def test_sequence_stream_leaves_caller_streams_open():
    caller = RecordingStream(b"payload")
    stream = SequenceStream([Source.from_bytes(b"<"), Source.from_stream(caller), Source.from_bytes(b">")])
    assert stream.read() == b"<payload>"
    stream.close()
    assert caller.close_calls == 0
    assert not caller.closed


def test_sequence_stream_closes_owned_sources_when_exhausted():
    owned = RecordingStream(b"abc")
    stream = SequenceStream([Source(open=lambda: owned, length=3)])
    assert stream.read() == b"abc"
    assert owned.close_calls == 1


def test_aiter_chunks_adapts_sync_and_async_sources():
    async def agen():
        yield b"x"
        yield b"y"

    async def collect(source):
        return b"".join([chunk async for chunk in aiter_chunks(source, chunk_size=2)])

    assert asyncio.run(collect(io.BytesIO(b"hello"))) == b"hello"
    assert asyncio.run(collect([b"a", b"b"])) == b"ab"
    assert asyncio.run(collect(agen())) == b"xy"


def test_pushback_reader_read_char_and_unread():
    reader = PushbackReader(io.StringIO("abc"), block_size=2)
    assert reader.read_char() == "a"
    reader.unread("a")
    assert reader.read_char() == "a"
    assert reader.read_char() == "b"
    assert reader.read_char() == "c"
    assert reader.read_char() == ""


def test_pushback_reader_read_drains_pushback_then_stream():
    reader = PushbackReader(io.StringIO("hello world"), block_size=4)
    assert reader.read_char() == "h"
    reader.unread("h")
    assert reader.read(3) == "hel"
    assert reader.read() == "lo world"
    assert reader.read() == ""


def test_aiter_chunks_reads_sync_sources_off_the_event_loop_thread():
    reader_threads: list[int] = []

    class ThreadRecordingStream(io.BytesIO):
        def read(self, size=-1):
            reader_threads.append(threading.get_ident())
            return super().read(size)

    async def collect() -> bytes:
        return b"".join([chunk async for chunk in aiter_chunks(ThreadRecordingStream(b"abcdef"), chunk_size=4)])

    assert asyncio.run(collect()) == b"abcdef"
    assert reader_threads
    assert threading.get_ident() not in reader_threads
