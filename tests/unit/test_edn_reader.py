# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import io

import edn_format
import pytest

from reqwire.edn import EOF, EdnReader
from reqwire.errors import EdnSyntaxError
from reqwire.streams import PushbackReader


def _reader(text: str) -> EdnReader:
    return EdnReader(PushbackReader(io.StringIO(text)))


def test_reads_values_one_at_a_time():
    reader = _reader("1 :k \"s\"")
    assert reader.read() == 1
    assert reader.read() == edn_format.Keyword("k")
    assert reader.read() == "s"
    assert reader.read() is EOF
    assert reader.read(eof="done") == "done"


def test_collections_with_nested_delimiters_in_strings():
    values = _reader('[1 [2 3]] {:a "x ] }"} #{4}').read_all()
    assert len(values) == 3
    assert values[0][0] == 1
    assert values[0][1][1] == 3
    assert values[1][edn_format.Keyword("a")] == "x ] }"
    assert 4 in values[2]


def test_comments_commas_and_discard_are_skipped():
    values = _reader("; leading comment\n1, 2 #_ 99 ; trailing\n3").read_all()
    assert values == [1, 2, 3]


def test_escaped_quotes_in_strings():
    assert _reader(r'"say \"hi\"" 2').read_all() == ['say "hi"', 2]


def test_tagged_values_are_parsed_with_their_tag():
    value = _reader('#inst "2025-01-02T03:04:05Z"').read()
    assert value.year == 2025
    assert value.month == 1


def test_only_consumes_the_value_being_read():
    stream = io.StringIO("[1] [2]")
    pushback = PushbackReader(stream)
    reader = EdnReader(pushback)
    assert list(reader.read()) == [1]
    assert pushback.read() == " [2]"


@pytest.mark.parametrize("text", ["[1 2", "]", "(1 ]", '"open', "#_"])
def test_malformed_input_raises_syntax_error(text):
    with pytest.raises(EdnSyntaxError):
        _reader(text).read()
