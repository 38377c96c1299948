"""
Tests for nested documents (documents carried inside records).
"""

import io

import pytest

from sepdoc.decoder import decode
from sepdoc.encoder import StreamEncoder
from sepdoc.errors import MalformedSeparator, SeparatorCollision
from sepdoc.nesting import (
    NestingPath,
    decode_inner,
    decode_nested,
    encode_nested,
    nested_document,
)


class TestNestedDocument:
    """Streaming composition of an inner document inside an outer record."""

    def test_inner_document_round_trip(self):
        sink = io.BytesIO()
        outer = StreamEncoder(sink, separator=b"########")
        outer.write(b"plain outer record")
        with nested_document(outer, separator=b"----") as inner:
            inner.write(b"inner a")
            inner.write(b"inner\nb")
        assert outer.records_written == 2

        document = decode(sink.getvalue())
        assert document.records[0] == b"plain outer record"
        assert decode(document.records[1]).records == [b"inner a", b"inner\nb"]

    def test_random_inner_separator(self):
        outer = StreamEncoder(io.BytesIO(), separator=b"########")
        with nested_document(outer) as inner:
            assert inner.separator != outer.separator
            assert inner.enclosing == (b"########",)

    def test_inner_separator_must_differ(self):
        outer = StreamEncoder(io.BytesIO(), separator=b"====")
        with pytest.raises(SeparatorCollision):
            with nested_document(outer, separator=b"===="):
                pass
        assert outer.records_written == 0

    def test_inner_record_checked_against_outer_separator(self):
        outer = StreamEncoder(io.BytesIO(), separator=b"####")
        with pytest.raises(SeparatorCollision) as info:
            with nested_document(outer, separator=b"----") as inner:
                inner.write(b"x\n####")
        assert info.value.separator == b"####"

    def test_three_levels(self):
        sink = io.BytesIO()
        top = StreamEncoder(sink, separator=b"***")
        with nested_document(top, separator=b"+++") as middle:
            with nested_document(middle, separator=b"---") as bottom:
                bottom.write(b"deep")
                assert bottom.enclosing == (b"***", b"+++")
            middle.write(b"shallow")
        middle_records = decode_nested(sink.getvalue(), depth=2)
        assert middle_records == [[b"---\ndeep\n", b"shallow"]]
        assert decode(middle_records[0][0]).records == [b"deep"]


class TestEncodeNested:
    """Batch composition with per-level separator selection."""

    def test_round_trip(self):
        tree = [
            [b"a", b"b"],
            [b"====", b"c"],
            [],
        ]
        data = encode_nested(tree)
        assert decode_nested(data, depth=2) == [[b"a", b"b"], [b"====", b"c"], []]

    def test_outer_separator_longer_than_inner(self):
        data = encode_nested([[b"a"]])
        outer = decode(data)
        inner = decode(outer.records[0])
        assert inner.separator == b"===="
        assert outer.separator == b"========"

    def test_mixed_leaves_depth_one(self):
        data = encode_nested([b"leaf", [b"x"]])
        records = decode_nested(data, depth=1)
        assert records[0] == b"leaf"
        assert decode(records[1]).records == [b"x"]


class TestDecodeNested:

    def test_reused_separator_rejected(self):
        inner = b"====\nx\n"
        outer = b"====\n" + inner + b"\n"
        with pytest.raises(MalformedSeparator):
            decode_nested(outer, depth=2)

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            decode_nested(b"", depth=0)

    def test_decode_inner_extends_path(self):
        document, path = decode_inner(b"--\nx\n", NestingPath([b"##"]))
        assert document.records == [b"x"]
        assert path.separators == (b"##", b"--")
        assert path.depth == 2
        assert b"--" in path

    def test_empty_inner_document_keeps_path(self):
        document, path = decode_inner(b"", NestingPath([b"##"]))
        assert document.records == []
        assert path.depth == 1

    def test_descend_rejects_duplicate(self):
        with pytest.raises(MalformedSeparator):
            NestingPath([b"##", b"--"]).descend(b"##")
