"""
Tests for the separator rules and collision detection.
"""

import pytest

from sepdoc.errors import MalformedSeparator
from sepdoc.separator import (
    RANDOM_ALPHABET,
    find_collision,
    is_valid_separator,
    line_collides,
    random_separator,
    validate_separator,
)


class TestSeparatorRules:
    """Legal separators are nonempty runs of visible ASCII."""

    def test_symbols_are_valid(self):
        assert is_valid_separator(b"====")
        assert is_valid_separator("--8<--")

    def test_boundaries_of_range(self):
        """0x21 and 0x7E are allowed, 0x20 and 0x7F are not."""
        assert is_valid_separator(b"\x21\x7e")
        assert not is_valid_separator(b"\x20")
        assert not is_valid_separator(b"\x7f")

    def test_empty_is_invalid(self):
        assert not is_valid_separator(b"")

    def test_whitespace_is_invalid(self):
        assert not is_valid_separator(b"== ==")
        assert not is_valid_separator(b"====\n")
        assert not is_valid_separator(b"\t==")

    def test_non_ascii_text_is_invalid(self):
        assert not is_valid_separator("§§§§")

    def test_non_bytes_is_invalid(self):
        assert not is_valid_separator(1234)

    def test_validate_returns_bytes(self):
        assert validate_separator("====") == b"===="

    def test_validate_raises(self):
        with pytest.raises(MalformedSeparator):
            validate_separator(b"a b")


class TestRandomSeparator:

    def test_default_length_and_alphabet(self):
        sep = random_separator()
        assert len(sep) == 16
        assert all(chr(b) in RANDOM_ALPHABET for b in sep)
        assert is_valid_separator(sep)

    def test_values_differ(self):
        assert random_separator() != random_separator()

    def test_short_separator_warns(self):
        with pytest.warns(UserWarning):
            sep = random_separator(4)
        assert len(sep) == 4

    def test_non_positive_length_rejected(self):
        with pytest.raises(ValueError):
            random_separator(0)


class TestLineCollision:
    """Only an exact full line counts as a collision."""

    def test_whole_record(self):
        assert line_collides(b"====", b"====")

    def test_first_middle_last_line(self):
        assert line_collides(b"====\nabc", b"====")
        assert line_collides(b"abc\n====\nxyz", b"====")
        assert line_collides(b"abc\n====", b"====")

    def test_longer_line_does_not_collide(self):
        assert not line_collides(b"=====", b"====")
        assert not line_collides(b"abc\n=====\nxyz", b"====")

    def test_substring_does_not_collide(self):
        assert not line_collides(b"a==b", b"==")
        assert not line_collides(b"x====", b"====")

    def test_later_occurrence_found(self):
        """A substring match first must not hide a full-line match later."""
        assert line_collides(b"a====\n====", b"====")

    def test_empty_record(self):
        assert not line_collides(b"", b"====")

    def test_find_collision_index(self):
        records = [b"a", b"b\n==", b"=="]
        assert find_collision(records, b"==") == 1
        assert find_collision(records, b"###") is None
