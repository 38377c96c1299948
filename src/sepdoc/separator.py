"""
Separator Rules

A separator is a nonempty sequence of visible ASCII bytes (0x21..0x7E).
It never contains whitespace, so it can never contain a newline.

On the wire a separator always occupies a full line:

    LF separator LF

A record "collides" with a separator when one of its lines (split on LF)
is exactly equal to the separator. Substrings never collide:

    separator  ====
    line       =====     -> no collision
    line       a====     -> no collision
    line       ====      -> collision
"""

import secrets
import string
import warnings
from typing import Iterable, Optional, Union

from sepdoc.errors import MalformedSeparator

VCHAR_MIN = 0x21
VCHAR_MAX = 0x7E
NEWLINE = 0x0A

# URL-safe base64 alphabet: 6 bits of entropy per character
RANDOM_ALPHABET = string.ascii_letters + string.digits + "-_"
DEFAULT_RANDOM_LENGTH = 16
MIN_RANDOM_LENGTH = 10

BytesLike = Union[bytes, bytearray, memoryview, str]


def as_bytes(value: BytesLike) -> bytes:
    """Coerce record or separator input to bytes (text is UTF-8 encoded)."""
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"Expected bytes or str, got {type(value).__name__}")


def is_valid_separator(candidate: BytesLike) -> bool:
    """
    Check whether a candidate is a legal separator.

    Args:
        candidate: Separator as bytes or ASCII text

    Returns:
        True iff nonempty and every byte lies in 0x21..0x7E
    """
    if isinstance(candidate, str):
        try:
            candidate = candidate.encode("ascii")
        except UnicodeEncodeError:
            return False
    try:
        data = as_bytes(candidate)
    except TypeError:
        return False
    if not data:
        return False
    return all(VCHAR_MIN <= b <= VCHAR_MAX for b in data)


def validate_separator(candidate: BytesLike) -> bytes:
    """
    Return the separator as bytes, or raise if it is not legal.

    Raises:
        MalformedSeparator: If the candidate fails the separator rules
    """
    if not is_valid_separator(candidate):
        raise MalformedSeparator(f"Invalid separator: {candidate!r}")
    return as_bytes(candidate)


def random_separator(length: int = DEFAULT_RANDOM_LENGTH) -> bytes:
    """
    Generate a separator from the platform's secure random source.

    Used in streaming mode, where the records are not known in advance
    and the selector cannot run. With the default length the separator
    carries 96 bits of entropy, so a collision is vanishingly unlikely
    rather than impossible.

    Args:
        length: Number of characters (6 bits of entropy each)

    Returns:
        Separator bytes drawn from the URL-safe base64 alphabet
    """
    if length < 1:
        raise ValueError(f"Separator length must be positive, got {length}")
    if length < MIN_RANDOM_LENGTH:
        warnings.warn(
            f"Random separator of {length} characters has only {length * 6} bits of entropy",
            UserWarning,
        )
    return "".join(secrets.choice(RANDOM_ALPHABET) for _ in range(length)).encode("ascii")


def line_collides(record: bytes, separator: bytes) -> bool:
    """True if any line of `record` is exactly `separator`."""
    size = len(separator)
    end_of_record = len(record)
    start = 0
    while True:
        index = record.find(separator, start)
        if index < 0:
            return False
        end = index + size
        at_line_start = index == 0 or record[index - 1] == NEWLINE
        at_line_end = end == end_of_record or record[end] == NEWLINE
        if at_line_start and at_line_end:
            return True
        start = index + 1


def find_collision(records: Iterable[bytes], separator: bytes) -> Optional[int]:
    """
    Find the first record that contains the separator as a full line.

    Returns:
        Index of the first colliding record, or None
    """
    for index, record in enumerate(records):
        if line_collides(record, separator):
            return index
    return None


__all__ = [
    "as_bytes",
    "is_valid_separator",
    "validate_separator",
    "random_separator",
    "line_collides",
    "find_collision",
    "DEFAULT_RANDOM_LENGTH",
]
