"""
Core sepdoc Model Objects

Defines the data structures shared by the encoder and decoder:
    - Document (separator + ordered records)
    - DecoderState (phases of the decoding state machine)
    - SeparatorPolicy (how invalid declaration lines are handled)

ARCHITECTURAL RULE:
    Records are plain bytes.
    Nothing in the model escapes, quotes or otherwise transforms them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Iterator


class DecoderState(Enum):
    """
    Phases of the decoder state machine.

    AWAITING_SEPARATOR -> STREAMING_RECORDS -> CLOSED | TRUNCATED

    The separator is only known after the first line has been read,
    so the grammar cannot be tokenized before that transition.
    """
    AWAITING_SEPARATOR = "awaiting_separator"
    STREAMING_RECORDS = "streaming_records"
    CLOSED = "closed"
    TRUNCATED = "truncated"


class SeparatorPolicy(Enum):
    """Validation policy for the separator declaration line."""
    STRICT = "strict"    # Invalid declaration is a hard error
    LENIENT = "lenient"  # Any nonempty first line is taken literally


@dataclass
class Document:
    """
    A decoded document.

    Properties:
        separator:
            The separator token declared by the first line.
            Empty for the empty (zero byte) document.

        records:
            Records in wire order, byte-for-byte as encoded.
    """

    separator: bytes = b""
    records: List[bytes] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.records)

    def __getitem__(self, index: int) -> bytes:
        return self.records[index]

    def texts(self, encoding: str = "utf-8") -> List[str]:
        """Return the records decoded as text."""
        return [record.decode(encoding) for record in self.records]
