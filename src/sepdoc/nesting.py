"""
Nesting Adapter: documents inside records.

A record's payload may itself be a complete document with its own
separator. The wire format carries no depth marker: the application
knows its nesting schema and feeds a record back into a new decoder.

ARCHITECTURAL RULE:
    Each level is an independent encoder/decoder instance.
    An inner separator must differ from every enclosing separator.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from sepdoc.config import CodecConfig
from sepdoc.decoder import decode
from sepdoc.encoder import StreamEncoder, encode_document
from sepdoc.errors import MalformedSeparator, SeparatorCollision
from sepdoc.model import Document
from sepdoc.separator import BytesLike, as_bytes, random_separator, validate_separator

NestedRecords = List[Union[bytes, "NestedRecords"]]


class NestingPath:
    """
    Separators of the enclosing documents, outermost first.

    Example:
        path = NestingPath().descend(b"========").descend(b"====")
        path.depth  -> 2
    """

    def __init__(self, separators: Sequence[bytes] = ()):
        self.separators: Tuple[bytes, ...] = tuple(separators)

    @property
    def depth(self) -> int:
        return len(self.separators)

    def __contains__(self, separator: bytes) -> bool:
        return separator in self.separators

    def descend(self, separator: bytes) -> "NestingPath":
        """Return the path one level deeper."""
        if separator in self.separators:
            raise MalformedSeparator(
                f"Nested document at depth {self.depth} reuses enclosing separator {separator!r}"
            )
        return NestingPath(self.separators + (separator,))

    def __repr__(self) -> str:
        return f"NestingPath({list(self.separators)!r})"


@contextmanager
def nested_document(encoder: StreamEncoder,
                    separator: Optional[BytesLike] = None) -> Iterator[StreamEncoder]:
    """
    Write an inner document as one record of `encoder`.

    Example:
        with nested_document(outer) as inner:
            inner.write(b"first inner record")
            inner.write(b"second inner record")

    Args:
        encoder: Encoder of the enclosing document
        separator: Inner separator; random when omitted

    Yields:
        StreamEncoder for the inner document

    Raises:
        SeparatorCollision: If the inner separator equals an enclosing one
    """
    if separator is None:
        separator = random_separator(encoder.config.random_length)
    separator = validate_separator(separator)
    if separator in encoder.forbidden:
        raise SeparatorCollision(
            f"Inner separator {separator!r} is already used by an enclosing document",
            separator=separator,
        )
    with encoder.record() as body:
        yield StreamEncoder(body, separator=separator, config=encoder.config,
                            enclosing=encoder.forbidden)


def encode_nested(tree: Sequence, config: Optional[CodecConfig] = None,
                  seed: Optional[BytesLike] = None,
                  max_length: Optional[int] = None) -> bytes:
    """
    Encode a tree of records, selecting a separator per level.

    Leaves (bytes or str) are records; lists and tuples are sub-documents
    encoded as a single record of their parent. Inner levels are encoded
    first, so the selector for each level sees the finished inner bytes,
    including the inner separator lines, and picks something distinct.

    Args:
        tree: Nested lists of records
        config: Codec settings
        seed: Selector seed for every level
        max_length: Separator ceiling for every level

    Returns:
        The encoded outer document
    """
    payloads = []
    for item in tree:
        if isinstance(item, (list, tuple)):
            payloads.append(encode_nested(item, config=config, seed=seed, max_length=max_length))
        else:
            payloads.append(as_bytes(item))
    return encode_document(payloads, config=config, seed=seed, max_length=max_length)


def decode_inner(record: bytes, path: NestingPath,
                 config: Optional[CodecConfig] = None) -> Tuple[Document, NestingPath]:
    """
    Decode a record's payload as a document nested below `path`.

    Returns:
        The inner document and the path including its separator

    Raises:
        MalformedSeparator: If the inner document reuses an enclosing separator
    """
    document = decode(record, config=config)
    if not document.separator:
        return document, path
    return document, path.descend(document.separator)


def decode_nested(data: bytes, depth: int = 1, config: Optional[CodecConfig] = None,
                  path: Optional[NestingPath] = None) -> NestedRecords:
    """
    Decode `depth` levels of nested documents.

    depth=1 returns the records of `data`; depth=2 decodes every record as a
    document and returns a list of record lists, and so on.
    """
    if depth < 1:
        raise ValueError(f"depth must be at least 1, got {depth}")
    document, inner_path = decode_inner(data, path or NestingPath(), config=config)
    if depth == 1:
        return list(document.records)
    return [decode_nested(record, depth - 1, config=config, path=inner_path)
            for record in document.records]


__all__ = [
    "NestingPath",
    "nested_document",
    "encode_nested",
    "decode_inner",
    "decode_nested",
]
