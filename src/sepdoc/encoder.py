"""
Streaming Encoder: records -> byte stream.

Each record is written as

    separator LF record LF

with no transformation of the record bytes. Keeping the separator out of
the records as a full line is what makes the output decodable:

    - batch mode: the selector proves it (encode_document, write_document)
    - streaming mode: a random separator makes a collision vanishingly
      unlikely, and each record is checked before it is written

Records can also be streamed in chunks through StreamEncoder.record(),
with a line guard that checks completed lines using bounded memory.
"""

import logging
from contextlib import contextmanager
from io import BytesIO
from typing import Any, Iterable, Iterator, Optional, Sequence, Tuple

from sepdoc.config import CodecConfig
from sepdoc.errors import SeparatorCollision
from sepdoc.io import ByteSink, as_sink
from sepdoc.selector import select_separator
from sepdoc.separator import (
    BytesLike,
    as_bytes,
    line_collides,
    random_separator,
    validate_separator,
)

logger = logging.getLogger(__name__)


def write_record(sink: Any, separator: bytes, record: BytesLike) -> None:
    """
    Emit one record: separator + LF + record + LF.

    The caller guarantees that `separator` is not a line of `record`.
    """
    as_sink(sink).write(b"".join((separator, b"\n", as_bytes(record), b"\n")))


class _LineGuard:
    """Detects lines equal to a forbidden separator in chunked input."""

    def __init__(self, forbidden: Sequence[bytes]):
        self._forbidden = set(forbidden)
        self._limit = max(len(s) for s in self._forbidden)
        self._line = bytearray()
        self._overflow = False

    def feed(self, data: bytes) -> Optional[bytes]:
        """Return the forbidden separator completed by `data`, if any."""
        start = 0
        while True:
            newline = data.find(b"\n", start)
            end = newline if newline >= 0 else len(data)
            self._extend(data[start:end])
            if newline < 0:
                return None
            hit = self._complete_line()
            if hit is not None:
                return hit
            start = newline + 1

    def finish(self) -> Optional[bytes]:
        return self._complete_line()

    def _extend(self, piece: bytes) -> None:
        if self._overflow:
            return
        if len(self._line) + len(piece) > self._limit:
            # Longer than every separator; can no longer match
            self._overflow = True
            self._line.clear()
        else:
            self._line.extend(piece)

    def _complete_line(self) -> Optional[bytes]:
        line = None if self._overflow else bytes(self._line)
        self._line.clear()
        self._overflow = False
        if line in self._forbidden:
            return line
        return None


class RecordWriter:
    """Writes the body of one record in chunks. Obtained from StreamEncoder.record()."""

    def __init__(self, encoder: "StreamEncoder"):
        self._encoder = encoder
        self._guard = _LineGuard(encoder.forbidden) if encoder.check_collisions else None
        self.size = 0
        self.closed = False

    def write(self, data: BytesLike) -> int:
        if self.closed:
            raise ValueError("write to a closed record")
        data = as_bytes(data)
        if self._guard is not None:
            self._encoder._raise_on_hit(self._guard.feed(data))
        self._encoder._sink.write(data)
        self.size += len(data)
        return len(data)

    def close(self) -> None:
        if self.closed:
            return
        if self._guard is not None:
            self._encoder._raise_on_hit(self._guard.finish())
        self._encoder._sink.write(b"\n")
        self.closed = True


class StreamEncoder:
    """
    Writes one document to a byte sink, record by record.

    Properties:
        separator:
            Separator of this document. Generated from the secure random
            source when not supplied.

        enclosing:
            Separators of the documents this one is nested in (outermost
            first). Records are checked against them too, so an inner
            document can never produce an outer boundary.
    """

    def __init__(self, sink: Any, separator: Optional[BytesLike] = None,
                 config: Optional[CodecConfig] = None,
                 enclosing: Iterable[bytes] = ()):
        self._config = config or CodecConfig()
        if separator is None:
            separator = random_separator(self._config.random_length)
        self._separator = validate_separator(separator)
        self._enclosing: Tuple[bytes, ...] = tuple(validate_separator(s) for s in enclosing)
        if self._separator in self._enclosing:
            raise SeparatorCollision(
                f"Separator {self._separator!r} is already used by an enclosing document",
                separator=self._separator,
            )
        self._sink: ByteSink = as_sink(sink)
        self._open_record: Optional[RecordWriter] = None
        self.records_written = 0

    @property
    def separator(self) -> bytes:
        return self._separator

    @property
    def enclosing(self) -> Tuple[bytes, ...]:
        return self._enclosing

    @property
    def forbidden(self) -> Tuple[bytes, ...]:
        """Every separator that must not appear as a line of a record."""
        return self._enclosing + (self._separator,)

    @property
    def check_collisions(self) -> bool:
        return self._config.check_collisions

    @property
    def config(self) -> CodecConfig:
        return self._config

    @property
    def bytes_written(self) -> int:
        return self._sink.offset

    def write(self, record: BytesLike) -> None:
        """
        Write one complete record.

        Raises:
            SeparatorCollision: If the record contains an active separator as a line
            SinkUnavailable: If the sink would block
        """
        self._ensure_no_open_record()
        data = as_bytes(record)
        if self.check_collisions:
            for separator in self.forbidden:
                if line_collides(data, separator):
                    self._raise_on_hit(separator)
        write_record(self._sink, self._separator, data)
        self.records_written += 1

    def write_all(self, records: Iterable[BytesLike]) -> None:
        for record in records:
            self.write(record)

    @contextmanager
    def record(self) -> Iterator[RecordWriter]:
        """
        Stream the body of one record.

        Example:
            with encoder.record() as body:
                for chunk in chunks:
                    body.write(chunk)

        If the block raises, the record is left unterminated; a decoder
        reports the document as truncated.
        """
        self._ensure_no_open_record()
        self._sink.write(self._separator + b"\n")
        writer = RecordWriter(self)
        self._open_record = writer
        try:
            yield writer
            writer.close()
            self.records_written += 1
        finally:
            self._open_record = None

    def flush(self) -> None:
        self._sink.flush()

    def _ensure_no_open_record(self) -> None:
        if self._open_record is not None:
            raise RuntimeError("A streamed record is still open")

    def _raise_on_hit(self, separator: Optional[bytes]) -> None:
        if separator is None:
            return
        raise SeparatorCollision(
            f"Record contains separator {separator!r} as a full line",
            separator=separator,
            offset=self._sink.offset,
            record_index=self.records_written,
        )


def write_document(sink: Any, records: Iterable[BytesLike], separator: Optional[BytesLike] = None,
                   config: Optional[CodecConfig] = None, seed: Optional[BytesLike] = None,
                   max_length: Optional[int] = None) -> bytes:
    """
    Write a whole document, selecting a collision-free separator if none is given.

    Args:
        sink: Byte sink
        records: All records (materialized for the selector)
        separator: Explicit separator, skips selection
        config: Codec settings (seed and max_separator_length defaults)
        seed: Overrides config.seed
        max_length: Overrides config.max_separator_length

    Returns:
        The separator used

    Raises:
        SeparatorSearchExhausted: If no separator fits within max_length
    """
    config = config or CodecConfig()
    payloads = [as_bytes(r) for r in records]
    if separator is None:
        separator = select_separator(
            payloads,
            seed=config.seed if seed is None else seed,
            max_length=config.max_separator_length if max_length is None else max_length,
        )
    encoder = StreamEncoder(sink, separator=separator, config=config)
    encoder.write_all(payloads)
    logger.debug("Wrote %d records with separator %r", encoder.records_written, encoder.separator)
    return encoder.separator


def encode_document(records: Iterable[BytesLike], separator: Optional[BytesLike] = None,
                    config: Optional[CodecConfig] = None, seed: Optional[BytesLike] = None,
                    max_length: Optional[int] = None) -> bytes:
    """Encode a whole document in memory. See write_document()."""
    buffer = BytesIO()
    write_document(buffer, records, separator=separator, config=config,
                   seed=seed, max_length=max_length)
    return buffer.getvalue()


__all__ = [
    "write_record",
    "RecordWriter",
    "StreamEncoder",
    "write_document",
    "encode_document",
]
