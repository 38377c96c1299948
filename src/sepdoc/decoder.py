"""
Decoder: byte stream -> separator + records.

The separator is not known until the first line has been read, so the
decoder is an explicit two-phase state machine rather than a parser for
a fixed grammar:

    AWAITING_SEPARATOR   buffer bytes until the first LF; the line is
                         the separator token
    STREAMING_RECORDS    every exact occurrence of LF separator LF ends
                         the current record
    CLOSED / TRUNCATED   end of stream reached

At end of stream the unresolved tail decides how the document ends:

    tail ends with LF          final record is the tail minus that LF
    empty, after a boundary    final record is empty
    empty, after declaration   no records
    anything else              TruncatedDocument

Wire format:

    document   = *record
    record     = separator LF *OCTET LF
    separator  = 1*VCHAR

Two interfaces are provided:
    - StreamDecoder: push-based (feed chunks, then finish)
    - DocumentReader: pull-based over a byte source (open_document)

ARCHITECTURAL RULE:
    Record bytes are never unescaped or altered.
    A record exists only once its boundary has been confirmed.
"""

import logging
import warnings
from collections import deque
from typing import Any, Deque, Iterator, List, Optional

from sepdoc.config import CodecConfig
from sepdoc.errors import (
    DecoderClosed,
    MalformedSeparator,
    RecordTooLarge,
    TruncatedDocument,
)
from sepdoc.io import ByteSource, as_source
from sepdoc.model import DecoderState, Document, SeparatorPolicy
from sepdoc.separator import NEWLINE, is_valid_separator

logger = logging.getLogger(__name__)


class StreamDecoder:
    """
    Push-based decoder for one document.

    Feed the stream in chunks of any size; each call returns the records
    completed by that chunk. Call finish() at end of stream.

    Only the unresolved tail of the stream is buffered: the declaration
    line while awaiting the separator, the current record afterwards.
    Instances are not reentrant.
    """

    def __init__(self, config: Optional[CodecConfig] = None):
        self._config = config or CodecConfig()
        self._state = DecoderState.AWAITING_SEPARATOR
        self._buffer = bytearray()
        self._separator = b""
        self._boundary = b""
        self._scan_from = 0
        self._offset = 0
        self._records_emitted = 0

    @property
    def state(self) -> DecoderState:
        return self._state

    @property
    def separator(self) -> bytes:
        """The declared separator (empty until the first line is read)."""
        return self._separator

    @property
    def records_emitted(self) -> int:
        return self._records_emitted

    @property
    def offset(self) -> int:
        """Stream offset of the first byte not yet resolved."""
        return self._offset

    def feed(self, chunk: bytes) -> List[bytes]:
        """
        Consume a chunk of the stream.

        Args:
            chunk: Next bytes of the stream (may be empty)

        Returns:
            Records whose closing boundary was confirmed by this chunk

        Raises:
            MalformedSeparator: If the declaration line is invalid
            RecordTooLarge: If max_record_size is exceeded
            DecoderClosed: If the document already ended
        """
        self._ensure_open()
        records: List[bytes] = []
        if not chunk:
            return records
        self._buffer.extend(chunk)
        if self._state is DecoderState.AWAITING_SEPARATOR:
            if not self._read_declaration():
                return records
        self._drain(records)
        return records

    def finish(self) -> List[bytes]:
        """
        Signal end of stream.

        Returns:
            The final record, if the stream ended with a complete one

        Raises:
            MalformedSeparator: If the stream ended inside the declaration line
            TruncatedDocument: If the stream ended inside a record
        """
        self._ensure_open()
        if self._state is DecoderState.AWAITING_SEPARATOR:
            if self._buffer:
                raise MalformedSeparator(
                    "Stream ended before the separator declaration line was terminated",
                    offset=len(self._buffer),
                )
            self._state = DecoderState.CLOSED
            logger.debug("Empty document")
            return []

        records: List[bytes] = []
        if not self._buffer and self._records_emitted:
            # A boundary line right before end of stream opens an empty final record
            records.append(b"")
            self._records_emitted += 1
        elif self._buffer:
            if self._buffer[-1] != NEWLINE:
                self._state = DecoderState.TRUNCATED
                partial = bytes(self._buffer)
                self._buffer.clear()
                raise TruncatedDocument(
                    "Stream ended inside a record without its closing newline",
                    partial=partial,
                    offset=self._offset,
                    record_index=self._records_emitted,
                )
            record = bytes(self._buffer[:-1])
            self._check_size(len(record))
            self._offset += len(self._buffer)
            self._buffer.clear()
            records.append(record)
            self._records_emitted += 1

        self._state = DecoderState.CLOSED
        logger.debug("Document closed after %d records", self._records_emitted)
        return records

    def _ensure_open(self) -> None:
        if self._state in (DecoderState.CLOSED, DecoderState.TRUNCATED):
            raise DecoderClosed(
                f"Decoder is {self._state.value}",
                offset=self._offset,
                record_index=self._records_emitted,
            )

    def _read_declaration(self) -> bool:
        limit = self._config.max_separator_length
        newline = self._buffer.find(b"\n", 0, limit + 1)
        if newline < 0:
            if len(self._buffer) > limit:
                raise MalformedSeparator(
                    f"No separator declaration within the first {limit} bytes",
                    offset=0,
                )
            return False

        self._separator = self._check_declaration(bytes(self._buffer[:newline]))
        self._boundary = b"\n" + self._separator + b"\n"
        del self._buffer[:newline + 1]
        self._offset = newline + 1
        self._state = DecoderState.STREAMING_RECORDS
        logger.debug("Declared separator %r", self._separator)
        return True

    def _check_declaration(self, line: bytes) -> bytes:
        if is_valid_separator(line):
            return line
        if not line:
            raise MalformedSeparator("Empty separator declaration", offset=0)
        if self._config.policy is SeparatorPolicy.LENIENT:
            warnings.warn(f"Accepting non-standard separator {line!r}", UserWarning)
            return line
        raise MalformedSeparator(f"Invalid separator declaration {line!r}", offset=0)

    def _drain(self, records: List[bytes]) -> None:
        boundary = self._boundary
        while True:
            index = self._buffer.find(boundary, self._scan_from)
            if index < 0:
                # Everything before the last len(boundary)-1 bytes is confirmed content
                self._scan_from = max(0, len(self._buffer) - len(boundary) + 1)
                self._check_size(self._scan_from)
                return
            self._check_size(index)
            records.append(bytes(self._buffer[:index]))
            consumed = index + len(boundary)
            del self._buffer[:consumed]
            self._offset += consumed
            self._scan_from = 0
            self._records_emitted += 1

    def _check_size(self, size: int) -> None:
        limit = self._config.max_record_size
        if limit is not None and size > limit:
            raise RecordTooLarge(
                f"Record exceeds {limit} bytes",
                limit=limit,
                offset=self._offset,
                record_index=self._records_emitted,
            )


class DocumentReader:
    """
    Pull-based decoder over a byte source.

    Created by open_document(), which has already consumed the separator
    declaration. Records are returned in wire order by next_record() or
    by iterating over the reader.

    A SourceUnavailable error from a non-blocking source leaves the reader
    intact; call next_record() again once data is available.
    """

    def __init__(self, source: ByteSource, decoder: StreamDecoder, close_source: bool = False):
        self._source = source
        self._decoder = decoder
        self._close_source = close_source
        self._pending: Deque[bytes] = deque()

    @property
    def separator(self) -> bytes:
        return self._decoder.separator

    @property
    def state(self) -> DecoderState:
        return self._decoder.state

    @property
    def decoder(self) -> StreamDecoder:
        return self._decoder

    def _pull(self) -> None:
        chunk = self._source.read()
        if chunk:
            self._pending.extend(self._decoder.feed(chunk))
        else:
            self._pending.extend(self._decoder.finish())

    def _open(self) -> None:
        while self._decoder.state is DecoderState.AWAITING_SEPARATOR:
            self._pull()

    def next_record(self) -> Optional[bytes]:
        """
        Return the next record, or None at the end of the document.

        Raises:
            TruncatedDocument: If the stream ended inside a record
            DecoderClosed: If called again after a TruncatedDocument
            SourceUnavailable: If the byte source has no data yet
        """
        while not self._pending:
            state = self._decoder.state
            if state is DecoderState.CLOSED:
                return None
            if state is DecoderState.TRUNCATED:
                raise DecoderClosed(
                    "Document was truncated",
                    offset=self._decoder.offset,
                    record_index=self._decoder.records_emitted,
                )
            self._pull()
        return self._pending.popleft()

    def __iter__(self) -> Iterator[bytes]:
        while True:
            record = self.next_record()
            if record is None:
                return
            yield record

    def close(self) -> None:
        if self._close_source:
            self._source.close()

    def __enter__(self) -> "DocumentReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_document(source: Any, config: Optional[CodecConfig] = None,
                  close_source: bool = False) -> DocumentReader:
    """
    Open a document for pull-based decoding.

    Reads up to the first newline to obtain the separator.

    Args:
        source: File-like object with read(size), iterable of byte chunks,
            or a bytes object
        config: Codec settings
        close_source: Close the source when the reader is closed

    Raises:
        MalformedSeparator: If the declaration line is missing or invalid
    """
    config = config or CodecConfig()
    reader = DocumentReader(
        as_source(source, read_size=config.read_size),
        StreamDecoder(config),
        close_source=close_source,
    )
    reader._open()
    return reader


def iter_records(source: Any, config: Optional[CodecConfig] = None) -> Iterator[bytes]:
    """Yield the records of a document read from `source`."""
    reader = open_document(source, config=config)
    yield from reader


def decode(data: bytes, config: Optional[CodecConfig] = None) -> Document:
    """
    Decode a complete document held in memory.

    Raises:
        MalformedSeparator: If the declaration line is missing or invalid
        TruncatedDocument: If the document ends inside a record; the
            complete records are available on the exception
    """
    decoder = StreamDecoder(config)
    records = decoder.feed(bytes(data))
    try:
        records.extend(decoder.finish())
    except TruncatedDocument as exc:
        exc.records[:0] = records
        raise
    return Document(separator=decoder.separator, records=records)


__all__ = [
    "StreamDecoder",
    "DocumentReader",
    "open_document",
    "iter_records",
    "decode",
]
