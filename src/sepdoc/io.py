"""
Byte source and byte sink adapters.

The codec only needs two collaborator shapes:

    source.read(size) -> bytes     (b"" at end of stream)
    sink.write(data)               (push-based)

Plain iterables of byte chunks are accepted as sources too, which is
convenient for generators and tests.

Transient conditions (non-blocking source with no data, sink that would
block) are surfaced as SourceUnavailable / SinkUnavailable. Nothing here
retries; the caller decides whether to call again later.
"""

from typing import Any, Optional

from sepdoc.errors import SinkUnavailable, SourceUnavailable

_END = object()


class ByteSource:
    """Pull-based reader over a file-like object or an iterable of chunks."""

    def __init__(self, source: Any, read_size: int = 64 * 1024):
        self._source = source
        self._read_size = read_size
        self._read = getattr(source, "read", None)
        self._chunks = None if self._read is not None else iter(source)
        self.offset = 0
        self.exhausted = False

    def read(self) -> bytes:
        """
        Read the next chunk.

        Returns:
            Nonempty bytes, or b"" once the source is exhausted

        Raises:
            SourceUnavailable: If the source has no data available yet
        """
        if self.exhausted:
            return b""
        while True:
            if self._chunks is not None:
                chunk = next(self._chunks, _END)
                if chunk is _END:
                    self.exhausted = True
                    return b""
            else:
                try:
                    chunk = self._read(self._read_size)
                except BlockingIOError as exc:
                    raise SourceUnavailable("Byte source would block", offset=self.offset) from exc
                if chunk is None:
                    raise SourceUnavailable("Byte source has no data available", offset=self.offset)
            if not isinstance(chunk, (bytes, bytearray, memoryview)):
                raise TypeError(f"Byte source produced {type(chunk).__name__}, expected bytes")
            if len(chunk) == 0:
                if self._chunks is not None:
                    # Empty chunk from an iterable is not end of stream
                    continue
                self.exhausted = True
                return b""
            chunk = bytes(chunk)
            self.offset += len(chunk)
            return chunk

    def close(self) -> None:
        close = getattr(self._source, "close", None)
        if close is not None:
            close()


class ByteSink:
    """Push-based writer that completes short writes."""

    def __init__(self, sink: Any):
        self._sink = sink
        self.offset = 0

    def write(self, data: bytes) -> int:
        """
        Write all of `data` to the sink.

        Raises:
            SinkUnavailable: If the sink would block; `offset` tells how
                many bytes of the stream were accepted so far
        """
        view = memoryview(data)
        pos = 0
        while pos < len(view):
            try:
                written: Optional[int] = self._sink.write(bytes(view[pos:]))
            except BlockingIOError as exc:
                # characters_written is unset unless the sink reported a count
                self.offset += getattr(exc, "characters_written", 0)
                raise SinkUnavailable("Byte sink would block", offset=self.offset) from exc
            if not written:
                # None (raw non-blocking write) or 0: nothing was accepted
                raise SinkUnavailable("Byte sink accepted no bytes", offset=self.offset)
            pos += written
            self.offset += written
        return pos

    def flush(self) -> None:
        flush = getattr(self._sink, "flush", None)
        if flush is not None:
            flush()


def as_sink(sink: Any) -> ByteSink:
    return sink if isinstance(sink, ByteSink) else ByteSink(sink)


def as_source(source: Any, read_size: int = 64 * 1024) -> ByteSource:
    if isinstance(source, ByteSource):
        return source
    if isinstance(source, (bytes, bytearray, memoryview)):
        source = [bytes(source)]
    return ByteSource(source, read_size=read_size)
