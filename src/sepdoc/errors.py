"""
Error hierarchy for the sepdoc codec.

Every error raised by the codec derives from CodecError and carries
enough context to diagnose the failure:

    offset:       byte offset in the stream where the problem was detected
    record_index: zero-based index of the record being processed

ARCHITECTURAL RULE:
    The codec never retries and never fabricates data.
    Errors are raised to the immediate caller.
"""

from typing import List, Optional


class CodecError(Exception):
    """Base class for all codec errors."""

    def __init__(self, message: str, offset: Optional[int] = None,
                 record_index: Optional[int] = None):
        self.offset = offset
        self.record_index = record_index
        context = []
        if offset is not None:
            context.append(f"offset {offset}")
        if record_index is not None:
            context.append(f"record {record_index}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class MalformedSeparator(CodecError):
    """Raised when the separator declaration is absent or invalid."""
    pass


class TruncatedDocument(CodecError):
    """
    Raised when the stream ends in the middle of a record.

    The complete records decoded before the truncation are kept in
    `records` so callers can decide what to do with the tail.

    Properties:
        records: Records confirmed complete before the truncation
        partial: The unterminated bytes of the final record
    """

    def __init__(self, message: str, records: Optional[List[bytes]] = None,
                 partial: bytes = b"", offset: Optional[int] = None,
                 record_index: Optional[int] = None):
        super().__init__(message, offset=offset, record_index=record_index)
        self.records = list(records or [])
        self.partial = partial


class SeparatorSearchExhausted(CodecError):
    """Raised when the selector would exceed the maximum separator length."""

    def __init__(self, message: str, attempts: int = 0, max_length: Optional[int] = None,
                 candidate_length: int = 0):
        super().__init__(message)
        self.attempts = attempts
        self.max_length = max_length
        self.candidate_length = candidate_length


class SeparatorCollision(CodecError):
    """Raised when a record contains a line equal to an active separator."""

    def __init__(self, message: str, separator: bytes = b"",
                 offset: Optional[int] = None, record_index: Optional[int] = None):
        super().__init__(message, offset=offset, record_index=record_index)
        self.separator = separator


class RecordTooLarge(CodecError):
    """Raised when a record exceeds the configured maximum record size."""

    def __init__(self, message: str, limit: int = 0,
                 offset: Optional[int] = None, record_index: Optional[int] = None):
        super().__init__(message, offset=offset, record_index=record_index)
        self.limit = limit


class SourceUnavailable(CodecError):
    """Raised when the byte source has no data available yet."""
    pass


class SinkUnavailable(CodecError):
    """Raised when the byte sink cannot accept data right now."""
    pass


class DecoderClosed(CodecError):
    """Raised when a decoder is used after its document has ended."""
    pass


__all__ = [
    "CodecError",
    "MalformedSeparator",
    "TruncatedDocument",
    "SeparatorSearchExhausted",
    "SeparatorCollision",
    "RecordTooLarge",
    "SourceUnavailable",
    "SinkUnavailable",
    "DecoderClosed",
]
