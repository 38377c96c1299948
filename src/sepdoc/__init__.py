"""
sepdoc: separator-delimited record documents

A byte stream is divided into records by a separator line that the
document declares itself:

    ====
    this is record 1
    ====
    this is record 2,
    which has multiple lines.

The separator is chosen so that it never appears as a full line of any
record. Records are therefore never escaped: what goes in comes out
byte-for-byte.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Command-line handling
    - Files, stdin or stdout
    - What the records mean

It only encodes and decodes documents.
"""

from sepdoc.config import CodecConfig, load_config
from sepdoc.decoder import DocumentReader, StreamDecoder, decode, iter_records, open_document
from sepdoc.encoder import StreamEncoder, encode_document, write_document, write_record
from sepdoc.errors import (
    CodecError,
    DecoderClosed,
    MalformedSeparator,
    RecordTooLarge,
    SeparatorCollision,
    SeparatorSearchExhausted,
    SinkUnavailable,
    SourceUnavailable,
    TruncatedDocument,
)
from sepdoc.model import DecoderState, Document, SeparatorPolicy
from sepdoc.nesting import NestingPath, decode_nested, encode_nested, nested_document
from sepdoc.selector import select_separator
from sepdoc.separator import is_valid_separator, random_separator

__version__ = "0.1.0"
