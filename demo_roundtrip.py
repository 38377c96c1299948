#!/usr/bin/env python3
"""
Round-trip Demo: records → document → records

Shows the full workflow:
1. Batch encoding with a selected separator
2. Streaming decode in small chunks
3. Streaming encoding with a random separator
4. Nested documents
"""

from io import BytesIO

from sepdoc import (
    StreamDecoder,
    StreamEncoder,
    decode,
    decode_nested,
    encode_document,
    nested_document,
)
from sepdoc.selector import select_separator_with_stats


def main():
    records = [
        b"this is record 1",
        b"this is record 2,\nwhich has multiple lines.",
        b"====\nthis record contains the seed as a line",
        b"",
    ]

    print("=" * 80)
    print("ROUND-TRIP DEMO")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Batch encoding
    # =========================================================================
    print("\n1. BATCH ENCODING...")
    stats = select_separator_with_stats(records)
    print(f"   ✓ Separator: {stats.separator.decode()}")
    print(f"   ✓ Attempts: {stats.attempts}")
    data = encode_document(records, separator=stats.separator)
    print(f"   ✓ Encoded {len(records)} records into {len(data)} bytes")

    # =========================================================================
    # STEP 2: Streaming decode
    # =========================================================================
    print("\n2. STREAMING DECODE (3-byte chunks)...")
    decoder = StreamDecoder()
    decoded = []
    for i in range(0, len(data), 3):
        decoded.extend(decoder.feed(data[i:i + 3]))
    decoded.extend(decoder.finish())
    print(f"   ✓ Decoded {len(decoded)} records, state {decoder.state.value}")
    print(f"   ✓ Identical: {decoded == records}")

    # =========================================================================
    # STEP 3: Streaming encoding
    # =========================================================================
    print("\n3. STREAMING ENCODING...")
    sink = BytesIO()
    encoder = StreamEncoder(sink)
    with encoder.record() as body:
        for chunk in (b"streamed ", b"in ", b"chunks"):
            body.write(chunk)
    encoder.write(b"written whole")
    print(f"   ✓ Random separator: {encoder.separator.decode()}")
    print(f"   ✓ Records: {decode(sink.getvalue()).texts()}")

    # =========================================================================
    # STEP 4: Nesting
    # =========================================================================
    print("\n4. NESTED DOCUMENTS...")
    sink = BytesIO()
    outer = StreamEncoder(sink, separator=b"########")
    with nested_document(outer, separator=b"----") as inner:
        inner.write(b"inner a")
        inner.write(b"inner b")
    with nested_document(outer, separator=b"----") as inner:
        inner.write(b"inner c")
    print(f"   ✓ Nested records: {decode_nested(sink.getvalue(), depth=2)}")

    print("\n" + "=" * 80)


if __name__ == "__main__":
    main()
