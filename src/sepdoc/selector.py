"""
Collision-Free Separator Selector (batch mode).

Given a fully materialized set of records, find a separator that is not
a full line of any record, so that line-based delimiting is unambiguous.

Algorithm (iterative lengthening):
    1. candidate = seed
    2. if no record has a line equal to candidate: accept
    3. otherwise candidate = candidate + candidate, go to 2

Termination:
    A line of a record is never longer than the record. Each round doubles
    the candidate, so after at most ceil(log2(max_record_length / len(seed)))
    + 1 rounds it is longer than every record and cannot collide.

Each round scans every record once, O(total record bytes).

A record made of a long run of the seed pattern forces a long separator.
With untrusted input, set max_length: exceeding it raises
SeparatorSearchExhausted instead of growing without bound.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from sepdoc.config import DEFAULT_SEED
from sepdoc.errors import SeparatorSearchExhausted
from sepdoc.separator import BytesLike, as_bytes, find_collision, validate_separator

logger = logging.getLogger(__name__)


@dataclass
class SelectionResult:
    """
    Outcome of a separator search.

    Properties:
        separator: The accepted separator
        attempts: Number of candidates checked (1 = the seed was accepted)
        rejected: Candidates rejected because a record contained them as a line
    """
    separator: bytes
    attempts: int = 1
    rejected: List[bytes] = field(default_factory=list)


def lengthen(candidate: bytes) -> bytes:
    """Deterministic lengthening step: double the candidate."""
    return candidate + candidate


def select_separator_with_stats(records: Iterable[BytesLike], seed: BytesLike = DEFAULT_SEED,
                                max_length: Optional[int] = None) -> SelectionResult:
    """
    Run the iterative lengthening search and report how it went.

    Args:
        records: All records of the document
        seed: Starting candidate; must satisfy the separator rules
        max_length: Optional ceiling on the separator length

    Returns:
        SelectionResult with the accepted separator

    Raises:
        MalformedSeparator: If the seed is not a legal separator
        SeparatorSearchExhausted: If the next candidate would exceed max_length
    """
    candidate = validate_separator(seed)
    payloads: Sequence[bytes] = [as_bytes(r) for r in records]
    result = SelectionResult(separator=candidate, attempts=0)

    while True:
        if max_length is not None and len(candidate) > max_length:
            raise SeparatorSearchExhausted(
                f"No collision-free separator of at most {max_length} bytes "
                f"after {result.attempts} attempts",
                attempts=result.attempts,
                max_length=max_length,
                candidate_length=len(candidate),
            )
        result.attempts += 1
        colliding = find_collision(payloads, candidate)
        if colliding is None:
            result.separator = candidate
            return result
        logger.debug(
            "Separator candidate of %d bytes collides with record %d",
            len(candidate), colliding,
        )
        result.rejected.append(candidate)
        candidate = lengthen(candidate)


def select_separator(records: Iterable[BytesLike], seed: BytesLike = DEFAULT_SEED,
                     max_length: Optional[int] = None) -> bytes:
    """Return a separator that is not a full line of any record."""
    return select_separator_with_stats(records, seed=seed, max_length=max_length).separator


__all__ = [
    "SelectionResult",
    "lengthen",
    "select_separator",
    "select_separator_with_stats",
]
