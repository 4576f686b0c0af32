"""
Report Come Play Backend — Duplicate-Field Detector
=====================================================

What:  Decides whether a new field submission is a near-duplicate of a field
       that is already on record.
How:   Normalizes both sides (trim, collapse whitespace, lower-case), then
       tries exact match, substring containment and finally a normalized
       Levenshtein similarity ratio.
Who:   Called by FieldService.create_field() before the insert.

Decision procedure:
    for record in existing (caller's order):
        if is_similar(name, record.name) or is_similar(location, record.location):
            return record        ← first match wins, scan stops
    return None

    The function is pure: no I/O, no shared state, never raises. Empty
    strings never match anything, so bad input fails open (the submission
    goes through) rather than blocking a legitimate field.

Complexity:
    O(R · L1 · L2) for R existing records. Fine for a single catalog of
    community-reported fields; a much larger catalog would want n-gram
    blocking in front of this scan.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol

from rapidfuzz.distance import Levenshtein

DEFAULT_SIMILARITY_THRESHOLD = 0.8
FIELD_DUPLICATE_THRESHOLD = 0.75

# Substring containment only counts when both strings are longer than this
MIN_SUBSTRING_LENGTH = 3

_WHITESPACE_RUN = re.compile(r"\s+")


class FieldLike(Protocol):
    """Anything with a name and a location: ORM rows, query projections, FieldRecord."""

    name: str
    location: str


@dataclass(frozen=True)
class FieldRecord:
    """Flat {id, name, location} projection of a stored field."""

    id: Any
    name: str
    location: str


def collapse_whitespace(value: str) -> str:
    """Trim and collapse internal whitespace runs to a single space."""
    return _WHITESPACE_RUN.sub(" ", value.strip())


def normalize_for_comparison(value: str) -> str:
    return collapse_whitespace(value).lower()


def similarity_ratio(a: str, b: str) -> float:
    """
    (longer_length - levenshtein(a, b)) / longer_length, case-insensitive.

    Returns 0.0 when either string is empty.
    """
    if not a or not b:
        return 0.0
    a, b = a.lower(), b.lower()
    longer_length = max(len(a), len(b))
    return (longer_length - Levenshtein.distance(a, b)) / float(longer_length)


def is_similar(
    a: Optional[str],
    b: Optional[str],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> bool:
    """
    Fuzzy equality for short free-text labels (field names, locations).

    1. Empty / missing on either side → False
    2. Exact match after normalization → True
    3. Both longer than 3 chars and one contains the other → True
    4. Otherwise similarity_ratio >= threshold
    """
    if not a or not b:
        return False

    norm_a = normalize_for_comparison(a)
    norm_b = normalize_for_comparison(b)
    if not norm_a or not norm_b:
        return False

    if norm_a == norm_b:
        return True

    if len(norm_a) > MIN_SUBSTRING_LENGTH and len(norm_b) > MIN_SUBSTRING_LENGTH:
        if norm_a in norm_b or norm_b in norm_a:
            return True

    return similarity_ratio(norm_a, norm_b) >= threshold


def detect_duplicate(
    candidate_name: str,
    candidate_location: str,
    existing_records: Iterable[FieldLike],
    threshold: float = FIELD_DUPLICATE_THRESHOLD,
) -> Optional[FieldLike]:
    """
    Return the first existing record whose name OR location is similar to the
    candidate's, or None.

    Args:
        candidate_name: Submitted field name
        candidate_location: Submitted field location
        existing_records: Snapshot of stored fields, scanned in the given order
        threshold: Levenshtein ratio needed when neither exact nor substring match
    """
    for record in existing_records:
        if is_similar(candidate_name, record.name, threshold) or is_similar(
            candidate_location, record.location, threshold
        ):
            return record
    return None
