"""String similarity, identifier normalization and phonetic coding."""

import logging
import re
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 70.0
PHONE_THRESHOLD = 85.0
IMEI_THRESHOLD = 90.0

# Shortest normalized phone number accepted by the suffix rule
MIN_PHONE_SUFFIX_LENGTH = 7

PHONETIC_CLASSES = {
    **dict.fromkeys("BFPV", "1"),
    **dict.fromkeys("CGJKQSXZ", "2"),
    **dict.fromkeys("DT", "3"),
    "L": "4",
    **dict.fromkeys("MN", "5"),
    "R": "6",
}


class IdentifierKind(str, Enum):
    """Identifier families with their own normalization rules."""
    PHONE = "phone"
    IMEI = "imei"
    EMAIL = "email"


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def edit_distance(a: str, b: str) -> int:
    """
    Levenshtein distance between two strings.

    Args:
        a: Source string
        b: Target string

    Returns:
        Minimum number of single-character insertions, deletions and
        substitutions that turn ``a`` into ``b``
    """
    a = _as_text(a)
    b = _as_text(b)
    if not a or not b:
        return max(len(a), len(b))

    rows, cols = len(a) + 1, len(b) + 1
    matrix = np.zeros((rows, cols), dtype=np.int64)
    matrix[:, 0] = np.arange(rows)
    matrix[0, :] = np.arange(cols)

    for i in range(1, rows):
        for j in range(1, cols):
            if a[i - 1] == b[j - 1]:
                matrix[i, j] = matrix[i - 1, j - 1]
            else:
                matrix[i, j] = 1 + min(
                    matrix[i - 1, j - 1],  # substitution
                    matrix[i, j - 1],      # insertion
                    matrix[i - 1, j],      # deletion
                )

    return int(matrix[rows - 1, cols - 1])


def similarity(a: str, b: str) -> float:
    """
    Case-insensitive similarity percentage derived from edit distance.

    Returns:
        100 for two empty strings, 0 when only one is empty, otherwise
        ``100 * (max_len - distance) / max_len``
    """
    a = _as_text(a)
    b = _as_text(b)
    if not a and not b:
        return 100.0
    if not a or not b:
        return 0.0

    max_length = max(len(a), len(b))
    distance = edit_distance(a.lower(), b.lower())
    return 100.0 * (max_length - distance) / max_length


def is_similar(a: str, b: str, threshold: float = DEFAULT_THRESHOLD) -> bool:
    """Check whether two strings are at least ``threshold`` percent similar."""
    return similarity(a, b) >= threshold


def normalize_identifier(kind: IdentifierKind, value: Optional[str]) -> str:
    """
    Normalize an identifier for comparison.

    Phone numbers keep digits only, IMEIs drop whitespace and hyphens and
    are uppercased, emails are trimmed and lowercased.
    """
    value = _as_text(value)
    kind = IdentifierKind(kind)
    if kind is IdentifierKind.PHONE:
        return re.sub(r"\D", "", value)
    if kind is IdentifierKind.IMEI:
        return re.sub(r"[\s-]", "", value).upper()
    return value.strip().lower()


def _suffix_match(a: str, b: str) -> bool:
    shorter, longer = sorted((a, b), key=len)
    return len(shorter) >= MIN_PHONE_SUFFIX_LENGTH and longer.endswith(shorter)


def identifier_score(kind: IdentifierKind, a: Optional[str], b: Optional[str]) -> float:
    """
    Score two identifiers after normalization.

    Exact matches, and for phone numbers suffix matches of at least seven
    digits (country code vs. local format), score 100. Anything else scores
    the plain similarity of the normalized forms. Empty identifiers score 0.
    """
    kind = IdentifierKind(kind)
    norm_a = normalize_identifier(kind, a)
    norm_b = normalize_identifier(kind, b)
    if not norm_a or not norm_b:
        return 0.0
    if norm_a == norm_b:
        return 100.0
    if kind is IdentifierKind.PHONE and _suffix_match(norm_a, norm_b):
        return 100.0
    return similarity(norm_a, norm_b)


def identifiers_match(
    kind: IdentifierKind,
    a: Optional[str],
    b: Optional[str],
    threshold: Optional[float] = None,
) -> bool:
    """Check whether two identifiers refer to the same device or line."""
    kind = IdentifierKind(kind)
    if not normalize_identifier(kind, a) or not normalize_identifier(kind, b):
        return False
    if threshold is None:
        threshold = IMEI_THRESHOLD if kind is IdentifierKind.IMEI else PHONE_THRESHOLD
    return identifier_score(kind, a, b) >= threshold


def phonetic_code(word: str) -> str:
    """
    Soundex style phonetic code.

    The first letter is kept, the remaining consonants are mapped to their
    class digit, vowels and h/w/y are dropped and letters repeating the
    previous class digit are collapsed. The code is padded to four
    characters with zeros. Input without letters yields an empty code.
    """
    letters = re.sub(r"[^A-Z]", "", _as_text(word).upper())
    if not letters:
        return ""

    first = letters[0]
    code = first
    previous = PHONETIC_CLASSES.get(first, "0")

    for letter in letters[1:]:
        if len(code) == 4:
            break
        current = PHONETIC_CLASSES.get(letter, "0")
        if current != "0" and current != previous:
            code += current
        if current != "0":
            previous = current

    return code.ljust(4, "0")


def phonetic_match(a: str, b: str) -> bool:
    """Check whether two words share a (non-empty) phonetic code."""
    code_a = phonetic_code(a)
    return bool(code_a) and code_a == phonetic_code(b)


def field_value(record: Any, field: str) -> Any:
    """Read ``field`` from a mapping or an attribute-style record."""
    if isinstance(record, dict):
        return record.get(field)
    return getattr(record, field, None)


def multi_field_rank(
    records: Sequence[Any],
    query: str,
    fields: Sequence[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> List[Tuple[Any, float, Optional[str]]]:
    """
    Rank records by their best field similarity to the query.

    Args:
        records: Records (mappings or objects) to score
        query: Search text
        fields: Field names compared against the query
        threshold: Minimum best score for a record to be kept

    Returns:
        ``(record, score, field)`` triples sorted by descending score;
        records with equal scores keep their input order
    """
    ranked = []
    for record in records:
        best_score = 0.0
        best_field = None
        for field in fields:
            value = field_value(record, field)
            if value is None or value == "":
                continue
            score = similarity(query, _as_text(getattr(value, "value", value)))
            if score > best_score:
                best_score = score
                best_field = field
        if best_score >= threshold:
            ranked.append((record, best_score, best_field))

    ranked.sort(key=lambda item: item[1], reverse=True)
    logger.debug(f"Multi-field rank kept {len(ranked)} of {len(records)} records")
    return ranked
