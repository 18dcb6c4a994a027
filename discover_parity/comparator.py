"""
Consistency comparator.

Reconciles two result sets by exact, case-insensitive title equality.
Substring containment and fuzzy similarity are offered as diagnostics
only; they never decide pass/fail.
"""

from typing import List, Tuple

from thefuzz import fuzz

from .exceptions import InvalidInputError
from .models import ComparisonReport, ResultSet

# Below this ratio the runner reports a likely pagination/sorting mismatch
LOW_MATCH_RATIO = 0.2


def _require_result_set(value, name: str) -> ResultSet:
    if not isinstance(value, ResultSet):
        raise InvalidInputError(f"{name} must be a ResultSet, got {type(value).__name__}")
    return value


def compare(a: ResultSet, b: ResultSet) -> ComparisonReport:
    """
    Compare two result sets by normalized title.

    The ratio is taken over the smaller side, so a short UI page fully
    contained in a longer API listing scores 1.0.

    Args:
        a: First result set (usually API)
        b: Second result set (usually UI)

    Returns:
        ComparisonReport; match_ratio is 0 when either side is empty
    """
    _require_result_set(a, "a")
    _require_result_set(b, "b")

    keys_a = a.keys()
    keys_b = b.keys()

    exact = keys_a & keys_b
    smaller = min(len(keys_a), len(keys_b))
    ratio = len(exact) / smaller if smaller else 0.0

    return ComparisonReport(
        exact_matches=exact,
        source_a_only=keys_a - keys_b,
        source_b_only=keys_b - keys_a,
        match_ratio=ratio,
        source_a=a.source,
        source_b=b.source,
    )


def containment_matches(a: ResultSet, b: ResultSet) -> List[Tuple[str, str]]:
    """
    Pairs of titles where one contains the other, ignoring case.

    Containment runs both ways and over-matches short titles ("Up" is
    inside "Upgrade"), so this is a diagnostic aid only.
    """
    _require_result_set(a, "a")
    _require_result_set(b, "b")

    pairs = []
    b_records = [(r.key, r.title) for r in b]
    for record in a:
        for key_b, title_b in b_records:
            if record.key == key_b or record.key in key_b or key_b in record.key:
                pairs.append((record.title, title_b))
                break
    return pairs


def fuzzy_candidates(
    report: ComparisonReport, threshold: int = 85
) -> List[Tuple[str, str, int]]:
    """
    Near-miss pairs between the two exclusive sets.

    Useful for spotting titles that differ only by punctuation or
    localisation. Diagnostic only.

    Returns:
        (a_key, b_key, score) tuples sorted by score descending
    """
    candidates = []
    for key_a in sorted(report.source_a_only):
        best_key = None
        best_score = 0
        for key_b in sorted(report.source_b_only):
            score = fuzz.ratio(key_a, key_b)
            if score > best_score:
                best_score = score
                best_key = key_b
        if best_key is not None and best_score >= threshold:
            candidates.append((key_a, best_key, best_score))

    candidates.sort(key=lambda c: (-c[2], c[0]))
    return candidates
