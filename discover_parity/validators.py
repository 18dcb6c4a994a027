"""
Range and order validators.

Read-only probes over a ResultSet. Records without a parsed release
date are skipped by every check here.
"""

from datetime import date
from typing import List, Optional, Tuple

from .exceptions import InvalidInputError
from .models import ReasonCode, Record, ResultSet, Violation


def validate_range(
    result_set: ResultSet,
    from_date: Optional[date],
    to_date: Optional[date],
) -> List[Violation]:
    """
    Flag every dated record released outside [from_date, to_date].

    Either bound may be None to leave that side open.

    Raises:
        InvalidInputError: If from_date is after to_date.
    """
    if from_date and to_date and from_date > to_date:
        raise InvalidInputError(
            f"from_date {from_date} is after to_date {to_date}",
            details={"from_date": from_date.isoformat(), "to_date": to_date.isoformat()},
        )

    violations = []
    for record in result_set.dated_records():
        released = record.release_date
        if from_date and released < from_date:
            violations.append(
                Violation(
                    record_title=record.title,
                    reason_code=ReasonCode.DATE_BELOW_RANGE,
                    detail=f"released {released.isoformat()} before {from_date.isoformat()}",
                )
            )
        elif to_date and released > to_date:
            violations.append(
                Violation(
                    record_title=record.title,
                    reason_code=ReasonCode.DATE_ABOVE_RANGE,
                    detail=f"released {released.isoformat()} after {to_date.isoformat()}",
                )
            )
    return violations


def ascending_breaks(result_set: ResultSet) -> List[Tuple[Record, Record]]:
    """
    Adjacent dated pairs that go backwards in time.

    Undated records are skipped; the last dated record stays the anchor.
    """
    breaks = []
    anchor: Optional[Record] = None
    for record in result_set.dated_records():
        if anchor is not None and record.release_date < anchor.release_date:
            breaks.append((anchor, record))
        anchor = record
    return breaks


def validate_ascending(result_set: ResultSet) -> bool:
    """True iff dated records are in non-decreasing release order."""
    return not ascending_breaks(result_set)


def out_of_range_percent(result_set: ResultSet, violations: List[Violation]) -> float:
    """Share of all records (dated or not) that breached the range, as a percentage."""
    if not len(result_set):
        return 0.0
    return len(violations) / len(result_set) * 100
