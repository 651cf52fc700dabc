"""
Aggregation engine — subject marks to total, average and grade.

Order of operations matters at the band edges: the grade is looked up with
the unrounded average, and only afterwards are total and average rounded to
two places for display. An average of 79.995 is therefore graded "B" but
shown as 80.0.

Rounding is half-away-from-zero applied to the shortest decimal form of the
float (``str(value)``), so 2.675 becomes 2.68 rather than the 2.67 that
``round()`` gives on the binary value.
"""

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, NamedTuple, Tuple, Union

SubjectMarks = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]

DEFAULT_GRADE_BANDS = {80.0: "A", 70.0: "B", 60.0: "C", 50.0: "D"}
DEFAULT_GRADE_FALLBACK = "F"

_CENTS = Decimal("0.01")


class Totals(NamedTuple):
    total: float
    average: float
    grade: str


class GradeScale:
    """Threshold table evaluated highest threshold first; first match wins."""

    def __init__(self, bands: Mapping[float, str], fallback: str = DEFAULT_GRADE_FALLBACK):
        self.bands = tuple(
            sorted(((float(t), g) for t, g in bands.items()), key=lambda b: b[0], reverse=True)
        )
        self.fallback = fallback

    def grade_for(self, average: float) -> str:
        for threshold, grade in self.bands:
            if average >= threshold:
                return grade
        return self.fallback

    def __repr__(self) -> str:
        return f"GradeScale({dict(self.bands)!r}, fallback={self.fallback!r})"


DEFAULT_GRADE_SCALE = GradeScale(DEFAULT_GRADE_BANDS)


def coerce_mark(value: Any) -> float:
    """Lenient numeric coercion: anything non-numeric or non-finite is 0."""
    if isinstance(value, bool):
        return float(value)
    try:
        mark = float(value)
    except (TypeError, ValueError):
        return 0.0
    return mark if math.isfinite(mark) else 0.0


def round2(value: float) -> float:
    try:
        return float(Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # beyond decimal context precision; no fractional digits left to round
        return float(value)


def _values(subject_marks: SubjectMarks) -> list[float]:
    items = subject_marks.values() if isinstance(subject_marks, Mapping) else (m for _, m in subject_marks)
    return [coerce_mark(m) for m in items]


def compute_totals(subject_marks: SubjectMarks, scale: GradeScale = DEFAULT_GRADE_SCALE) -> Totals:
    marks = _values(subject_marks)
    total = sum(marks)
    average = total / len(marks) if marks else 0.0
    grade = scale.grade_for(average)
    return Totals(total=round2(total), average=round2(average), grade=grade)
