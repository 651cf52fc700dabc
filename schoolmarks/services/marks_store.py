"""
Mark record store — append-only log of graded submissions.

Records are created whole by ``submit`` and never edited or removed here.
The optional ``sync_hook`` runs after the append succeeds and cannot change
the outcome of the submit.
"""

import math
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from schoolmarks.core.app_logger import get_logger
from schoolmarks.core.errors import ValidationError
from schoolmarks.schemas.marks import MarkRecord
from schoolmarks.services.grading import (
    DEFAULT_GRADE_SCALE,
    GradeScale,
    SubjectMarks,
    Totals,
    coerce_mark,
    compute_totals,
)
from schoolmarks.services.storage import Row, StorageBackend

log = get_logger("marks_store")

SyncHook = Callable[[str], None]


def clean_subject_marks(subject_marks: SubjectMarks) -> dict[str, float]:
    """Trim subject names, drop blank ones and coerce marks.

    A repeated subject keeps its first position and takes the last mark.
    """
    pairs: Iterable[Tuple[Any, Any]] = (
        subject_marks.items() if hasattr(subject_marks, "items") else subject_marks
    )
    cleaned: dict[str, float] = {}
    for subject, mark in pairs:
        name = str(subject if subject is not None else "").strip()
        if not name:
            continue
        cleaned[name] = coerce_mark(mark)
    return cleaned


def checked_totals(marks: SubjectMarks, scale: GradeScale = DEFAULT_GRADE_SCALE) -> Totals:
    """``compute_totals`` that refuses marks whose sum overflows to infinity."""
    totals = compute_totals(marks, scale)
    if not math.isfinite(totals.total):
        raise ValidationError("Marks are too large to total.", code="marks_out_of_range")
    return totals


def _to_record(row: Row) -> MarkRecord:
    return MarkRecord(
        id=row["id"],
        student_id=str(row["student_id"]),
        teacher_id=str(row["teacher_id"]),
        term=row.get("term") or "",
        year=row.get("year") or 0,
        subject_marks={s: float(m) for s, m in row["subject_marks"]},
        total=row["total"],
        average=row["average"],
        grade=row["grade"],
        created_at=row["created_at"],
    )


class MarkRecordStore:
    def __init__(
        self,
        backend: StorageBackend,
        directory=None,
        scale: GradeScale = DEFAULT_GRADE_SCALE,
        sync_hook: Optional[SyncHook] = None,
    ):
        self.backend = backend
        self.directory = directory
        self.scale = scale
        self.sync_hook = sync_hook

    def _resolve_student(self, student_id: str) -> str:
        text = str(student_id).strip()
        resolved = self.directory.resolve_identity(text) if self.directory is not None else text
        if not resolved:
            raise ValidationError(
                "Invalid student selected. Use user ID or email of a registered student.",
                code="unknown_student",
                context={"student": text},
            )
        return resolved

    def submit(
        self,
        student_id: str,
        teacher_id: str,
        term: str,
        year: int,
        subject_marks: SubjectMarks,
    ) -> MarkRecord:
        student = self._resolve_student(student_id)

        marks = clean_subject_marks(subject_marks)
        if not marks:
            raise ValidationError("No marks supplied.", code="empty_marks")

        totals = checked_totals(marks, self.scale)

        row = self.backend.append_record({
            "student_id": student,
            "teacher_id": str(teacher_id),
            "term": (term or "").strip(),
            "year": int(year),
            "subject_marks": list(marks.items()),
            "total": totals.total,
            "average": totals.average,
            "grade": totals.grade,
        })
        record = _to_record(row)
        log.info(
            "Stored marks #%s for student %s (total=%s average=%s grade=%s)",
            record.id, student, record.total, record.average, record.grade,
        )

        if self.sync_hook is not None:
            try:
                self.sync_hook(student)
            except Exception:
                log.exception("Sync hook failed for student %s", student)

        return record

    def list_by_student(self, student_id: str) -> List[MarkRecord]:
        return [_to_record(r) for r in self.backend.records_for_student(str(student_id))]

    def list_all(self) -> List[MarkRecord]:
        return [_to_record(r) for r in self.backend.all_records()]


class ParentLinkStore:
    def __init__(self, backend: StorageBackend):
        self.backend = backend

    def get_children(self, parent_id: str) -> Tuple[str, ...]:
        return tuple(self.backend.get_links(str(parent_id)))

    def set_children(self, parent_id: str, child_ids: Sequence[str]) -> Tuple[str, ...]:
        links = self.backend.put_links(str(parent_id), tuple(child_ids))
        log.info("Linked parent %s to children %s", parent_id, ", ".join(links))
        return links
