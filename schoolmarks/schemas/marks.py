"""
Pydantic schemas for mark records, submissions and parent links.
"""

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from typing import Any, Dict, List, Mapping, Optional, Union
from datetime import datetime
from types import MappingProxyType


# ---- Stored record ----
class MarkRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    student_id: str
    teacher_id: str
    term: str = ""
    year: int = 0
    subject_marks: Mapping[str, float]
    total: float
    average: float
    grade: str
    created_at: datetime

    @field_validator("subject_marks", mode="after")
    @classmethod
    def _read_only_marks(cls, v):
        return MappingProxyType(dict(v))

    @field_serializer("subject_marks")
    def _dump_marks(self, v):
        return dict(v)


# ---- Submission ----
class SubjectMarkEntry(BaseModel):
    subject: str = ""
    # Lenient: anything non-numeric counts as 0
    mark: Any = None


class MarksSubmit(BaseModel):
    student_identifier: str  # user id or email
    term: str = ""
    year: int
    subjects: List[SubjectMarkEntry]

    def subject_pairs(self) -> list[tuple[str, Any]]:
        return [(entry.subject, entry.mark) for entry in self.subjects]


class MarksPreview(BaseModel):
    subjects: List[SubjectMarkEntry]

    def subject_pairs(self) -> list[tuple[str, Any]]:
        return [(entry.subject, entry.mark) for entry in self.subjects]


class TotalsResponse(BaseModel):
    total: float
    average: float
    grade: str


# ---- Views ----
class ChildReports(BaseModel):
    child_id: str
    display_name: str
    records: List[MarkRecord]


class AdminReportRow(BaseModel):
    student_name: str
    record: MarkRecord


# ---- Parent links ----
class ParentLinkUpdate(BaseModel):
    # List of ids, or the comma separated form "23,45,56"
    child_ids: Union[List[Union[str, int]], str] = Field(default_factory=list)


class ParentLinkResponse(BaseModel):
    parent_id: str
    child_ids: List[str]
    display_names: Optional[Dict[str, str]] = None
