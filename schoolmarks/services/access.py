"""
Access-scoped queries — who may submit and who may see which records.

``AccessPolicy`` answers capability questions from a caller's role set using
configurable role-equivalent spellings. ``ReportService`` pairs every use
case with one of those checks: a caller that fails the check gets
``PermissionDenied`` and never any records, an authorized caller with nothing
to see gets an empty result.
"""

from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from schoolmarks.core.app_logger import get_logger
from schoolmarks.core.errors import NotFound, PermissionDenied, ValidationError
from schoolmarks.schemas.marks import AdminReportRow, ChildReports, MarkRecord
from schoolmarks.services.grading import SubjectMarks, Totals
from schoolmarks.services.marks_store import (
    MarkRecordStore,
    ParentLinkStore,
    checked_totals,
    clean_subject_marks,
)

log = get_logger("access")

Roles = Iterable[str]

DEFAULT_TEACHER_ROLES = ("teacher", "administrator", "um_teacher")
DEFAULT_STUDENT_ROLES = ("student", "administrator", "um_student")
DEFAULT_PARENT_ROLES = ("parent", "administrator", "um_parent")
DEFAULT_ADMIN_ROLES = ("administrator", "manage_options")


class AccessPolicy:
    def __init__(
        self,
        teacher_roles: Roles = DEFAULT_TEACHER_ROLES,
        student_roles: Roles = DEFAULT_STUDENT_ROLES,
        parent_roles: Roles = DEFAULT_PARENT_ROLES,
        admin_roles: Roles = DEFAULT_ADMIN_ROLES,
    ):
        self.teacher_roles = frozenset(teacher_roles)
        self.student_roles = frozenset(student_roles)
        self.parent_roles = frozenset(parent_roles)
        self.admin_roles = frozenset(admin_roles)

    @classmethod
    def from_settings(cls, settings) -> "AccessPolicy":
        return cls(
            teacher_roles=settings.TEACHER_ROLES,
            student_roles=settings.STUDENT_ROLES,
            parent_roles=settings.PARENT_ROLES,
            admin_roles=settings.ADMIN_ROLES,
        )

    def teacher_can_submit(self, roles: Roles) -> bool:
        return not self.teacher_roles.isdisjoint(roles)

    def student_can_view_own(self, roles: Roles) -> bool:
        return not self.student_roles.isdisjoint(roles)

    def parent_can_view_children(self, roles: Roles) -> bool:
        return not self.parent_roles.isdisjoint(roles)

    def admin_can_view_all(self, roles: Roles) -> bool:
        return not self.admin_roles.isdisjoint(roles)

    def dashboard_sections(self, roles: Roles) -> List[str]:
        # Admins get teacher tools and the admin section, not the student/parent pages
        roles = frozenset(roles)
        sections = []
        if self.teacher_can_submit(roles):
            sections.append("teacher")
        if not (self.student_roles - self.admin_roles).isdisjoint(roles):
            sections.append("student")
        if not (self.parent_roles - self.admin_roles).isdisjoint(roles):
            sections.append("parent")
        if self.admin_can_view_all(roles):
            sections.append("admin")
        return sections


def parse_child_ids(child_ids: Union[str, Sequence[Any]]) -> Tuple[str, ...]:
    """Accept a list or "23, 45,56"; drop blanks and repeats, keep order."""
    raw = child_ids.split(",") if isinstance(child_ids, str) else child_ids
    seen: dict[str, None] = {}
    for item in raw:
        text = str(item).strip() if item is not None else ""
        if text and text != "0":
            seen.setdefault(text, None)
    return tuple(seen)


class ReportService:
    def __init__(
        self,
        store: MarkRecordStore,
        links: ParentLinkStore,
        directory,
        policy: Optional[AccessPolicy] = None,
    ):
        self.store = store
        self.links = links
        self.directory = directory
        self.policy = policy or AccessPolicy()

    @staticmethod
    def _deny(message: str, caller_id: Optional[str], capability: str):
        log.warning("Denied %s for caller %s", capability, caller_id)
        raise PermissionDenied(message, context={"capability": capability})

    # ---- Teacher ----
    def submit_marks(
        self,
        caller_id: str,
        roles: Roles,
        student_identifier: str,
        term: str,
        year: int,
        subject_marks: SubjectMarks,
    ) -> MarkRecord:
        if not self.policy.teacher_can_submit(roles):
            self._deny("You do not have permission to upload marks.", caller_id, "submit_marks")
        return self.store.submit(student_identifier, caller_id, term, year, subject_marks)

    def preview_totals(self, roles: Roles, subject_marks: SubjectMarks) -> Totals:
        if not self.policy.teacher_can_submit(roles):
            self._deny("You do not have permission to upload marks.", None, "preview_totals")
        return checked_totals(clean_subject_marks(subject_marks), self.store.scale)

    # ---- Student ----
    def own_reports(self, caller_id: str, roles: Roles) -> List[MarkRecord]:
        if not self.policy.student_can_view_own(roles):
            self._deny("You do not have permission to view student reports.", caller_id, "view_own")
        return self.store.list_by_student(caller_id)

    # ---- Parent ----
    def resolve_children_of(self, parent_id: str) -> Tuple[str, ...]:
        return self.links.get_children(parent_id)

    def children_reports(self, caller_id: str, roles: Roles) -> List[ChildReports]:
        if not self.policy.parent_can_view_children(roles):
            self._deny("You do not have permission to view parent reports.", caller_id, "view_children")

        reports = []
        for child_id in self.resolve_children_of(caller_id):
            name = self.directory.display_name(child_id)
            if name is None:
                # linked account no longer exists
                continue
            reports.append(ChildReports(
                child_id=child_id,
                display_name=name,
                records=self.store.list_by_student(child_id),
            ))
        return reports

    # ---- Admin ----
    def all_reports(self, roles: Roles) -> List[AdminReportRow]:
        if not self.policy.admin_can_view_all(roles):
            self._deny("Only site administrators can view all reports.", None, "view_all")

        names: dict[str, str] = {}
        rows = []
        for record in self.store.list_all():
            sid = record.student_id
            if sid not in names:
                names[sid] = self.directory.display_name(sid) or f"ID {sid}"
            rows.append(AdminReportRow(student_name=names[sid], record=record))
        return rows

    def _resolve_parent(self, parent_identifier: str) -> str:
        parent_id = self.directory.resolve_identity(str(parent_identifier))
        if not parent_id:
            raise NotFound("Parent account not found.", context={"parent": str(parent_identifier)})
        return parent_id

    def parent_links(self, roles: Roles, parent_identifier: str) -> Tuple[str, Tuple[str, ...]]:
        if not self.policy.admin_can_view_all(roles):
            self._deny("Only site administrators can manage parent links.", None, "manage_links")
        parent_id = self._resolve_parent(parent_identifier)
        return parent_id, self.links.get_children(parent_id)

    def link_children(
        self,
        roles: Roles,
        parent_identifier: str,
        child_ids: Union[str, Sequence[Any]],
    ) -> Tuple[str, Tuple[str, ...]]:
        if not self.policy.admin_can_view_all(roles):
            self._deny("Only site administrators can manage parent links.", None, "manage_links")
        parent_id = self._resolve_parent(parent_identifier)
        children = parse_child_ids(child_ids)
        if not children:
            raise ValidationError("At least one child id is required.", code="empty_children")
        return parent_id, self.links.set_children(parent_id, children)

    # ---- Dashboard ----
    def dashboard(self, roles: Roles) -> List[str]:
        return self.policy.dashboard_sections(roles)
