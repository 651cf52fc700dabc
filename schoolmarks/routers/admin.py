"""
Admin router — All uploaded marks + Parent/child link management.

Site administrators can:
- List every mark record with the student's name
- Read a parent's linked children
- Replace a parent's linked children (list or "23,45,56")
"""

from fastapi import APIRouter, Depends
from schoolmarks.core.security import get_current_user
from schoolmarks.core.deps import get_report_service
from schoolmarks.schemas.marks import ParentLinkResponse, ParentLinkUpdate
from schoolmarks.services.access import ReportService
from schoolmarks.utils.response import success_response

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/reports")
async def list_all_reports(
    user: dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    rows = service.all_reports(user["roles"])
    message = "Success" if rows else "No reports yet."
    return success_response(data=rows, message=message)


def _link_response(service: ReportService, parent_id: str, child_ids) -> ParentLinkResponse:
    names = {cid: service.directory.display_name(cid) or f"ID {cid}" for cid in child_ids}
    return ParentLinkResponse(parent_id=parent_id, child_ids=list(child_ids), display_names=names)


@router.get("/parent-links/{parent}")
async def get_parent_links(
    parent: str,
    user: dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    parent_id, child_ids = service.parent_links(user["roles"], parent)
    return success_response(data=_link_response(service, parent_id, child_ids))


@router.put("/parent-links/{parent}")
async def set_parent_links(
    parent: str,
    body: ParentLinkUpdate,
    user: dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    parent_id, child_ids = service.link_children(user["roles"], parent, body.child_ids)
    return success_response(
        data=_link_response(service, parent_id, child_ids),
        message=f"Linked parent {parent_id} to {len(child_ids)} children",
    )
