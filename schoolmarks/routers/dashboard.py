"""
Dashboard router — Role-specific quick links.
"""

from fastapi import APIRouter, Depends
from schoolmarks.core.security import get_current_user
from schoolmarks.core.deps import get_report_service
from schoolmarks.services.access import ReportService
from schoolmarks.utils.response import success_response

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])

SECTION_LINKS = {
    "teacher": [
        {"label": "Upload Marks", "method": "POST", "path": "/api/teacher/marks"},
        {"label": "Preview Totals", "method": "POST", "path": "/api/teacher/marks/preview"},
    ],
    "student": [
        {"label": "View Reports", "method": "GET", "path": "/api/student/reports"},
    ],
    "parent": [
        {"label": "View Child Reports", "method": "GET", "path": "/api/parent/reports"},
    ],
    "admin": [
        {"label": "All Uploaded Marks", "method": "GET", "path": "/api/admin/reports"},
        {"label": "Link Parent to Children", "method": "PUT", "path": "/api/admin/parent-links/{parent}"},
    ],
}


@router.get("")
async def dashboard(
    user: dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    sections = service.dashboard(user["roles"])
    return success_response(data={
        "welcome": f"Welcome, {user['name'] or user['email']}",
        "sections": [{"name": s, "links": SECTION_LINKS[s]} for s in sections],
    })
