"""
Student router — View own report cards, newest first.
"""

from fastapi import APIRouter, Depends
from schoolmarks.core.security import get_current_user
from schoolmarks.core.deps import get_report_service
from schoolmarks.services.access import ReportService
from schoolmarks.utils.response import success_response

router = APIRouter(prefix="/api/student", tags=["Student"])


@router.get("/reports")
async def get_my_reports(
    user: dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    records = service.own_reports(user["user_id"], user["roles"])
    message = "Success" if records else "No reports found for you yet."
    return success_response(data=records, message=message)
