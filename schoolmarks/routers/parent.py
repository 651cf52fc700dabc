"""
Parent router — View report cards of every child linked to this account.
"""

from fastapi import APIRouter, Depends
from schoolmarks.core.security import get_current_user
from schoolmarks.core.deps import get_report_service
from schoolmarks.services.access import ReportService
from schoolmarks.utils.response import success_response

router = APIRouter(prefix="/api/parent", tags=["Parent"])


@router.get("/reports")
async def get_children_reports(
    user: dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    children = service.children_reports(user["user_id"], user["roles"])
    if not children:
        return success_response(
            data=[],
            message="No children connected to your account yet. Contact the school admin to link.",
        )
    return success_response(data=children)
