"""
Teacher router — Upload a student's marks for a term, preview totals.
"""

from fastapi import APIRouter, Depends
from schoolmarks.core.security import get_current_user
from schoolmarks.core.deps import get_report_service
from schoolmarks.schemas.marks import MarksPreview, MarksSubmit, TotalsResponse
from schoolmarks.services.access import ReportService
from schoolmarks.utils.response import success_response

router = APIRouter(prefix="/api/teacher", tags=["Teacher"])


@router.post("/marks")
async def submit_marks(
    body: MarksSubmit,
    user: dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    record = service.submit_marks(
        caller_id=user["user_id"],
        roles=user["roles"],
        student_identifier=body.student_identifier,
        term=body.term,
        year=body.year,
        subject_marks=body.subject_pairs(),
    )
    return success_response(
        data=record,
        message=(
            f"Marks uploaded successfully. Total: {record.total} "
            f"Average: {record.average} Grade: {record.grade}"
        ),
    )


@router.post("/marks/preview")
async def preview_marks(
    body: MarksPreview,
    user: dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    """Compute total, average and grade without storing anything."""
    totals = service.preview_totals(user["roles"], body.subject_pairs())
    return success_response(data=TotalsResponse(**totals._asdict()))
