"""
Auth router — Login (mock mode) and current user profile.

Rules:
- Only users present in the school directory can login
- Mock mode: returns a mock-{email} token; password checked against
  password_hash when the account has one
- Firebase mode: client signs in with the Firebase SDK, then calls /api/auth/me
"""

from fastapi import APIRouter, Depends, HTTPException, status
from schoolmarks.core.app_logger import get_logger
from schoolmarks.core.config import settings
from schoolmarks.core.deps import get_directory, get_report_service
from schoolmarks.core.security import get_current_user, user_payload, verify_password
from schoolmarks.schemas.auth import UserLogin
from schoolmarks.services.access import ReportService
from schoolmarks.utils.response import success_response

log = get_logger("auth")

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/login")
async def login(body: UserLogin, directory=Depends(get_directory)):
    if settings.AUTH_MODE != "mock":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Use Firebase SDK for login, then call /api/auth/me with JWT.",
        )

    user = directory.find_by_email(body.email)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No registered account found for this email. Contact the school admin.",
        )

    hashed_pw = user.get("password_hash")
    if hashed_pw and not verify_password(body.password, hashed_pw):
        log.info("Failed login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    return success_response(
        data={"token": f"mock-{user['email']}", "user": user_payload(user)},
        message="Login successful",
    )


@router.get("/me")
async def me(
    user: dict = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    return success_response(data={**user, "sections": service.dashboard(user["roles"])})
