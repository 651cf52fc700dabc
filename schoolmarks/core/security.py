"""
Security module — Firebase JWT verification + Mock auth.

Auth Flow:
1. Frontend sends a Bearer token
2. Mock mode: token is "mock-<email or user id>", resolved through the directory
3. Firebase mode: token is verified with the Firebase Admin SDK and the user
   is looked up by the token's email
4. Backend injects: user_id, email, name, roles

Only users present (and active) in the directory can authenticate. Role
checks happen in the report service, not here.
"""

import os
import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from schoolmarks.core.app_logger import get_logger
from schoolmarks.core.config import settings
from schoolmarks.core.deps import get_directory

log = get_logger("security")

security_scheme = HTTPBearer()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # malformed stored hash
        return False


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def user_payload(user: dict) -> dict:
    return {
        "user_id": user["id"],
        "email": user["email"],
        "name": user["name"],
        "roles": sorted(user["roles"]),
    }


# ---------------------------------------------------------------------------
# Firebase initialization (lazy)
# ---------------------------------------------------------------------------
_firebase_app = None


def _init_firebase():
    global _firebase_app
    if _firebase_app is not None:
        return
    import firebase_admin
    from firebase_admin import credentials as fb_credentials

    cred_path = settings.FIREBASE_CREDENTIALS_PATH
    if os.path.exists(cred_path):
        cred = fb_credentials.Certificate(cred_path)
        _firebase_app = firebase_admin.initialize_app(cred)
    else:
        # Try default credentials
        _firebase_app = firebase_admin.initialize_app()


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
    directory=Depends(get_directory),
) -> dict:
    """Validate the Bearer token and return the caller as a dict."""
    token = credentials.credentials

    if settings.AUTH_MODE == "mock":
        return _mock_auth(token, directory)

    return _firebase_auth(token, directory)


def _mock_auth(token: str, directory) -> dict:
    if token.startswith("mock-"):
        identity = directory.resolve_identity(token[5:])
        if identity:
            return user_payload(directory.get_user(identity))

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token. Only registered school users can login.",
    )


def _firebase_auth(token: str, directory) -> dict:
    _init_firebase()
    from firebase_admin import auth as fb_auth

    try:
        decoded = fb_auth.verify_id_token(token)
    except (ValueError, fb_auth.InvalidIdTokenError, fb_auth.ExpiredIdTokenError) as e:
        log.info("Rejected Firebase token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired Firebase token",
        )

    email = decoded.get("email", "")
    user = directory.find_by_email(email) if email else None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not registered with this school. Contact the site admin.",
        )
    return user_payload(user)
