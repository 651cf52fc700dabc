"""
SchoolMarks — Role-based mark entry and report viewing.
FastAPI entry point.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from schoolmarks.core.app_logger import get_logger
from schoolmarks.core.config import settings
from schoolmarks.core.errors import SchoolMarksError, StorageError
from schoolmarks.core.middleware import RequestLogMiddleware
from schoolmarks.routers import admin, auth, dashboard, parent, student, teacher
from schoolmarks.utils.response import error_from_exception

log = get_logger()

app = FastAPI(
    title=settings.APP_NAME,
    description="Teacher mark upload, student & parent reports, role-aware dashboards",
    version="1.0.0",
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLogMiddleware)


@app.exception_handler(SchoolMarksError)
async def marks_error_handler(request: Request, exc: SchoolMarksError):
    if isinstance(exc, StorageError):
        log.error("%s %s failed: %s (cause: %r)", request.method, request.url.path, exc.message, exc.cause)
    return JSONResponse(status_code=exc.status_code, content=error_from_exception(exc))


# Include routers
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(teacher.router)
app.include_router(student.router)
app.include_router(parent.router)
app.include_router(admin.router)


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "status": "running",
        "auth_mode": settings.AUTH_MODE,
        "storage_mode": settings.STORAGE_MODE,
    }


@app.get("/api/health")
async def health():
    return {"status": "healthy", "auth_mode": settings.AUTH_MODE}
