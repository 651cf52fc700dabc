"""
Request logging middleware — one line per request with status and timing.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from schoolmarks.core.app_logger import get_logger

log = get_logger("http")

# Paths too noisy to log
QUIET_PATHS = {"/api/health", "/docs", "/redoc", "/openapi.json"}


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path in QUIET_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        log.info("%s %s -> %s (%.1f ms)", request.method, path, response.status_code, elapsed_ms)
        return response
