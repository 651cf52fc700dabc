"""
Error taxonomy for the marks service.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer answers with. Validation and permission errors are returned to the
caller as-is; storage errors wrap the backend exception in ``cause``.
"""

from typing import Any, Dict, Optional


class SchoolMarksError(Exception):
    status_code: int = 500
    default_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.context = dict(context or {})
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, **self.context}


class ValidationError(SchoolMarksError):
    """Malformed payload or an identifier that does not resolve."""

    status_code = 400
    default_code = "validation_error"


class PermissionDenied(SchoolMarksError):
    """Caller's roles do not grant the requested capability."""

    status_code = 403
    default_code = "permission_denied"


class NotFound(SchoolMarksError):
    """Requested identity or record set does not exist."""

    status_code = 404
    default_code = "not_found"


class StorageError(SchoolMarksError):
    """Append or read failure in the persistence backend."""

    status_code = 503
    default_code = "storage_error"
