"""
Process-wide service wiring.

The backend, directory, stores and report service are built once on first
use and handed to routes through ``Depends``. Tests swap them with
``app.dependency_overrides`` or ``reset_services()``.
"""

from functools import lru_cache

from schoolmarks.core.app_logger import get_logger
from schoolmarks.core.config import settings
from schoolmarks.core.directory import MOCK_USERS, MemoryDirectory, SupabaseDirectory
from schoolmarks.core.sync import build_sync_hook
from schoolmarks.services.access import AccessPolicy, ReportService
from schoolmarks.services.grading import GradeScale
from schoolmarks.services.marks_store import MarkRecordStore, ParentLinkStore
from schoolmarks.services.storage import MemoryBackend, SupabaseBackend

log = get_logger("deps")


@lru_cache(maxsize=1)
def get_backend():
    if settings.STORAGE_MODE == "supabase":
        from schoolmarks.core.database import get_supabase

        log.info("Using Supabase storage (%s, %s)", settings.MARKS_TABLE, settings.PARENT_LINKS_TABLE)
        return SupabaseBackend(get_supabase(), settings.MARKS_TABLE, settings.PARENT_LINKS_TABLE)
    log.info("Using in-memory storage")
    return MemoryBackend()


@lru_cache(maxsize=1)
def get_directory():
    if settings.STORAGE_MODE == "supabase":
        from schoolmarks.core.database import get_supabase

        return SupabaseDirectory(get_supabase(), settings.USERS_TABLE)
    return MemoryDirectory(MOCK_USERS)


@lru_cache(maxsize=1)
def get_report_service() -> ReportService:
    backend = get_backend()
    directory = get_directory()
    store = MarkRecordStore(
        backend,
        directory=directory,
        scale=GradeScale(settings.GRADE_BANDS, settings.GRADE_FALLBACK),
        sync_hook=build_sync_hook(),
    )
    return ReportService(
        store,
        ParentLinkStore(backend),
        directory,
        AccessPolicy.from_settings(settings),
    )


def reset_services() -> None:
    get_report_service.cache_clear()
    get_directory.cache_clear()
    get_backend.cache_clear()
