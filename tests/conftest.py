# tests/conftest.py
import os

# Settings are read at import time; pin the local modes before the app loads
os.environ.setdefault("AUTH_MODE", "mock")
os.environ.setdefault("STORAGE_MODE", "memory")
os.environ.setdefault("SYNC_WEBHOOK_URL", "")

import pytest
from fastapi.testclient import TestClient

from schoolmarks.core.deps import get_directory, get_report_service
from schoolmarks.core.directory import MOCK_USERS, MemoryDirectory
from schoolmarks.main import app
from schoolmarks.services.access import AccessPolicy, ReportService
from schoolmarks.services.marks_store import MarkRecordStore, ParentLinkStore
from schoolmarks.services.storage import MemoryBackend


@pytest.fixture
def directory():
    return MemoryDirectory(MOCK_USERS)


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend, directory):
    return MarkRecordStore(backend, directory=directory)


@pytest.fixture
def links(backend):
    return ParentLinkStore(backend)


@pytest.fixture
def service(store, links, directory):
    return ReportService(store, links, directory, AccessPolicy())


@pytest.fixture
def client(service, directory):
    app.dependency_overrides[get_report_service] = lambda: service
    app.dependency_overrides[get_directory] = lambda: directory
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
