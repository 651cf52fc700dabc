from fastapi.testclient import TestClient

from helpers import ADMIN, PARENT, STUDENT, TEACHER, bearer
from schoolmarks.core.deps import get_report_service
from schoolmarks.core.errors import StorageError
from schoolmarks.core.security import get_password_hash
from schoolmarks.main import app
from schoolmarks.services.access import ReportService
from schoolmarks.services.marks_store import MarkRecordStore, ParentLinkStore
from schoolmarks.services.storage import MemoryBackend

EXAMPLE = {
    "student_identifier": "42",
    "term": "Term 1",
    "year": 2024,
    "subjects": [{"subject": "Math", "mark": 85}, {"subject": "English", "mark": 62}],
}


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_missing_token_rejected(client):
    r = client.get("/api/student/reports")
    assert r.status_code in (401, 403)


def test_unknown_token_rejected(client):
    r = client.get("/api/student/reports", headers=bearer("ghost@school.test"))
    assert r.status_code == 401


def test_login_and_me(client):
    r = client.post("/api/auth/login", json={"email": TEACHER, "password": "anything"})
    assert r.status_code == 200
    token = r.json()["data"]["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    body = me.json()["data"]
    assert body["user_id"] == "7"
    assert body["roles"] == ["teacher"]
    assert body["sections"] == ["teacher"]


def test_login_checks_password_hash(client, directory):
    directory.add_user({
        "id": "8",
        "email": "locked@school.test",
        "name": "Locked Teacher",
        "role": "teacher",
        "password_hash": get_password_hash("s3cret"),
    })
    bad = client.post("/api/auth/login", json={"email": "locked@school.test", "password": "nope"})
    assert bad.status_code == 401
    good = client.post("/api/auth/login", json={"email": "locked@school.test", "password": "s3cret"})
    assert good.status_code == 200


def test_login_unknown_email(client):
    r = client.post("/api/auth/login", json={"email": "nobody@school.test", "password": "x"})
    assert r.status_code == 401


def test_teacher_submit_then_student_views(client):
    r = client.post("/api/teacher/marks", json=EXAMPLE, headers=bearer(TEACHER))
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["total"] == 147.0
    assert body["data"]["average"] == 73.5
    assert body["data"]["grade"] == "B"
    assert body["message"] == "Marks uploaded successfully. Total: 147.0 Average: 73.5 Grade: B"

    r = client.get("/api/student/reports", headers=bearer(STUDENT))
    records = r.json()["data"]
    assert len(records) == 1
    assert records[0]["subject_marks"] == {"Math": 85.0, "English": 62.0}
    assert list(records[0]["subject_marks"]) == ["Math", "English"]
    assert records[0]["teacher_id"] == "7"


def test_student_with_no_reports(client):
    r = client.get("/api/student/reports", headers=bearer(STUDENT))
    assert r.status_code == 200
    assert r.json()["data"] == []
    assert r.json()["message"] == "No reports found for you yet."


def test_student_cannot_submit(client):
    r = client.post("/api/teacher/marks", json=EXAMPLE, headers=bearer(STUDENT))
    assert r.status_code == 403
    body = r.json()
    assert body["success"] is False
    assert body["data"]["error"] == "permission_denied"


def test_submit_with_only_blank_subjects(client):
    payload = {**EXAMPLE, "subjects": [{"subject": " ", "mark": 80}]}
    r = client.post("/api/teacher/marks", json=payload, headers=bearer(TEACHER))
    assert r.status_code == 400
    assert r.json()["data"]["error"] == "empty_marks"
    assert r.json()["message"] == "No marks supplied."


def test_submit_for_unknown_student(client):
    payload = {**EXAMPLE, "student_identifier": "nobody@school.test"}
    r = client.post("/api/teacher/marks", json=payload, headers=bearer(TEACHER))
    assert r.status_code == 400
    assert r.json()["data"]["error"] == "unknown_student"


def test_submit_overflowing_marks_stores_nothing(client, store):
    payload = {**EXAMPLE, "subjects": [{"subject": "Math", "mark": 1e308}, {"subject": "Art", "mark": 1e308}]}
    r = client.post("/api/teacher/marks", json=payload, headers=bearer(TEACHER))
    assert r.status_code == 400
    assert r.json()["data"]["error"] == "marks_out_of_range"
    assert store.list_all() == []

    r = client.get("/api/student/reports", headers=bearer(STUDENT))
    assert r.status_code == 200
    assert r.json()["data"] == []


def test_preview_does_not_store(client, store):
    r = client.post(
        "/api/teacher/marks/preview",
        json={"subjects": [{"subject": "Physics", "mark": "79.995"}]},
        headers=bearer(TEACHER),
    )
    assert r.json()["data"] == {"total": 80.0, "average": 80.0, "grade": "B"}
    assert store.list_all() == []


def test_parent_flow(client):
    client.post("/api/teacher/marks", json=EXAMPLE, headers=bearer(TEACHER))

    r = client.get("/api/parent/reports", headers=bearer(PARENT))
    assert r.json()["data"] == []

    r = client.put("/api/admin/parent-links/90", json={"child_ids": "42, 999"}, headers=bearer(ADMIN))
    assert r.status_code == 200
    assert r.json()["data"]["child_ids"] == ["42", "999"]
    assert r.json()["data"]["display_names"] == {"42": "Sam Student", "999": "ID 999"}

    r = client.get("/api/parent/reports", headers=bearer(PARENT))
    children = r.json()["data"]
    assert [c["child_id"] for c in children] == ["42"]
    assert children[0]["records"][0]["grade"] == "B"


def test_student_denied_parent_view(client):
    r = client.get("/api/parent/reports", headers=bearer(STUDENT))
    assert r.status_code == 403
    assert r.json()["data"]["error"] == "permission_denied"


def test_admin_reports(client):
    client.post("/api/teacher/marks", json=EXAMPLE, headers=bearer(TEACHER))

    r = client.get("/api/admin/reports", headers=bearer(ADMIN))
    rows = r.json()["data"]
    assert rows[0]["student_name"] == "Sam Student"
    assert rows[0]["record"]["total"] == 147.0

    r = client.get("/api/admin/reports", headers=bearer(TEACHER))
    assert r.status_code == 403


def test_admin_parent_links_unknown_parent(client):
    r = client.get("/api/admin/parent-links/404", headers=bearer(ADMIN))
    assert r.status_code == 404
    assert r.json()["data"]["error"] == "not_found"


def test_admin_parent_links_list_form(client):
    r = client.put("/api/admin/parent-links/90", json={"child_ids": [42, "43"]}, headers=bearer(ADMIN))
    assert r.json()["data"]["child_ids"] == ["42", "43"]
    r = client.get("/api/admin/parent-links/parent@school.test", headers=bearer(ADMIN))
    assert r.json()["data"]["parent_id"] == "90"
    assert r.json()["data"]["child_ids"] == ["42", "43"]


def test_dashboard_sections(client):
    r = client.get("/api/dashboard", headers=bearer(ADMIN))
    data = r.json()["data"]
    assert data["welcome"] == "Welcome, Site Admin"
    assert [s["name"] for s in data["sections"]] == ["teacher", "admin"]


class BrokenBackend(MemoryBackend):
    def append_record(self, row):
        raise StorageError("Storage insert failed", context={"action": "insert"})


def test_storage_failure_maps_to_503(directory):
    backend = BrokenBackend()
    service = ReportService(MarkRecordStore(backend, directory=directory), ParentLinkStore(backend), directory)
    app.dependency_overrides[get_report_service] = lambda: service
    try:
        with TestClient(app) as c:
            r = c.post("/api/teacher/marks", json=EXAMPLE, headers=bearer(TEACHER))
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 503
    assert r.json()["data"] == {"error": "storage_error", "action": "insert"}
