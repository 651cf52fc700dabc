"""
User directory — identity resolution and role lookup.

Identities are strings. A free-text identifier resolves when it is a known
user id or, when it contains "@", a known email. Roles come from a ``roles``
array when the row has one, otherwise from the single ``role`` column.
"""

from typing import Iterable, Optional, Protocol

import httpx
from postgrest.exceptions import APIError

from schoolmarks.core.app_logger import get_logger
from schoolmarks.core.errors import StorageError

log = get_logger("directory")


# ---------------------------------------------------------------------------
# Mock users (for local runs and tests without Supabase)
# ---------------------------------------------------------------------------
MOCK_USERS = [
    {"id": "1", "email": "admin@school.test", "name": "Site Admin", "roles": ["administrator"]},
    {"id": "7", "email": "teacher@school.test", "name": "Mr Teacher", "roles": ["teacher"]},
    {"id": "42", "email": "student@school.test", "name": "Sam Student", "roles": ["student"]},
    {"id": "43", "email": "sibling@school.test", "name": "Sia Student", "roles": ["um_student"]},
    {"id": "90", "email": "parent@school.test", "name": "Pat Parent", "roles": ["parent"]},
]


class Directory(Protocol):
    def get_user(self, identity: str) -> Optional[dict]: ...

    def find_by_email(self, email: str) -> Optional[dict]: ...

    def resolve_identity(self, text: str) -> Optional[str]: ...

    def roles_of(self, identity: str) -> frozenset[str]: ...

    def display_name(self, identity: str) -> Optional[str]: ...


def roles_from_row(row: dict) -> frozenset[str]:
    roles = row.get("roles")
    if roles:
        return frozenset(str(r) for r in roles)
    role = row.get("role")
    return frozenset([role]) if role else frozenset()


def _normalize(row: dict) -> dict:
    return {
        "id": str(row["id"]),
        "email": row.get("email", ""),
        "name": row.get("name") or row.get("display_name") or "",
        "roles": roles_from_row(row),
        "password_hash": row.get("password_hash"),
        "is_active": row.get("is_active", True),
    }


def _like_literal(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class _DirectoryMixin:
    def resolve_identity(self, text: str) -> Optional[str]:
        text = (text or "").strip()
        if not text:
            return None
        user = self.find_by_email(text) if "@" in text else self.get_user(text)
        return user["id"] if user else None

    def roles_of(self, identity: str) -> frozenset[str]:
        user = self.get_user(identity)
        return user["roles"] if user else frozenset()

    def display_name(self, identity: str) -> Optional[str]:
        user = self.get_user(identity)
        if not user:
            return None
        return user["name"] or user["email"] or user["id"]


class MemoryDirectory(_DirectoryMixin):
    def __init__(self, users: Iterable[dict] = ()):
        self._by_id: dict[str, dict] = {}
        for row in users:
            self.add_user(row)

    def add_user(self, row: dict) -> dict:
        user = _normalize(row)
        self._by_id[user["id"]] = user
        return user

    def get_user(self, identity: str) -> Optional[dict]:
        user = self._by_id.get(str(identity))
        return user if user and user["is_active"] else None

    def find_by_email(self, email: str) -> Optional[dict]:
        email = email.strip().lower()
        for user in self._by_id.values():
            if user["is_active"] and user["email"].lower() == email:
                return user
        return None


class SupabaseDirectory(_DirectoryMixin):
    def __init__(self, client, table: str = "users"):
        self.client = client
        self.table = table

    def _rows(self, query, column: str) -> list:
        try:
            result = query.eq("is_active", True).execute()
        except (APIError, httpx.HTTPError) as e:
            log.error("User lookup by %s failed: %s", column, e)
            raise StorageError("User lookup failed", context={"action": "read"}, cause=e) from e
        return result.data or []

    def get_user(self, identity: str) -> Optional[dict]:
        query = self.client.table(self.table).select("*").eq("id", str(identity)).limit(1)
        rows = self._rows(query, "id")
        return _normalize(rows[0]) if rows else None

    def find_by_email(self, email: str) -> Optional[dict]:
        email = email.strip().lower()
        # ilike with LIKE metacharacters escaped, so only case is ignored
        query = self.client.table(self.table).select("*").ilike("email", _like_literal(email))
        for row in self._rows(query, "email"):
            if (row.get("email") or "").lower() == email:
                return _normalize(row)
        return None
