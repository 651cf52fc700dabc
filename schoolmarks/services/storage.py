"""
Storage backends for mark records and parent links.

A backend offers two things:

* an append-only record table: ``append_record`` assigns ``id`` and
  ``created_at`` and stores the row in one atomic operation; reads return rows
  newest first.
* a key-value link table: ``put_links`` replaces a parent's children in one
  write, so readers observe either the old or the new complete tuple.

Rows are plain dicts with ``subject_marks`` as an ordered list of
``(subject, mark)`` pairs. ``MemoryBackend`` serves tests and
``STORAGE_MODE=memory``; ``SupabaseBackend`` talks to PostgREST.
"""

import itertools
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import httpx
from dateutil import parser
from postgrest.exceptions import APIError

from schoolmarks.core.app_logger import get_logger
from schoolmarks.core.errors import StorageError

log = get_logger("storage")

Row = Dict[str, Any]


class StorageBackend(Protocol):
    def append_record(self, row: Row) -> Row: ...

    def records_for_student(self, student_id: str) -> List[Row]: ...

    def all_records(self) -> List[Row]: ...

    def get_links(self, parent_id: str) -> Tuple[str, ...]: ...

    def put_links(self, parent_id: str, child_ids: Sequence[str]) -> Tuple[str, ...]: ...


def _newest_first(rows: List[Row]) -> List[Row]:
    return sorted(rows, key=lambda r: (r["created_at"], r["id"]), reverse=True)


# ---------------------------------------------------------------------------
# In-process backend
# ---------------------------------------------------------------------------
class MemoryBackend:
    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._records: List[Row] = []
        self._links: Dict[str, Tuple[str, ...]] = {}
        self._last_created: Optional[datetime] = None

    def _next_timestamp(self) -> datetime:
        # Strictly increasing even when the clock does not advance between appends
        now = datetime.now(timezone.utc)
        if self._last_created is not None and now <= self._last_created:
            now = self._last_created + timedelta(microseconds=1)
        self._last_created = now
        return now

    def append_record(self, row: Row) -> Row:
        with self._lock:
            stored = {
                **row,
                "subject_marks": tuple(tuple(pair) for pair in row["subject_marks"]),
                "id": next(self._ids),
                "created_at": self._next_timestamp(),
            }
            self._records.append(stored)
        return dict(stored)

    def records_for_student(self, student_id: str) -> List[Row]:
        with self._lock:
            rows = [dict(r) for r in self._records if r["student_id"] == student_id]
        return _newest_first(rows)

    def all_records(self) -> List[Row]:
        with self._lock:
            rows = [dict(r) for r in self._records]
        return _newest_first(rows)

    def get_links(self, parent_id: str) -> Tuple[str, ...]:
        return self._links.get(parent_id, ())

    def put_links(self, parent_id: str, child_ids: Sequence[str]) -> Tuple[str, ...]:
        links = tuple(child_ids)
        # single reference swap, readers never see a partial tuple
        self._links[parent_id] = links
        return links


# ---------------------------------------------------------------------------
# Supabase / PostgREST backend
# ---------------------------------------------------------------------------
class SupabaseBackend:
    def __init__(self, client, marks_table: str = "sms_marks", links_table: str = "sms_parent_links"):
        self.client = client
        self.marks_table = marks_table
        self.links_table = links_table

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except (APIError, httpx.HTTPError) as e:
            log.error("Supabase %s failed: %s", action, e)
            raise StorageError(f"Storage {action} failed", context={"action": action}, cause=e) from e

    @staticmethod
    def _to_db(row: Row) -> Row:
        data = dict(row)
        # jsonb objects lose key order, so marks go in as an array
        data["subject_marks"] = [{"subject": s, "mark": m} for s, m in row["subject_marks"]]
        return data

    @staticmethod
    def _from_db(row: Row) -> Row:
        data = dict(row)
        data["subject_marks"] = [(item["subject"], item["mark"]) for item in row.get("subject_marks") or []]
        created = row.get("created_at")
        if isinstance(created, str):
            created = parser.isoparse(created)
        if created is not None:
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
            created = created.astimezone(timezone.utc)
        data["created_at"] = created
        return data

    def append_record(self, row: Row) -> Row:
        result = self._execute(
            self.client.table(self.marks_table).insert(self._to_db(row)),
            "insert",
        )
        if not result.data:
            raise StorageError("Insert returned no row", context={"action": "insert"})
        return self._from_db(result.data[0])

    def records_for_student(self, student_id: str) -> List[Row]:
        result = self._execute(
            self.client.table(self.marks_table)
            .select("*")
            .eq("student_id", student_id)
            .order("created_at", desc=True)
            .order("id", desc=True),
            "read",
        )
        return [self._from_db(r) for r in result.data or []]

    def all_records(self) -> List[Row]:
        result = self._execute(
            self.client.table(self.marks_table)
            .select("*")
            .order("created_at", desc=True)
            .order("id", desc=True),
            "read",
        )
        return [self._from_db(r) for r in result.data or []]

    def get_links(self, parent_id: str) -> Tuple[str, ...]:
        result = self._execute(
            self.client.table(self.links_table)
            .select("child_ids")
            .eq("parent_id", parent_id)
            .limit(1),
            "read",
        )
        if not result.data:
            return ()
        return tuple(str(c) for c in result.data[0].get("child_ids") or [])

    def put_links(self, parent_id: str, child_ids: Sequence[str]) -> Tuple[str, ...]:
        links = tuple(child_ids)
        self._execute(
            self.client.table(self.links_table).upsert(
                {
                    "parent_id": parent_id,
                    "child_ids": list(links),
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                on_conflict="parent_id",
            ),
            "upsert",
        )
        return links
