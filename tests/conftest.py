from __future__ import annotations

import asyncio
import itertools
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import pytest

from core import store
from core.errors import AlreadyExists, InvalidArgument
from core.ids import require_id

STORE_FUNCTIONS = ("get", "find_one", "insert", "update_where", "delete_where", "count", "total", "query")

COLUMN_DEFAULTS: dict[str, dict[str, Any]] = {
    "user": {"full_name": "", "avatar": None},
    "video": {"duration": 0, "views": 0, "is_published": True},
    "playlist": {"video_ids": []},
}


def _copy(row: dict[str, Any]) -> dict[str, Any]:
    return {k: list(v) if isinstance(v, list) else v for k, v in row.items()}


def _matches(row: dict[str, Any], conds: tuple[store.Condition, ...]) -> bool:
    for cond in conds:
        if isinstance(cond, store.Eq):
            if row.get(cond.field) != cond.value:
                return False
        elif isinstance(cond, store.In):
            if row.get(cond.field) not in cond.values:
                return False
        elif isinstance(cond, store.Contains):
            text = cond.text.lower()
            if not any(text in str(row.get(field) or "").lower() for field in cond.fields):
                return False
    return True


class InMemoryStore:
    """
    Stand-in for the SQL store with the same validation, uniqueness and
    CHECK rules. Every call yields once before touching data, so coroutines
    racing on the same key interleave the way separate connections would.
    """

    def __init__(self) -> None:
        self.tables: dict[str, dict[Any, dict[str, Any]]] = {name: {} for name in store.ENTITIES}
        self.calls: list[tuple[str, str]] = []
        self._ticks = itertools.count()
        self._epoch = datetime(2026, 1, 1, tzinfo=UTC)

    def _now(self) -> datetime:
        return self._epoch + timedelta(seconds=next(self._ticks))

    def _matching(self, name: str, filters) -> list[dict[str, Any]]:
        ent = store.entity(name)
        conds = store.normalize_filters(ent, filters)
        return [row for row in self.tables[name].values() if _matches(row, conds)]

    def seed(self, name: str, **values: Any) -> dict[str, Any]:
        row = self._insert_now(name, values, on_conflict_ignore=False)
        assert row is not None
        return row

    def rows(self, name: str) -> list[dict[str, Any]]:
        return [_copy(row) for row in self.tables[name].values()]

    def _insert_now(self, name: str, values: dict[str, Any], *, on_conflict_ignore: bool) -> dict[str, Any] | None:
        ent = store.entity(name)
        row_values = store.normalize_values(ent, values)
        now = self._now()
        row: dict[str, Any] = {column: None for column in ent.columns}
        row.update(_copy(COLUMN_DEFAULTS.get(name, {})))
        row.update(row_values)
        if row["id"] is None:
            row["id"] = uuid4()
        row["created_at"] = now
        if "updated_at" in ent.columns:
            row["updated_at"] = now

        if ent.distinct is not None:
            left, right = ent.distinct
            if row[left] == row[right]:
                raise InvalidArgument(f"{ent.name} violates check constraint.")
        for key in ent.unique:
            if any(all(other[k] == row[k] for k in key) for other in self.tables[name].values()):
                if on_conflict_ignore:
                    return None
                raise AlreadyExists(f"{ent.name} already exists.")

        self.tables[name][row["id"]] = row
        return _copy(row)

    async def get(self, name: str, record_id: Any) -> dict[str, Any] | None:
        ent = store.entity(name)
        rid = require_id(record_id, f"{ent.name} id")
        self.calls.append(("get", name))
        await asyncio.sleep(0)
        row = self.tables[name].get(rid)
        return _copy(row) if row is not None else None

    async def find_one(self, name: str, filters) -> dict[str, Any] | None:
        self.calls.append(("find_one", name))
        await asyncio.sleep(0)
        rows = self._matching(name, filters)
        return _copy(rows[0]) if rows else None

    async def insert(self, name: str, values: dict[str, Any], *, on_conflict_ignore: bool = False):
        self.calls.append(("insert", name))
        await asyncio.sleep(0)
        return self._insert_now(name, values, on_conflict_ignore=on_conflict_ignore)

    async def update_where(self, name: str, filters, patch: dict[str, Any]):
        ent = store.entity(name)
        if not store.normalize_filters(ent, filters):
            raise ValueError("Refusing unscoped update.")
        changes = store.normalize_values(ent, patch, for_update=True)
        self.calls.append(("update_where", name))
        await asyncio.sleep(0)
        rows = self._matching(name, filters)
        if not rows:
            return None
        row = rows[0]
        for field, value in changes.items():
            if isinstance(value, store.AddToSet):
                if value.value not in row[field]:
                    row[field] = [*row[field], value.value]
            elif isinstance(value, store.Pull):
                row[field] = [v for v in row[field] if v != value.value]
            else:
                row[field] = value
        if "updated_at" in ent.columns:
            row["updated_at"] = self._now()
        return _copy(row)

    async def delete_where(self, name: str, filters) -> bool:
        ent = store.entity(name)
        if not store.normalize_filters(ent, filters):
            raise ValueError("Refusing unscoped delete.")
        self.calls.append(("delete_where", name))
        await asyncio.sleep(0)
        rows = self._matching(name, filters)
        for row in rows:
            del self.tables[name][row["id"]]
        return bool(rows)

    async def count(self, name: str, filters=()) -> int:
        self.calls.append(("count", name))
        await asyncio.sleep(0)
        return len(self._matching(name, filters))

    async def total(self, name: str, field: str, filters=()) -> int:
        self.calls.append(("total", name))
        await asyncio.sleep(0)
        return int(sum(row.get(field) or 0 for row in self._matching(name, filters)))

    async def query(self, name: str, filters=(), *, sort=None, skip=0, limit=None, fields=None):
        ent = store.entity(name)
        columns = store.check_fields(ent, fields)
        self.calls.append(("query", name))
        await asyncio.sleep(0)
        rows = self._matching(name, filters)
        if sort is not None:
            store.check_sort(ent, sort)
            rows.sort(key=lambda r: (r[sort.field], r["id"]), reverse=sort.descending)
        rows = rows[max(0, skip):]
        if limit is not None:
            rows = rows[: max(0, limit)]
        return [{c: _copy(r)[c] for c in columns} for r in rows]


@pytest.fixture
def memory_store(monkeypatch) -> InMemoryStore:
    fake = InMemoryStore()
    for name in STORE_FUNCTIONS:
        monkeypatch.setattr(store, name, getattr(fake, name))
    return fake


@pytest.fixture
def users(memory_store: InMemoryStore) -> dict[str, dict[str, Any]]:
    return {
        handle: memory_store.seed(
            "user",
            username=handle,
            full_name=handle.title(),
            avatar=f"https://cdn.example/{handle}.png",
        )
        for handle in ("alice", "bob", "carol")
    }


@pytest.fixture
def make_video(memory_store: InMemoryStore):
    def _make(owner: dict[str, Any], title: str = "clip", **extra: Any) -> dict[str, Any]:
        values = {
            "title": title,
            "description": extra.pop("description", f"about {title}"),
            "video_file": f"https://cdn.example/{title}.mp4",
            "thumbnail": f"https://cdn.example/{title}.jpg",
            "owner_id": owner["id"],
        }
        values.update(extra)
        return memory_store.seed("video", **values)

    return _make
