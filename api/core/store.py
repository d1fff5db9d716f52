"""
Entity store: keyed persistence for the content graph (raw SQL).

Every entity type is described once in `ENTITIES`. The public functions take an
entity name plus small condition/patch objects, validate them against that
description, compile them to parameterized SQL and run them through `core.db`.

Contract:
- get(name, id)                          -> row | None
- find_one(name, filters)                -> row | None
- insert(name, values)                   -> row  (None on ignored conflict)
- update_where(name, filters, patch)     -> row | None
- delete_where(name, filters)            -> bool
- count(name, filters)                   -> int
- total(name, field, filters)            -> number
- query(name, filters, sort, skip, limit, fields) -> [row, ...]

Each call is a single SQL statement, so each is atomic on its own. No call
spans more than one statement or opens a transaction.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

import asyncpg

from . import db
from .errors import AlreadyExists, InvalidArgument
from .ids import require_id


@dataclass(frozen=True)
class Entity:
    name: str
    table: str
    columns: tuple[str, ...]
    id_columns: frozenset[str]
    sortable: frozenset[str]
    owner_column: str | None = None
    id_array_columns: frozenset[str] = frozenset()
    # Mirrors the UNIQUE constraints in the migration.
    unique: tuple[tuple[str, ...], ...] = ()
    # Pair of columns that may never hold the same value (CHECK constraint).
    distinct: tuple[str, str] | None = None


ENTITIES: dict[str, Entity] = {
    "user": Entity(
        name="user",
        table="users",
        columns=("id", "username", "full_name", "avatar", "created_at", "updated_at"),
        id_columns=frozenset({"id"}),
        sortable=frozenset({"created_at", "username"}),
        unique=(("username",),),
    ),
    "video": Entity(
        name="video",
        table="videos",
        columns=(
            "id",
            "title",
            "description",
            "video_file",
            "thumbnail",
            "duration",
            "views",
            "is_published",
            "owner_id",
            "created_at",
            "updated_at",
        ),
        id_columns=frozenset({"id", "owner_id"}),
        sortable=frozenset({"created_at", "updated_at", "title", "duration", "views"}),
        owner_column="owner_id",
    ),
    "comment": Entity(
        name="comment",
        table="comments",
        columns=("id", "content", "video_id", "owner_id", "created_at", "updated_at"),
        id_columns=frozenset({"id", "video_id", "owner_id"}),
        sortable=frozenset({"created_at", "updated_at"}),
        owner_column="owner_id",
    ),
    "tweet": Entity(
        name="tweet",
        table="tweets",
        columns=("id", "content", "owner_id", "created_at", "updated_at"),
        id_columns=frozenset({"id", "owner_id"}),
        sortable=frozenset({"created_at", "updated_at"}),
        owner_column="owner_id",
    ),
    "like": Entity(
        name="like",
        table="likes",
        columns=("id", "liked_by", "target_type", "target_id", "created_at"),
        id_columns=frozenset({"id", "liked_by", "target_id"}),
        sortable=frozenset({"created_at"}),
        unique=(("liked_by", "target_type", "target_id"),),
    ),
    "subscription": Entity(
        name="subscription",
        table="subscriptions",
        columns=("id", "channel_id", "subscriber_id", "created_at"),
        id_columns=frozenset({"id", "channel_id", "subscriber_id"}),
        sortable=frozenset({"created_at"}),
        unique=(("channel_id", "subscriber_id"),),
        distinct=("channel_id", "subscriber_id"),
    ),
    "playlist": Entity(
        name="playlist",
        table="playlists",
        columns=("id", "name", "description", "owner_id", "video_ids", "created_at", "updated_at"),
        id_columns=frozenset({"id", "owner_id"}),
        sortable=frozenset({"created_at", "updated_at", "name"}),
        owner_column="owner_id",
        id_array_columns=frozenset({"video_ids"}),
    ),
}

AUDIT_COLUMNS = frozenset({"created_at", "updated_at"})


# Conditions. A filter is a sequence of these, combined with AND.


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class In:
    field: str
    values: tuple[Any, ...]


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match against any of `fields`."""

    fields: tuple[str, ...]
    text: str


@dataclass(frozen=True)
class Sort:
    field: str = "created_at"
    descending: bool = True


# Patch markers for array columns.


@dataclass(frozen=True)
class AddToSet:
    value: Any


@dataclass(frozen=True)
class Pull:
    value: Any


Condition = Eq | In | Contains


def entity(name: str) -> Entity:
    try:
        return ENTITIES[name]
    except KeyError:
        raise LookupError(f"Unknown entity: {name}") from None


def _check_field(ent: Entity, field: str) -> None:
    if field not in ent.columns:
        raise InvalidArgument(f"unknown field '{field}' for {ent.name}")


def _coerce(ent: Entity, field: str, value: Any) -> Any:
    if field in ent.id_columns:
        return require_id(value, field)
    return value


def normalize_filters(ent: Entity, filters: Sequence[Condition]) -> tuple[Condition, ...]:
    """
    Validate field names and coerce id values. Empty search text is dropped.
    """
    out: list[Condition] = []
    for cond in filters:
        if isinstance(cond, Eq):
            _check_field(ent, cond.field)
            out.append(Eq(cond.field, _coerce(ent, cond.field, cond.value)))
        elif isinstance(cond, In):
            _check_field(ent, cond.field)
            values = tuple(dict.fromkeys(_coerce(ent, cond.field, v) for v in cond.values))
            out.append(In(cond.field, values))
        elif isinstance(cond, Contains):
            for field in cond.fields:
                _check_field(ent, field)
            text = (cond.text or "").strip()
            if text and cond.fields:
                out.append(Contains(tuple(cond.fields), text))
        else:
            raise TypeError(f"Unsupported condition: {cond!r}")
    return tuple(out)


def normalize_values(ent: Entity, values: dict[str, Any], *, for_update: bool = False) -> dict[str, Any]:
    """
    Validate writable fields and coerce ids. Set markers are only valid in updates.
    """
    read_only = AUDIT_COLUMNS | {"id"} if for_update else AUDIT_COLUMNS
    out: dict[str, Any] = {}
    for field, value in values.items():
        _check_field(ent, field)
        if field in read_only:
            raise InvalidArgument(f"field '{field}' cannot be written")
        if isinstance(value, (AddToSet, Pull)):
            if not for_update or field not in ent.id_array_columns:
                raise InvalidArgument(f"field '{field}' does not support set operations")
            out[field] = type(value)(require_id(value.value, field))
        elif field in ent.id_array_columns:
            out[field] = [require_id(v, field) for v in value]
        else:
            out[field] = _coerce(ent, field, value)
    return out


def check_sort(ent: Entity, sort: Sort) -> Sort:
    if sort.field not in ent.sortable:
        raise InvalidArgument(
            f"cannot sort {ent.name} by '{sort.field}'. Allowed: {sorted(ent.sortable)}"
        )
    return sort


def check_fields(ent: Entity, fields: Sequence[str] | None) -> tuple[str, ...]:
    if fields is None:
        return ent.columns
    for field in fields:
        _check_field(ent, field)
    return tuple(dict.fromkeys(fields))


def compile_where(filters: Sequence[Condition], args: list[Any]) -> str:
    """
    Compile normalized conditions into a WHERE clause, appending bind values to `args`.
    """
    clauses: list[str] = []
    for cond in filters:
        if isinstance(cond, Eq):
            if cond.value is None:
                clauses.append(f"{cond.field} IS NULL")
                continue
            args.append(cond.value)
            clauses.append(f"{cond.field} = ${len(args)}")
        elif isinstance(cond, In):
            if not cond.values:
                clauses.append("false")
                continue
            args.append(list(cond.values))
            clauses.append(f"{cond.field} = ANY(${len(args)})")
        elif isinstance(cond, Contains):
            args.append(cond.text.lower())
            n = len(args)
            matches = " OR ".join(f"strpos(lower({field}), ${n}) > 0" for field in cond.fields)
            clauses.append(f"({matches})")
    if not clauses:
        return ""
    return "WHERE " + " AND ".join(clauses)


def compile_order(sort: Sort) -> str:
    # id breaks ties so paging is stable across equal sort values.
    direction = "DESC" if sort.descending else "ASC"
    return f"ORDER BY {sort.field} {direction}, id {direction}"


def compile_set(ent: Entity, patch: dict[str, Any], args: list[Any]) -> str:
    assignments: list[str] = []
    for field, value in patch.items():
        if isinstance(value, AddToSet):
            args.append(value.value)
            n = len(args)
            assignments.append(
                f"{field} = CASE WHEN ${n} = ANY({field}) THEN {field} ELSE array_append({field}, ${n}) END"
            )
        elif isinstance(value, Pull):
            args.append(value.value)
            assignments.append(f"{field} = array_remove({field}, ${len(args)})")
        else:
            args.append(value)
            assignments.append(f"{field} = ${len(args)}")
    if "updated_at" in ent.columns:
        assignments.append("updated_at = now()")
    return "SET " + ", ".join(assignments)


@contextmanager
def _constraint_errors(ent: Entity) -> Iterator[None]:
    try:
        yield
    except asyncpg.UniqueViolationError as exc:
        raise AlreadyExists(f"{ent.name} already exists.") from exc
    except (
        asyncpg.CheckViolationError,
        asyncpg.ForeignKeyViolationError,
        asyncpg.NotNullViolationError,
    ) as exc:
        constraint = getattr(exc, "constraint_name", None) or "constraint"
        raise InvalidArgument(f"{ent.name} violates {constraint}.") from exc


def _require_scope(filters: Sequence[Condition], op: str) -> None:
    if not filters:
        raise ValueError(f"Refusing unscoped {op}.")


async def get(name: str, record_id: Any) -> dict[str, Any] | None:
    ent = entity(name)
    rid = require_id(record_id, f"{ent.name} id")
    return await db.fetch_one(
        f"SELECT {', '.join(ent.columns)} FROM {ent.table} WHERE id = $1",
        rid,
    )


async def find_one(name: str, filters: Sequence[Condition]) -> dict[str, Any] | None:
    ent = entity(name)
    conds = normalize_filters(ent, filters)
    args: list[Any] = []
    where = compile_where(conds, args)
    return await db.fetch_one(
        f"SELECT {', '.join(ent.columns)} FROM {ent.table} {where} LIMIT 1",
        *args,
    )


async def insert(
    name: str,
    values: dict[str, Any],
    *,
    on_conflict_ignore: bool = False,
) -> dict[str, Any] | None:
    """
    Insert one row and return it.

    With `on_conflict_ignore`, a uniqueness conflict returns None instead of
    raising `AlreadyExists`.
    """
    ent = entity(name)
    row_values = normalize_values(ent, values)
    if not row_values:
        raise ValueError("insert called with no values.")
    fields = list(row_values)
    placeholders = ", ".join(f"${i}" for i in range(1, len(fields) + 1))
    conflict = "ON CONFLICT DO NOTHING" if on_conflict_ignore else ""
    with _constraint_errors(ent):
        return await db.fetch_one(
            f"""
            INSERT INTO {ent.table} ({', '.join(fields)})
            VALUES ({placeholders})
            {conflict}
            RETURNING {', '.join(ent.columns)}
            """,
            *row_values.values(),
        )


async def update_where(
    name: str,
    filters: Sequence[Condition],
    patch: dict[str, Any],
) -> dict[str, Any] | None:
    """
    Conditional single-record update. Returns the updated row or None when nothing matched.
    """
    ent = entity(name)
    conds = normalize_filters(ent, filters)
    _require_scope(conds, "update")
    fields = normalize_values(ent, patch, for_update=True)
    if not fields:
        raise ValueError("update_where called with an empty patch.")
    args: list[Any] = []
    assignments = compile_set(ent, fields, args)
    where = compile_where(conds, args)
    with _constraint_errors(ent):
        return await db.fetch_one(
            f"UPDATE {ent.table} {assignments} {where} RETURNING {', '.join(ent.columns)}",
            *args,
        )


async def delete_where(name: str, filters: Sequence[Condition]) -> bool:
    ent = entity(name)
    conds = normalize_filters(ent, filters)
    _require_scope(conds, "delete")
    args: list[Any] = []
    where = compile_where(conds, args)
    rows = await db.fetch_all(f"DELETE FROM {ent.table} {where} RETURNING id", *args)
    return bool(rows)


async def count(name: str, filters: Sequence[Condition] = ()) -> int:
    ent = entity(name)
    conds = normalize_filters(ent, filters)
    args: list[Any] = []
    where = compile_where(conds, args)
    n = await db.fetch_value(f"SELECT count(*) FROM {ent.table} {where}", *args)
    return int(n or 0)


async def total(name: str, field: str, filters: Sequence[Condition] = ()) -> int:
    """
    Sum of a numeric column over matching rows (0 when none match).
    """
    ent = entity(name)
    _check_field(ent, field)
    conds = normalize_filters(ent, filters)
    args: list[Any] = []
    where = compile_where(conds, args)
    n = await db.fetch_value(f"SELECT COALESCE(sum({field}), 0) FROM {ent.table} {where}", *args)
    return int(n or 0)


async def query(
    name: str,
    filters: Sequence[Condition] = (),
    *,
    sort: Sort | None = None,
    skip: int = 0,
    limit: int | None = None,
    fields: Sequence[str] | None = None,
) -> list[dict[str, Any]]:
    ent = entity(name)
    conds = normalize_filters(ent, filters)
    columns = check_fields(ent, fields)
    args: list[Any] = []
    where = compile_where(conds, args)
    order = compile_order(check_sort(ent, sort)) if sort is not None else ""
    paging = ""
    if limit is not None:
        args.append(max(0, int(limit)))
        paging += f" LIMIT ${len(args)}"
    if skip:
        args.append(max(0, int(skip)))
        paging += f" OFFSET ${len(args)}"
    return await db.fetch_all(
        f"SELECT {', '.join(columns)} FROM {ent.table} {where} {order}{paging}",
        *args,
    )
