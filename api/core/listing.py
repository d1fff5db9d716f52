"""
Paginated listing engine.

list_page() = filter + sort + page window + optional joins, returned with the
total match count. The count and the page query are issued concurrently on
separate pool connections, so they do not share a snapshot: under concurrent
inserts/deletes `total` and `items` may disagree by the rows that changed in
between. That is accepted; callers must not derive one from the other.

Joins run after paging, so their cost follows the page size.
"""

from __future__ import annotations

import asyncio
import math
import re
from dataclasses import dataclass
from typing import Any, Sequence

from . import projection, store
from .errors import InvalidArgument

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# OFFSET is a bigint; pages past this are empty anyway.
MAX_OFFSET = 2**63 - 1

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class Join:
    reference_field: str
    target: str
    projected_fields: tuple[str, ...]
    alias: str | None = None


@dataclass(frozen=True)
class Page:
    items: list[dict[str, Any]]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.total <= 0:
            return 0
        return math.ceil(self.total / self.page_size)

    def as_dict(self) -> dict[str, Any]:
        return {
            "items": self.items,
            "page": self.page,
            "page_size": self.page_size,
            "total": self.total,
            "total_pages": self.total_pages,
        }


def _to_int(raw: Any, default: int) -> int:
    # Leading integer wins: "25.9" -> 25, "12abc" -> 12, "abc" -> default.
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw
    match = _LEADING_INT.match(str(raw))
    return int(match.group(1)) if match else default


def clamp_page(page: Any, page_size: Any) -> tuple[int, int]:
    """
    Unparsable values fall back to defaults; 1 <= page_size <= 100, and page
    is at least 1 and at most the last page whose offset still fits in OFFSET.
    """
    size = min(max(_to_int(page_size, DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
    page_num = min(max(_to_int(page, 1), 1), MAX_OFFSET // size + 1)
    return page_num, size


def parse_sort(
    sort_by: str | None,
    sort_type: str | None,
    *,
    aliases: dict[str, str],
    default: store.Sort = store.Sort(),
) -> store.Sort:
    """
    Map public sort parameters to a `Sort`.

    An empty `sort_by` means the default sort. An unknown one is rejected.
    `sort_type` "asc" (any case) sorts ascending; anything else descending.
    """
    key = (sort_by or "").strip()
    if not key:
        return default
    column = aliases.get(key)
    if column is None:
        raise InvalidArgument(f"unsupported sortBy '{key}'. Allowed: {sorted(aliases)}")
    ascending = (sort_type or "").strip().lower() == "asc"
    return store.Sort(field=column, descending=not ascending)


async def list_page(
    entity_name: str,
    filters: Sequence[store.Condition] = (),
    *,
    sort: store.Sort | None = None,
    page: Any = 1,
    page_size: Any = DEFAULT_PAGE_SIZE,
    joins: Sequence[Join] = (),
) -> Page:
    page_num, size = clamp_page(page, page_size)
    ent = store.entity(entity_name)
    order = store.check_sort(ent, sort or store.Sort())
    # Validate before issuing anything so a bad filter never leaves a query in flight.
    conds = store.normalize_filters(ent, filters)

    total, rows = await asyncio.gather(
        store.count(entity_name, conds),
        store.query(
            entity_name,
            conds,
            sort=order,
            skip=(page_num - 1) * size,
            limit=size,
        ),
    )

    for join in joins:
        rows = await projection.attach(
            rows,
            reference_field=join.reference_field,
            target=join.target,
            projected_fields=join.projected_fields,
            alias=join.alias,
        )

    return Page(items=list(rows), page=page_num, page_size=size, total=int(total))
