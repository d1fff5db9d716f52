"""
Join-projection: attach a fixed-field view of a referenced entity to result rows.

One batched lookup per call: referenced ids are collected, fetched once with
`id = ANY(...)`, and mapped back. Cost scales with the number of distinct
referenced ids, not with the number of rows. Stored data is never modified.
"""

from __future__ import annotations

from typing import Any, Sequence

from . import store

# Public profile of a user, as shown next to content they own.
OWNER_PROFILE = ("id", "full_name", "username", "avatar")

# Video fields shown when a video is embedded in another listing (liked videos,
# playlists). owner_id is kept so the owner profile can be attached afterwards.
VIDEO_SUMMARY = (
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
)


def _referenced_ids(rows: Sequence[dict[str, Any]], reference_field: str) -> list[Any]:
    ids: dict[Any, None] = {}
    for row in rows:
        ref = row.get(reference_field)
        if ref is None:
            continue
        if isinstance(ref, (list, tuple)):
            ids.update(dict.fromkeys(r for r in ref if r is not None))
        else:
            ids[ref] = None
    return list(ids)


async def attach(
    rows: Sequence[dict[str, Any]],
    *,
    reference_field: str,
    target: str,
    projected_fields: Sequence[str],
    alias: str | None = None,
) -> list[dict[str, Any]]:
    """
    Return copies of `rows` with `reference_field` replaced by the projected target.

    The projection is stored under `alias` (default: `reference_field`).
    A single reference that no longer resolves becomes None; a list of
    references keeps its order and drops the ones that do not resolve.
    """
    out_field = alias or reference_field
    fields = tuple(dict.fromkeys(("id", *projected_fields)))

    ids = _referenced_ids(rows, reference_field)
    found: dict[Any, dict[str, Any]] = {}
    if ids:
        fetched = await store.query(target, [store.In("id", tuple(ids))], fields=fields)
        found = {row["id"]: row for row in fetched}

    result: list[dict[str, Any]] = []
    for row in rows:
        new_row = dict(row)
        ref = new_row.pop(reference_field, None)
        if isinstance(ref, (list, tuple)):
            new_row[out_field] = [dict(found[r]) for r in ref if r in found]
        elif ref is None or ref not in found:
            new_row[out_field] = None
        else:
            new_row[out_field] = dict(found[ref])
        result.append(new_row)
    return result
