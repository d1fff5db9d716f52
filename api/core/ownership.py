"""
Ownership-scoped mutations.

Update and delete are single conditional statements matching both the record
id and its owner column. When nothing matches, the caller gets
`NotFoundOrNotOwned` whether the record is missing or owned by someone else.

Patches are partial merges: only truthy values are applied. Empty strings,
0, False and None count as "not supplied", so a field cannot be cleared
through these helpers.
"""

from __future__ import annotations

from typing import Any

from . import store
from .errors import NotFoundOrNotOwned
from .ids import require_id, require_principal


def _owned_filters(ent: store.Entity, record_id: Any, principal: Any) -> list[store.Condition]:
    if ent.owner_column is None:
        raise LookupError(f"{ent.name} has no owner column.")
    return [
        store.Eq("id", require_id(record_id, f"{ent.name} id")),
        store.Eq(ent.owner_column, require_principal(principal)),
    ]


def _not_owned(ent: store.Entity) -> NotFoundOrNotOwned:
    return NotFoundOrNotOwned(f"{ent.name} not found or not owned by user")


def merge_patch(patch: dict[str, Any]) -> dict[str, Any]:
    return {field: value for field, value in patch.items() if value}


async def get_owned(entity_name: str, record_id: Any, principal: Any) -> dict[str, Any]:
    ent = store.entity(entity_name)
    row = await store.find_one(entity_name, _owned_filters(ent, record_id, principal))
    if row is None:
        raise _not_owned(ent)
    return row


async def update_owned(
    entity_name: str,
    record_id: Any,
    principal: Any,
    patch: dict[str, Any],
) -> dict[str, Any]:
    ent = store.entity(entity_name)
    filters = _owned_filters(ent, record_id, principal)
    changes = merge_patch(patch)
    if not changes:
        # Nothing to set: still report ownership the same way an update would.
        return await get_owned(entity_name, record_id, principal)

    row = await store.update_where(entity_name, filters, changes)
    if row is None:
        raise _not_owned(ent)
    return row


async def delete_owned(entity_name: str, record_id: Any, principal: Any) -> None:
    ent = store.entity(entity_name)
    if not await store.delete_where(entity_name, _owned_filters(ent, record_id, principal)):
        raise _not_owned(ent)


async def flip_owned_flag(
    entity_name: str,
    record_id: Any,
    principal: Any,
    flag: str,
) -> dict[str, Any]:
    """
    Invert a boolean column on an owned record (read, invert, write).

    Not atomic against a concurrent flip of the same record: two overlapping
    flips may both read the same value and end up as a single flip.
    """
    ent = store.entity(entity_name)
    filters = _owned_filters(ent, record_id, principal)
    current = await store.find_one(entity_name, filters)
    if current is None:
        raise _not_owned(ent)

    row = await store.update_where(entity_name, filters, {flag: not bool(current.get(flag))})
    if row is None:
        raise _not_owned(ent)
    return row
