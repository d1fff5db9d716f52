"""
Toggle-relation engine.

A toggle flips the presence of one uniquely-keyed relation record (a like, a
subscription). The uniqueness itself is enforced by the table's UNIQUE
constraint, so racing toggles can never leave two records for the same key.

Flow for one call:
1) DELETE the record matching the key. If one was removed -> inactive.
2) Otherwise INSERT ... ON CONFLICT DO NOTHING -> active.

If another toggle inserts the same key between 1) and 2), the insert is a
no-op and the relation is reported active, which is its actual state. Which of
two racing callers observes active=True is not defined.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from . import store
from .errors import InvalidArgument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleResult:
    active: bool


def relation_key(ent: store.Entity, key_fields: dict[str, Any]) -> dict[str, Any]:
    """
    Validate that `key_fields` is exactly one of the relation's unique keys.
    """
    names = set(key_fields)
    if not any(names == set(key) for key in ent.unique):
        raise ValueError(f"{sorted(names)} is not a unique key of {ent.name}.")
    for name, value in key_fields.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            raise InvalidArgument(f"{name} is required.")
    values = store.normalize_values(ent, key_fields)
    if ent.distinct is not None:
        left, right = ent.distinct
        if values[left] == values[right]:
            raise InvalidArgument(f"{ent.name}: {left} and {right} must differ.")
    return values


async def toggle(relation: str, key_fields: dict[str, Any]) -> ToggleResult:
    ent = store.entity(relation)
    key = relation_key(ent, key_fields)
    filters = [store.Eq(name, value) for name, value in key.items()]

    if await store.delete_where(relation, filters):
        logger.info("relation_removed relation=%s key=%s", relation, key)
        return ToggleResult(active=False)

    inserted = await store.insert(relation, key, on_conflict_ignore=True)
    if inserted is None:
        logger.info("relation_insert_raced relation=%s key=%s", relation, key)
    else:
        logger.info("relation_added relation=%s key=%s", relation, key)
    return ToggleResult(active=True)
