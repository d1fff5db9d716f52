"""
Identifier validation.

Every id is checked before it reaches SQL so malformed input fails fast with
`InvalidArgument` instead of a driver error.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from .errors import InvalidArgument


def require_id(value: Any, name: str = "id") -> UUID:
    if isinstance(value, UUID):
        return value
    raw = str(value).strip() if value is not None else ""
    if not raw:
        raise InvalidArgument(f"{name} is required.")
    try:
        return UUID(raw)
    except ValueError as exc:
        raise InvalidArgument(f"invalid {name}") from exc


def require_principal(value: Any) -> UUID:
    """
    The acting user. An absent principal is an error, never "owner = null".
    """
    if value is None:
        raise InvalidArgument("authenticated principal is required.")
    return require_id(value, "principal")
