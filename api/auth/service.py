"""
Resolve the acting principal from an access token.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from core import store
from core.errors import InvalidArgument
from core.ids import require_id

from . import security


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        payload = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    try:
        user_id = require_id(payload.get("sub"), "token subject")
    except InvalidArgument as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token subject.",
        ) from exc

    user_row = await store.get("user", user_id)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )
    return user_row
