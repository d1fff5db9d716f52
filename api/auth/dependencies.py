"""
Auth dependencies for protected FastAPI routes.

Routes depend on `get_principal` and pass the returned user id explicitly to
every service call; nothing below the router reads request state.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from . import service


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise _unauthorized("Missing Authorization header.")

    scheme, _, token = raw.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Authorization must be: Bearer <token>.")
    return token.strip()


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_current_user(access_token: str = Depends(get_bearer_token)) -> dict:
    return await service.get_user_from_access_token(access_token)


async def get_principal(current_user: dict = Depends(get_current_user)) -> UUID:
    return current_user["id"]
