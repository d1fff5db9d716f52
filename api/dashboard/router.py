"""
Dashboard API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/dashboard")


@router.get("/stats")
async def channel_stats(
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.channel_stats(principal=principal)


@router.get("/videos")
async def channel_videos(
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    videos = await service.channel_videos(principal=principal)
    return {"videos": videos, "count": len(videos)}
