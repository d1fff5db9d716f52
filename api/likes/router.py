"""
Like API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/likes")


@router.post("/toggle/v/{video_id}")
async def toggle_video_like(
    video_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.toggle_like(principal=principal, target=service.LikeTarget.of("video", video_id))


@router.post("/toggle/c/{comment_id}")
async def toggle_comment_like(
    comment_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.toggle_like(principal=principal, target=service.LikeTarget.of("comment", comment_id))


@router.post("/toggle/t/{tweet_id}")
async def toggle_tweet_like(
    tweet_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.toggle_like(principal=principal, target=service.LikeTarget.of("tweet", tweet_id))


@router.get("/videos")
async def liked_videos(
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    videos = await service.list_liked_videos(principal=principal)
    return {"videos": videos, "count": len(videos)}
