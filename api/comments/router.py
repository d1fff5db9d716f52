"""
Comment API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/comments")


@router.get("/{video_id}")
async def list_video_comments(
    video_id: str,
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    _: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    result = await service.list_video_comments(video_id, page=page, limit=limit)
    return result.as_dict()


@router.post("/{video_id}", status_code=status.HTTP_201_CREATED)
async def add_comment(
    video_id: str,
    request: schemas.CommentRequest,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.add_comment(principal=principal, video_id=video_id, content=request.content)


@router.patch("/c/{comment_id}")
async def update_comment(
    comment_id: str,
    request: schemas.CommentRequest,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.update_comment(principal=principal, comment_id=comment_id, content=request.content)


@router.delete("/c/{comment_id}")
async def delete_comment(
    comment_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    await service.delete_comment(principal=principal, comment_id=comment_id)
    return {"ok": True, "comment_id": comment_id}
