"""
Video API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from auth import dependencies as auth_dependencies
from core.media import LocalFile

from . import service

router = APIRouter(prefix="/videos")


async def _read_upload(file: UploadFile | None) -> LocalFile | None:
    if file is None:
        return None
    data = await file.read()
    if not data:
        return None
    return LocalFile(filename=file.filename or "upload", data=data, content_type=file.content_type)


@router.get("")
async def list_videos(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    query: str | None = Query(default=None, max_length=500),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_type: str | None = Query(default=None, alias="sortType"),
    user_id: str | None = Query(default=None, alias="userId"),
    _: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    result = await service.list_videos(
        page=page,
        limit=limit,
        query=query,
        sort_by=sort_by,
        sort_type=sort_type,
        user_id=user_id,
    )
    return result.as_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def publish_video(
    title: str = Form(default=""),
    description: str = Form(default=""),
    video_file: UploadFile | None = File(default=None, alias="videoFile"),
    thumbnail: UploadFile | None = File(default=None),
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.publish_video(
        principal=principal,
        title=title,
        description=description,
        video_file=await _read_upload(video_file),
        thumbnail=await _read_upload(thumbnail),
    )


@router.get("/{video_id}")
async def get_video(
    video_id: str,
    _: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.get_video(video_id)


@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    title: str = Form(default=""),
    description: str = Form(default=""),
    thumbnail: UploadFile | None = File(default=None),
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.update_video(
        principal=principal,
        video_id=video_id,
        title=title,
        description=description,
        thumbnail=await _read_upload(thumbnail),
    )


@router.delete("/{video_id}")
async def delete_video(
    video_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    await service.delete_video(principal=principal, video_id=video_id)
    return {"ok": True, "video_id": video_id}


@router.patch("/toggle/publish/{video_id}")
async def toggle_publish_status(
    video_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.toggle_publish_status(principal=principal, video_id=video_id)
