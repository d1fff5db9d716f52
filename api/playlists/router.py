"""
Playlist API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/playlists")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_playlist(
    request: schemas.CreatePlaylistRequest,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.create_playlist(
        principal=principal,
        name=request.name,
        description=request.description,
    )


@router.get("/user/{user_id}")
async def user_playlists(
    user_id: str,
    _: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    rows = await service.list_user_playlists(user_id)
    return {"playlists": rows, "count": len(rows)}


@router.get("/{playlist_id}")
async def get_playlist(
    playlist_id: str,
    _: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.get_playlist(playlist_id)


@router.patch("/add/{video_id}/{playlist_id}")
async def add_video(
    video_id: str,
    playlist_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.add_video_to_playlist(principal=principal, playlist_id=playlist_id, video_id=video_id)


@router.patch("/remove/{video_id}/{playlist_id}")
async def remove_video(
    video_id: str,
    playlist_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.remove_video_from_playlist(
        principal=principal,
        playlist_id=playlist_id,
        video_id=video_id,
    )


@router.patch("/{playlist_id}")
async def update_playlist(
    playlist_id: str,
    request: schemas.UpdatePlaylistRequest,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.update_playlist(
        principal=principal,
        playlist_id=playlist_id,
        name=request.name,
        description=request.description,
    )


@router.delete("/{playlist_id}")
async def delete_playlist(
    playlist_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    await service.delete_playlist(principal=principal, playlist_id=playlist_id)
    return {"ok": True, "playlist_id": playlist_id}
