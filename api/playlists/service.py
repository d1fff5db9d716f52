"""
Playlist business logic.

`video_ids` is an ordered array of video references. Adding is a set-add (no
duplicates), removing drops every occurrence. References are not checked
against the videos table; a deleted video simply disappears from resolved
playlists.
"""

from __future__ import annotations

import logging
from typing import Any

from core import ownership, projection, store
from core.errors import InvalidArgument, NotFound
from core.ids import require_id, require_principal

logger = logging.getLogger(__name__)


async def _resolve_videos(playlists: list[dict], *, with_owner: bool) -> list[dict]:
    """
    Replace `video_ids` with `videos` on each playlist (one lookup for all of them).
    """
    resolved = await projection.attach(
        playlists,
        reference_field="video_ids",
        target="video",
        projected_fields=projection.VIDEO_SUMMARY,
        alias="videos",
    )
    if not with_owner:
        return resolved

    all_videos = [video for playlist in resolved for video in playlist["videos"]]
    owned = await projection.attach(
        all_videos,
        reference_field="owner_id",
        target="user",
        projected_fields=projection.OWNER_PROFILE,
        alias="owner",
    )
    it = iter(owned)
    for playlist in resolved:
        playlist["videos"] = [next(it) for _ in playlist["videos"]]
    return resolved


async def create_playlist(*, principal: Any, name: str | None, description: str | None) -> dict:
    owner_id = require_principal(principal)
    clean_name = (name or "").strip()
    clean_description = (description or "").strip()
    if not clean_name or not clean_description:
        raise InvalidArgument("name and description are required.")
    row = await store.insert(
        "playlist",
        {"name": clean_name, "description": clean_description, "owner_id": owner_id},
    )
    if row is None:
        raise RuntimeError("Failed to insert playlist.")
    logger.info("playlist_created playlist_id=%s owner_id=%s", row["id"], owner_id)
    return row


async def list_user_playlists(user_id: Any) -> list[dict]:
    rows = await store.query(
        "playlist",
        [store.Eq("owner_id", require_id(user_id, "user id"))],
        sort=store.Sort("created_at", descending=True),
    )
    return await _resolve_videos(rows, with_owner=False)


async def get_playlist(playlist_id: Any) -> dict:
    row = await store.get("playlist", require_id(playlist_id, "playlist id"))
    if row is None:
        raise NotFound("playlist not found")
    return (await _resolve_videos([row], with_owner=True))[0]


async def add_video_to_playlist(*, principal: Any, playlist_id: Any, video_id: Any) -> dict:
    require_id(playlist_id, "playlist id")
    video = require_id(video_id, "video id")
    row = await ownership.update_owned("playlist", playlist_id, principal, {"video_ids": store.AddToSet(video)})
    logger.info("playlist_video_added playlist_id=%s video_id=%s", row["id"], video)
    return row


async def remove_video_from_playlist(*, principal: Any, playlist_id: Any, video_id: Any) -> dict:
    require_id(playlist_id, "playlist id")
    video = require_id(video_id, "video id")
    row = await ownership.update_owned("playlist", playlist_id, principal, {"video_ids": store.Pull(video)})
    logger.info("playlist_video_removed playlist_id=%s video_id=%s", row["id"], video)
    return row


async def update_playlist(
    *,
    principal: Any,
    playlist_id: Any,
    name: str | None = None,
    description: str | None = None,
) -> dict:
    row = await ownership.update_owned(
        "playlist",
        playlist_id,
        principal,
        {"name": name, "description": description},
    )
    logger.info("playlist_updated playlist_id=%s", row["id"])
    return row


async def delete_playlist(*, principal: Any, playlist_id: Any) -> None:
    await ownership.delete_owned("playlist", playlist_id, principal)
    logger.info("playlist_deleted playlist_id=%s", playlist_id)
