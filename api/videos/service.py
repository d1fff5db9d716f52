"""
Video business logic.

Files arrive as in-memory `LocalFile`s from the router; this module validates
the request first and only then pushes the files to the media service.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from uuid import UUID

from core import listing, media, ownership, projection, store
from core.errors import InvalidArgument, NotFound
from core.ids import require_id, require_principal

logger = logging.getLogger(__name__)

SORT_ALIASES = {
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
    "title": "title",
    "duration": "duration",
    "views": "views",
}

OWNER_JOIN = listing.Join(
    reference_field="owner_id",
    target="user",
    projected_fields=projection.OWNER_PROFILE,
    alias="owner",
)


def _required_text(value: str | None, name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidArgument(f"{name} is required.")
    return text


async def with_owner(rows: list[dict]) -> list[dict]:
    return await projection.attach(
        rows,
        reference_field=OWNER_JOIN.reference_field,
        target=OWNER_JOIN.target,
        projected_fields=OWNER_JOIN.projected_fields,
        alias=OWNER_JOIN.alias,
    )


async def list_videos(
    *,
    page: Any = 1,
    limit: Any = listing.DEFAULT_PAGE_SIZE,
    query: str | None = None,
    sort_by: str | None = None,
    sort_type: str | None = None,
    user_id: str | UUID | None = None,
) -> listing.Page:
    filters: list[store.Condition] = []
    if query and query.strip():
        filters.append(store.Contains(("title", "description"), query))
    if user_id is not None and str(user_id).strip():
        filters.append(store.Eq("owner_id", require_id(user_id, "user id")))

    sort = listing.parse_sort(sort_by, sort_type, aliases=SORT_ALIASES)
    return await listing.list_page(
        "video",
        filters,
        sort=sort,
        page=page,
        page_size=limit,
        joins=[OWNER_JOIN],
    )


async def publish_video(
    *,
    principal: Any,
    title: str | None,
    description: str | None,
    video_file: media.LocalFile | None,
    thumbnail: media.LocalFile | None,
) -> dict:
    owner_id = require_principal(principal)
    clean_title = _required_text(title, "title")
    clean_description = _required_text(description, "description")
    if video_file is None or thumbnail is None:
        raise InvalidArgument("videoFile and thumbnail are required.")

    uploaded_video, uploaded_thumbnail = await asyncio.gather(
        media.upload_file(video_file),
        media.upload_file(thumbnail),
    )

    row = await store.insert(
        "video",
        {
            "title": clean_title,
            "description": clean_description,
            "video_file": uploaded_video.url,
            "thumbnail": uploaded_thumbnail.url,
            "duration": float(uploaded_video.duration or 0),
            "owner_id": owner_id,
        },
    )
    if row is None:
        raise RuntimeError("Failed to insert video.")
    logger.info("video_published video_id=%s owner_id=%s", row["id"], owner_id)
    return row


async def get_video(video_id: Any) -> dict:
    row = await store.get("video", require_id(video_id, "video id"))
    if row is None:
        raise NotFound("video not found")
    return (await with_owner([row]))[0]


async def update_video(
    *,
    principal: Any,
    video_id: Any,
    title: str | None = None,
    description: str | None = None,
    thumbnail: media.LocalFile | None = None,
) -> dict:
    require_id(video_id, "video id")
    thumbnail_url = None
    if thumbnail is not None:
        thumbnail_url = (await media.upload_file(thumbnail)).url

    patch = {"title": title, "description": description, "thumbnail": thumbnail_url}
    row = await ownership.update_owned("video", video_id, principal, patch)
    logger.info("video_updated video_id=%s", row["id"])
    return row


async def delete_video(*, principal: Any, video_id: Any) -> None:
    # Likes, comments and playlist entries that point at the video are left dangling.
    await ownership.delete_owned("video", video_id, principal)
    logger.info("video_deleted video_id=%s", video_id)


async def toggle_publish_status(*, principal: Any, video_id: Any) -> dict:
    row = await ownership.flip_owned_flag("video", video_id, principal, "is_published")
    logger.info("video_publish_toggled video_id=%s is_published=%s", row["id"], row["is_published"])
    return {"is_published": bool(row["is_published"])}
