"""
Comment business logic.
"""

from __future__ import annotations

import logging
from typing import Any

from core import listing, ownership, projection, store
from core.errors import InvalidArgument
from core.ids import require_id, require_principal

logger = logging.getLogger(__name__)

OWNER_JOIN = listing.Join(
    reference_field="owner_id",
    target="user",
    projected_fields=projection.OWNER_PROFILE,
    alias="owner",
)


def clean_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise InvalidArgument("content is required.")
    return text


async def list_video_comments(
    video_id: Any,
    *,
    page: Any = 1,
    limit: Any = listing.DEFAULT_PAGE_SIZE,
) -> listing.Page:
    return await listing.list_page(
        "comment",
        [store.Eq("video_id", require_id(video_id, "video id"))],
        sort=store.Sort("created_at", descending=True),
        page=page,
        page_size=limit,
        joins=[OWNER_JOIN],
    )


async def add_comment(*, principal: Any, video_id: Any, content: str | None) -> dict:
    owner_id = require_principal(principal)
    target = require_id(video_id, "video id")
    row = await store.insert(
        "comment",
        {"content": clean_content(content), "video_id": target, "owner_id": owner_id},
    )
    if row is None:
        raise RuntimeError("Failed to insert comment.")
    logger.info("comment_added comment_id=%s video_id=%s", row["id"], target)
    return row


async def update_comment(*, principal: Any, comment_id: Any, content: str | None) -> dict:
    require_id(comment_id, "comment id")
    row = await ownership.update_owned("comment", comment_id, principal, {"content": clean_content(content)})
    logger.info("comment_updated comment_id=%s", row["id"])
    return row


async def delete_comment(*, principal: Any, comment_id: Any) -> None:
    await ownership.delete_owned("comment", comment_id, principal)
    logger.info("comment_deleted comment_id=%s", comment_id)
