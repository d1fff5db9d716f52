"""
Channel dashboard.

Stats are gathered with independent concurrent queries; like the listing
engine, they do not share a snapshot.
"""

from __future__ import annotations

import asyncio
from typing import Any

from core import store
from core.ids import require_principal


async def _likes_on_videos(owner_id: Any) -> int:
    owned = await store.query("video", [store.Eq("owner_id", owner_id)], fields=("id",))
    if not owned:
        return 0
    return await store.count(
        "like",
        [
            store.Eq("target_type", "video"),
            store.In("target_id", tuple(row["id"] for row in owned)),
        ],
    )


async def channel_stats(*, principal: Any) -> dict:
    channel_id = require_principal(principal)
    total_videos, total_views, total_subscribers, total_likes = await asyncio.gather(
        store.count("video", [store.Eq("owner_id", channel_id)]),
        store.total("video", "views", [store.Eq("owner_id", channel_id)]),
        store.count("subscription", [store.Eq("channel_id", channel_id)]),
        _likes_on_videos(channel_id),
    )
    return {
        "total_videos": total_videos,
        "total_views": total_views,
        "total_subscribers": total_subscribers,
        "total_likes": total_likes,
    }


async def channel_videos(*, principal: Any) -> list[dict]:
    return await store.query(
        "video",
        [store.Eq("owner_id", require_principal(principal))],
        sort=store.Sort("created_at", descending=True),
    )
