"""
Like business logic.

A like points at exactly one target. `LikeTarget` carries the kind and id
together, and the table stores them as (target_type, target_id) so a row can
never reference two targets at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal
from uuid import UUID

from core import projection, store, toggle
from core.errors import InvalidArgument
from core.ids import require_id, require_principal

TargetKind = Literal["video", "comment", "tweet"]
TARGET_KINDS: tuple[str, ...] = ("video", "comment", "tweet")


@dataclass(frozen=True)
class LikeTarget:
    kind: TargetKind
    id: UUID

    @classmethod
    def of(cls, kind: str, target_id: Any) -> "LikeTarget":
        if kind not in TARGET_KINDS:
            raise InvalidArgument(f"unsupported like target '{kind}'")
        return cls(kind=kind, id=require_id(target_id, f"{kind} id"))


async def toggle_like(*, principal: Any, target: LikeTarget) -> dict:
    result = await toggle.toggle(
        "like",
        {
            "liked_by": require_principal(principal),
            "target_type": target.kind,
            "target_id": target.id,
        },
    )
    return {"liked": result.active}


async def list_liked_videos(*, principal: Any) -> list[dict]:
    """
    Videos the principal liked, newest like first. Likes whose video is gone are skipped.
    """
    likes = await store.query(
        "like",
        [
            store.Eq("liked_by", require_principal(principal)),
            store.Eq("target_type", "video"),
        ],
        sort=store.Sort("created_at", descending=True),
        fields=("id", "target_id", "created_at"),
    )
    with_video = await projection.attach(
        likes,
        reference_field="target_id",
        target="video",
        projected_fields=projection.VIDEO_SUMMARY,
        alias="video",
    )
    videos = [row["video"] for row in with_video if row["video"] is not None]
    return await projection.attach(
        videos,
        reference_field="owner_id",
        target="user",
        projected_fields=projection.OWNER_PROFILE,
        alias="owner",
    )
