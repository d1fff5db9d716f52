"""
Subscription business logic.

A channel is a user; subscribing to yourself is rejected before any write.
"""

from __future__ import annotations

from typing import Any

from core import projection, store, toggle
from core.ids import require_id, require_principal


async def toggle_subscription(*, principal: Any, channel_id: Any) -> dict:
    result = await toggle.toggle(
        "subscription",
        {
            "channel_id": require_id(channel_id, "channel id"),
            "subscriber_id": require_principal(principal),
        },
    )
    return {"subscribed": result.active}


async def _list_with_profile(filter_field: str, user_id: Any, profile_field: str, alias: str) -> list[dict]:
    rows = await store.query(
        "subscription",
        [store.Eq(filter_field, user_id)],
        sort=store.Sort("created_at", descending=True),
    )
    return await projection.attach(
        rows,
        reference_field=profile_field,
        target="user",
        projected_fields=projection.OWNER_PROFILE,
        alias=alias,
    )


async def list_channel_subscribers(channel_id: Any) -> list[dict]:
    return await _list_with_profile(
        "channel_id", require_id(channel_id, "channel id"), "subscriber_id", "subscriber"
    )


async def list_subscribed_channels(subscriber_id: Any) -> list[dict]:
    return await _list_with_profile(
        "subscriber_id", require_id(subscriber_id, "subscriber id"), "channel_id", "channel"
    )
