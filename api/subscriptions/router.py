"""
Subscription API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies

from . import service

router = APIRouter(prefix="/subscriptions")


@router.post("/c/{channel_id}")
async def toggle_subscription(
    channel_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.toggle_subscription(principal=principal, channel_id=channel_id)


@router.get("/c/{channel_id}")
async def channel_subscribers(
    channel_id: str,
    _: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    rows = await service.list_channel_subscribers(channel_id)
    return {"subscribers": rows, "count": len(rows)}


@router.get("/u/{subscriber_id}")
async def subscribed_channels(
    subscriber_id: str,
    _: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    rows = await service.list_subscribed_channels(subscriber_id)
    return {"channels": rows, "count": len(rows)}
