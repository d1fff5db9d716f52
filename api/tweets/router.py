"""
Tweet API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/tweets")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tweet(
    request: schemas.TweetRequest,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.create_tweet(principal=principal, content=request.content)


@router.get("/user/{user_id}")
async def list_user_tweets(
    user_id: str,
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    _: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    result = await service.list_user_tweets(user_id, page=page, limit=limit)
    return result.as_dict()


@router.patch("/{tweet_id}")
async def update_tweet(
    tweet_id: str,
    request: schemas.TweetRequest,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    return await service.update_tweet(principal=principal, tweet_id=tweet_id, content=request.content)


@router.delete("/{tweet_id}")
async def delete_tweet(
    tweet_id: str,
    principal: UUID = Depends(auth_dependencies.get_principal),
) -> dict:
    await service.delete_tweet(principal=principal, tweet_id=tweet_id)
    return {"ok": True, "tweet_id": tweet_id}
