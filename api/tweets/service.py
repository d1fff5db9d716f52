"""
Tweet business logic.
"""

from __future__ import annotations

import logging
from typing import Any

from comments.service import clean_content
from core import listing, ownership, store
from core.ids import require_id, require_principal

logger = logging.getLogger(__name__)


async def create_tweet(*, principal: Any, content: str | None) -> dict:
    owner_id = require_principal(principal)
    row = await store.insert("tweet", {"content": clean_content(content), "owner_id": owner_id})
    if row is None:
        raise RuntimeError("Failed to insert tweet.")
    logger.info("tweet_created tweet_id=%s owner_id=%s", row["id"], owner_id)
    return row


async def list_user_tweets(
    user_id: Any,
    *,
    page: Any = 1,
    limit: Any = listing.DEFAULT_PAGE_SIZE,
) -> listing.Page:
    return await listing.list_page(
        "tweet",
        [store.Eq("owner_id", require_id(user_id, "user id"))],
        sort=store.Sort("created_at", descending=True),
        page=page,
        page_size=limit,
    )


async def update_tweet(*, principal: Any, tweet_id: Any, content: str | None) -> dict:
    require_id(tweet_id, "tweet id")
    row = await ownership.update_owned("tweet", tweet_id, principal, {"content": clean_content(content)})
    logger.info("tweet_updated tweet_id=%s", row["id"])
    return row


async def delete_tweet(*, principal: Any, tweet_id: Any) -> None:
    await ownership.delete_owned("tweet", tweet_id, principal)
    logger.info("tweet_deleted tweet_id=%s", tweet_id)
