"""
Tweet API schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TweetRequest(BaseModel):
    content: str = Field(default="", max_length=1000)
