"""
Comment API schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CommentRequest(BaseModel):
    # Emptiness after trimming is checked by the service.
    content: str = Field(default="", max_length=5000)
