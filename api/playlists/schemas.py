"""
Playlist API schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CreatePlaylistRequest(BaseModel):
    name: str = Field(default="", max_length=200)
    description: str = Field(default="", max_length=2000)


class UpdatePlaylistRequest(BaseModel):
    # Empty values leave the stored field unchanged.
    name: str | None = Field(default=None, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
