"""
Media upload client.

Uploads a file to the configured media service and returns its public URL
(plus duration for audio/video). Expected response body:
    {"url": "...", "duration": 12.5}   (`secure_url` is accepted for `url`)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from .config import env_float, env_str
from .errors import UpstreamFailure


class MediaUploadError(UpstreamFailure):
    pass


@dataclass(frozen=True)
class MediaUpload:
    url: str
    duration: float | None = None


def media_upload_url() -> str:
    return env_str("MEDIA_UPLOAD_URL", "http://media:8080/upload")


def media_upload_token() -> str:
    return env_str("MEDIA_UPLOAD_TOKEN", "")


def media_upload_timeout_s() -> float:
    return env_float("MEDIA_UPLOAD_TIMEOUT_S", 120.0)


def _parse_upload(data: Any) -> MediaUpload:
    if not isinstance(data, dict):
        raise MediaUploadError("Media service returned an unexpected body.")

    url = str(data.get("secure_url") or data.get("url") or "").strip()
    if not url:
        raise MediaUploadError("Media service returned no url.")

    duration = data.get("duration")
    try:
        parsed_duration = float(duration) if duration is not None else None
    except (TypeError, ValueError):
        parsed_duration = None
    return MediaUpload(url=url, duration=parsed_duration)


async def upload_bytes(
    data: bytes,
    *,
    filename: str,
    content_type: str | None = None,
) -> MediaUpload:
    if not data:
        raise MediaUploadError(f"Refusing to upload empty file '{filename}'.")

    headers: dict[str, str] = {}
    token = media_upload_token()
    if token:
        headers["Authorization"] = f"Bearer {token}"

    files = {"file": (filename, data, content_type or "application/octet-stream")}
    try:
        async with httpx.AsyncClient(timeout=media_upload_timeout_s()) as client:
            resp = await client.post(media_upload_url(), files=files, headers=headers)
    except httpx.HTTPError as exc:
        raise MediaUploadError(f"Failed to call media upload service: {exc}") from exc

    if resp.status_code not in (200, 201):
        # Keep the error small; upstream bodies can be large.
        raise MediaUploadError(
            f"Media upload failed with status {resp.status_code}: {resp.text[:300]}"
        )

    try:
        payload = resp.json()
    except ValueError as exc:
        raise MediaUploadError("Media service returned invalid JSON.") from exc
    return _parse_upload(payload)


@dataclass(frozen=True)
class LocalFile:
    """A file received from a client, held in memory until uploaded."""

    filename: str
    data: bytes
    content_type: str | None = None


async def upload_file(file: LocalFile) -> MediaUpload:
    return await upload_bytes(file.data, filename=file.filename, content_type=file.content_type)
