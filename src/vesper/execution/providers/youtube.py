"""YouTube Data API v3 adapter for public video metadata."""

import re

from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    register_provider,
)

BASE_URL = "https://www.googleapis.com/youtube/v3"

_VIDEO_ID_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/shorts/([^&\n?#]+)"),
)
_ISO_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def extract_video_id(url: str) -> str | None:
    """Pull the video id out of any common YouTube url form."""
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def format_duration(iso_duration: str) -> str:
    """``PT1H2M3S`` -> ``1:02:03``; ``PT4M5S`` -> ``4:05``."""
    match = _ISO_DURATION.match(iso_duration or "")
    if not match:
        return "0:00"
    hours, minutes, seconds = (int(g or 0) for g in match.groups())
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


@register_provider("youtube")
class YouTubeAdapter(ProviderAdapter):
    operations = frozenset({Operation.VIDEO_METADATA})

    async def send(self, call: ProviderCall) -> ProviderReply:
        video_id = call.params.get("video_id")
        if not video_id:
            raise self._malformed("video id")

        data = await self._json(
            "GET",
            f"{BASE_URL}/videos",
            params={
                "id": video_id,
                "part": "snippet,statistics,contentDetails",
                "key": self.api_key,
            },
        )
        items = data.get("items") or []
        if not items:
            # Unknown or private video: no metadata, not a failure.
            return ProviderReply(data={"metadata": None}, units=1)

        item = items[0]
        snippet = item.get("snippet") or {}
        stats = item.get("statistics") or {}
        details = item.get("contentDetails") or {}
        thumbnails = snippet.get("thumbnails") or {}
        thumb = thumbnails.get("high") or thumbnails.get("default") or {}

        metadata = {
            "video_id": video_id,
            "title": snippet.get("title", ""),
            "channel": snippet.get("channelTitle", ""),
            "views": int(stats.get("viewCount", 0)),
            "likes": int(stats.get("likeCount", 0)),
            "comments": int(stats.get("commentCount", 0)),
            "published_at": snippet.get("publishedAt", ""),
            "duration": format_duration(details.get("duration", "")),
            "tags": snippet.get("tags") or [],
            "description": snippet.get("description", ""),
            "thumbnail_url": thumb.get("url", ""),
        }
        return ProviderReply(data={"metadata": metadata}, units=1)
