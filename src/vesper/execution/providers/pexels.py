"""Pexels stock video/photo search adapter."""

from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    register_provider,
)

PHOTOS_URL = "https://api.pexels.com/v1/search"
VIDEOS_URL = "https://api.pexels.com/videos/search"


@register_provider("pexels")
class PexelsAdapter(ProviderAdapter):
    """Searches videos first and falls back to photos."""

    operations = frozenset({Operation.MEDIA_SEARCH})

    async def send(self, call: ProviderCall) -> ProviderReply:
        headers = {"Authorization": self.api_key}
        params = {"query": call.prompt, "per_page": 1, "orientation": "landscape"}

        videos = await self._json("GET", VIDEOS_URL, params=params, headers=headers)
        url = _best_video_file(videos.get("videos") or [])
        if url:
            return ProviderReply(url=url, data={"source": "pexels-video"}, units=1)

        photos = await self._json("GET", PHOTOS_URL, params=params, headers=headers)
        for photo in photos.get("photos") or []:
            src = photo.get("src") or {}
            url = src.get("landscape") or src.get("large") or src.get("original")
            if url:
                return ProviderReply(url=url, data={"source": "pexels-photo"}, units=2)

        # Nothing matched: a valid, empty answer.
        return ProviderReply(url=None, data={"source": None}, units=2)


def _best_video_file(videos: list[dict]) -> str | None:
    for video in videos:
        files = sorted(
            (f for f in video.get("video_files") or [] if f.get("link")),
            key=lambda f: f.get("width") or 0,
            reverse=True,
        )
        hd = [f for f in files if (f.get("width") or 0) <= 1920]
        if hd:
            return hd[0]["link"]
        if files:
            return files[0]["link"]
    return None
