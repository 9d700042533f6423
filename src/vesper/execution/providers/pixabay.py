"""Pixabay stock video/image search adapter."""

from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    register_provider,
)

IMAGES_URL = "https://pixabay.com/api/"
VIDEOS_URL = "https://pixabay.com/api/videos/"

# Pixabay rejects per_page below 3
PER_PAGE = 3


@register_provider("pixabay")
class PixabayAdapter(ProviderAdapter):
    """Searches videos first and falls back to photos; the key goes in the query string."""

    operations = frozenset({Operation.MEDIA_SEARCH})

    async def send(self, call: ProviderCall) -> ProviderReply:
        params = {"key": self.api_key, "q": call.prompt, "per_page": PER_PAGE, "safesearch": "true"}

        videos = await self._json("GET", VIDEOS_URL, params={**params, "video_type": "all"})
        for hit in videos.get("hits") or []:
            files = hit.get("videos") or {}
            for size in ("large", "medium", "small"):
                url = (files.get(size) or {}).get("url")
                if url:
                    return ProviderReply(url=url, data={"source": "pixabay-video"}, units=1)

        images = await self._json("GET", IMAGES_URL, params={**params, "image_type": "photo"})
        for hit in images.get("hits") or []:
            url = hit.get("largeImageURL") or hit.get("webformatURL")
            if url:
                return ProviderReply(url=url, data={"source": "pixabay-photo"}, units=2)

        return ProviderReply(url=None, data={"source": None}, units=2)
