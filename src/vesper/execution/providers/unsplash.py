"""Unsplash photo search adapter."""

from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    register_provider,
)

SEARCH_URL = "https://api.unsplash.com/search/photos"


@register_provider("unsplash")
class UnsplashAdapter(ProviderAdapter):
    """Photos only; Unsplash requires crediting the photographer."""

    operations = frozenset({Operation.MEDIA_SEARCH})

    async def send(self, call: ProviderCall) -> ProviderReply:
        data = await self._json(
            "GET",
            SEARCH_URL,
            params={"query": call.prompt, "per_page": 1, "orientation": "landscape"},
            headers={"Authorization": f"Client-ID {self.api_key}", "Accept-Version": "v1"},
        )
        for photo in data.get("results") or []:
            urls = photo.get("urls") or {}
            url = urls.get("regular") or urls.get("full")
            if url:
                author = (photo.get("user") or {}).get("name") or "Unsplash"
                credit = f"Photo by {author} on Unsplash"
                return ProviderReply(
                    url=url,
                    data={"source": "unsplash-photo", "attribution": credit},
                    units=1,
                )
        return ProviderReply(url=None, data={"source": None}, units=1)
