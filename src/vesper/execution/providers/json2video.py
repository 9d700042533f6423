"""JSON2Video render adapter: submit a movie project and poll its status."""

from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    register_provider,
)

BASE_URL = "https://api.json2video.com/v2"
BACKGROUND_COLOR = "#1a2234"


def build_movie(scenes: list[dict], soundtrack_url: str = "") -> dict:
    """Translate scenes into a JSON2Video movie project."""
    movie_scenes = []
    for scene in scenes:
        if scene.get("visual_url"):
            kind = "image" if scene.get("visual_kind") == "image" else "video"
            elements = [{"type": kind, "src": scene["visual_url"], "duration": "auto"}]
        else:
            elements = [{"type": "color", "color": BACKGROUND_COLOR}]
        if scene.get("audio_url"):
            elements.append({"type": "audio", "src": scene["audio_url"], "volume": 1})
        movie_scenes.append({"comment": scene.get("timestamp", ""), "elements": elements})

    movie = {"resolution": "full-hd", "quality": "high", "fps": 30, "scenes": movie_scenes}
    if soundtrack_url:
        movie["elements"] = [
            {"type": "audio", "src": soundtrack_url, "volume": 0.3, "loop": -1}
        ]
    return movie


@register_provider("json2video")
class Json2VideoAdapter(ProviderAdapter):
    operations = frozenset({Operation.RENDER_SUBMIT, Operation.RENDER_STATUS})

    async def send(self, call: ProviderCall) -> ProviderReply:
        headers = {"x-api-key": self.api_key}

        if call.operation == Operation.RENDER_SUBMIT:
            movie = build_movie(call.params.get("scenes") or [], call.params.get("soundtrack_url", ""))
            data = await self._json("POST", f"{BASE_URL}/movies", json=movie, headers=headers)
            project = data.get("project")
            if not project:
                raise self._malformed("project id")
            return ProviderReply(data={"job_id": str(project)}, units=1)

        job_id = call.params["job_id"]
        data = await self._json("GET", f"{BASE_URL}/movies/{job_id}", headers=headers)
        # Some responses nest the movie under "movie".
        movie = data["movie"] if isinstance(data.get("movie"), dict) else data
        status = movie.get("status")
        if not status:
            raise self._malformed("status")
        return ProviderReply(url=movie.get("url") or None, data={"status": str(status)})
