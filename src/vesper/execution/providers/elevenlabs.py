"""ElevenLabs text-to-speech adapter."""

import base64

from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    register_provider,
)

BASE_URL = "https://api.elevenlabs.io/v1"
WORDS_PER_MINUTE = 150


def estimate_speech_seconds(text: str) -> int:
    """Spoken duration of ``text`` at a calm narration pace."""
    words = len(text.split())
    return round(words / WORDS_PER_MINUTE * 60)


@register_provider("elevenlabs")
class ElevenLabsAdapter(ProviderAdapter):
    """Returns the synthesized audio inline as a base64 data url."""

    operations = frozenset({Operation.SPEECH})

    async def send(self, call: ProviderCall) -> ProviderReply:
        voice_id = call.params.get("voice_id", "21m00Tcm4TlvDq8ikWAM")
        response = await self._request(
            "POST",
            f"{BASE_URL}/text-to-speech/{voice_id}",
            headers={
                "xi-api-key": self.api_key,
                "Content-Type": "application/json",
                "Accept": "audio/mpeg",
            },
            json={
                "text": call.prompt,
                "model_id": call.model,
                "voice_settings": {"stability": 0.5, "similarity_boost": 0.75},
            },
        )
        if not response.content:
            raise self._malformed("audio content")

        audio = base64.b64encode(response.content).decode("ascii")
        return ProviderReply(
            url=f"data:audio/mpeg;base64,{audio}",
            data={"duration_seconds": estimate_speech_seconds(call.prompt)},
            units=len(call.prompt),
        )
