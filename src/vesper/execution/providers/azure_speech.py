"""Microsoft neural voices (the Edge TTS voices) through Azure Speech."""

import base64
from xml.sax.saxutils import escape

import httpx

from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    register_provider,
)
from vesper.execution.providers.elevenlabs import estimate_speech_seconds

MAX_CHARS = 5000
DEFAULT_VOICE = "pt-BR-FranciscaNeural"


def build_ssml(text: str, voice: str, rate: str = "-5%", pitch: str = "+0Hz") -> str:
    return (
        '<speak version="1.0" xmlns="http://www.w3.org/2001/10/synthesis" xml:lang="pt-BR">'
        f'<voice name="{escape(voice)}">'
        f'<prosody rate="{escape(rate)}" pitch="{escape(pitch)}">{escape(text)}</prosody>'
        "</voice></speak>"
    )


@register_provider("azure-speech")
class AzureSpeechAdapter(ProviderAdapter):
    """Synthesizes SSML and returns the mp3 inline as a base64 data url."""

    operations = frozenset({Operation.SPEECH})

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        region: str = "eastus",
    ):
        super().__init__(api_key, timeout=timeout, http_client=http_client)
        self.region = region

    async def send(self, call: ProviderCall) -> ProviderReply:
        text = call.prompt[:MAX_CHARS]
        voice = call.params.get("neural_voice") or DEFAULT_VOICE
        response = await self._request(
            "POST",
            f"https://{self.region}.tts.speech.microsoft.com/cognitiveservices/v1",
            headers={
                "Ocp-Apim-Subscription-Key": self.api_key,
                "Content-Type": "application/ssml+xml",
                "X-Microsoft-OutputFormat": "audio-16khz-128kbitrate-mono-mp3",
            },
            content=build_ssml(text, voice).encode("utf-8"),
        )
        if not response.content:
            raise self._malformed("audio content")

        audio = base64.b64encode(response.content).decode("ascii")
        return ProviderReply(
            url=f"data:audio/mpeg;base64,{audio}",
            data={"duration_seconds": estimate_speech_seconds(text), "voice": voice},
            units=len(text),
        )
