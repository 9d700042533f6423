"""Google Gemini generateContent adapter."""

from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    register_provider,
)

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@register_provider("google")
class GeminiAdapter(ProviderAdapter):
    """Gemini text generation; the API key travels as a query parameter."""

    operations = frozenset({Operation.COMPLETE})

    async def send(self, call: ProviderCall) -> ProviderReply:
        body = {
            "contents": [{"parts": [{"text": call.prompt}]}],
            "generationConfig": {"maxOutputTokens": call.max_tokens, "temperature": 0.7},
        }
        if call.system:
            body["systemInstruction"] = {"parts": [{"text": call.system}]}
        if call.json_output:
            body["generationConfig"]["responseMimeType"] = "application/json"

        data = await self._json(
            "POST",
            f"{BASE_URL}/models/{call.model}:generateContent",
            params={"key": self.api_key},
            json=body,
        )

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise self._malformed("candidates[0].content.parts[0].text") from None
        if not text:
            raise self._malformed("candidates[0].content.parts[0].text")

        usage = data.get("usageMetadata") or {}
        return ProviderReply(text=text, units=int(usage.get("totalTokenCount", 0)))
