"""OpenAI and Groq adapters (OpenAI-compatible chat and image APIs)."""

import logging

import httpx
import openai
from openai import AsyncOpenAI

from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    classify_http_error,
    register_provider,
)
from vesper.models.errors import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)


@register_provider("openai")
class OpenAIAdapter(ProviderAdapter):
    """Chat completions and DALL-E images through the openai SDK."""

    operations = frozenset({Operation.COMPLETE, Operation.IMAGE})
    base_url: str | None = None

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(api_key, timeout, http_client)
        # SDK retries are off; the caller decides what to retry.
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=timeout,
            max_retries=0,
            http_client=self._client,
        )

    async def send(self, call: ProviderCall) -> ProviderReply:
        try:
            if call.operation == Operation.IMAGE:
                return await self._image(call)
            return await self._complete(call)
        except openai.APIError as e:
            raise self._translate(e) from e

    async def _complete(self, call: ProviderCall) -> ProviderReply:
        messages = []
        if call.system:
            messages.append({"role": "system", "content": call.system})
        messages.append({"role": "user", "content": call.prompt})

        kwargs = {}
        if call.json_output:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self.client.chat.completions.create(
            model=call.model,
            messages=messages,
            max_tokens=call.max_tokens,
            temperature=0.7,
            **kwargs,
        )
        if not response.choices or not response.choices[0].message.content:
            raise self._malformed("choices[0].message.content")

        units = response.usage.total_tokens if response.usage else 0
        return ProviderReply(text=response.choices[0].message.content, units=units)

    async def _image(self, call: ProviderCall) -> ProviderReply:
        response = await self.client.images.generate(
            model=call.model,
            prompt=call.prompt,
            n=1,
            size=call.params.get("size", "1792x1024"),
            quality=call.params.get("quality", "standard"),
        )
        if not response.data or not response.data[0].url:
            raise self._malformed("data[0].url")
        return ProviderReply(url=response.data[0].url, units=1)

    def _translate(self, e: openai.APIError) -> ProviderError:
        """Map an openai SDK exception to a ProviderError."""
        if isinstance(e, openai.APITimeoutError):
            kind = ProviderErrorKind.TIMEOUT
        elif isinstance(e, openai.APIConnectionError):
            kind = ProviderErrorKind.NETWORK_ERROR
        elif isinstance(e, openai.APIStatusError):
            kind = classify_http_error(e.status_code, str(e.body or e.message))
        else:
            kind = ProviderErrorKind.UNKNOWN

        status_code = getattr(e, "status_code", None)
        logger.debug(f"{self.provider_id} SDK error ({kind}): {e}")
        return ProviderError(
            f"{self.provider_id} request failed: {e.message}",
            kind=kind,
            provider=self.provider_id,
            status_code=status_code,
        )


@register_provider("groq")
class GroqAdapter(OpenAIAdapter):
    """Groq serves an OpenAI-compatible chat endpoint."""

    operations = frozenset({Operation.COMPLETE})
    base_url = "https://api.groq.com/openai/v1"
