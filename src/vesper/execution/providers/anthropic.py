"""Anthropic Messages API adapter."""

from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    register_provider,
)
from vesper.models.errors import ProviderError, ProviderErrorKind

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"

# Anthropic error body "type" -> kind; takes precedence over the HTTP status.
_ERROR_TYPES = {
    "authentication_error": ProviderErrorKind.INVALID_KEY,
    "permission_error": ProviderErrorKind.PERMISSION_DENIED,
    "not_found_error": ProviderErrorKind.MODEL_NOT_FOUND,
    "rate_limit_error": ProviderErrorKind.RATE_LIMITED,
    "overloaded_error": ProviderErrorKind.RATE_LIMITED,
}


@register_provider("anthropic")
class AnthropicAdapter(ProviderAdapter):
    operations = frozenset({Operation.COMPLETE})

    async def send(self, call: ProviderCall) -> ProviderReply:
        body = {
            "model": call.model,
            "max_tokens": call.max_tokens,
            "messages": [{"role": "user", "content": call.prompt}],
        }
        if call.system:
            body["system"] = call.system

        try:
            data = await self._json(
                "POST",
                API_URL,
                json=body,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": API_VERSION,
                    "content-type": "application/json",
                },
            )
        except ProviderError as e:
            refined = self._refine(e)
            if refined is e:
                raise
            raise refined from e

        content = data.get("content") or []
        texts = [block.get("text", "") for block in content if block.get("type") == "text"]
        text = "".join(texts)
        if not text:
            raise self._malformed("content[0].text")

        usage = data.get("usage") or {}
        units = int(usage.get("input_tokens", 0)) + int(usage.get("output_tokens", 0))
        return ProviderReply(text=text, units=units)

    def _refine(self, e: ProviderError) -> ProviderError:
        preview = e.details.get("body_preview", "")
        for error_type, kind in _ERROR_TYPES.items():
            if error_type in preview:
                if kind != e.kind:
                    return ProviderError(
                        e.message,
                        kind=kind,
                        provider=self.provider_id,
                        status_code=e.status_code,
                        details={"body_preview": preview},
                    )
                break
        return e
