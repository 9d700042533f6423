"""Provider adapter base class, call/reply shapes and error classification."""

import logging
from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any

import httpx
from pydantic import BaseModel, Field

from vesper.models.errors import CatalogError, ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)


class Operation(StrEnum):
    """What a provider is asked to do, independent of its wire format."""

    COMPLETE = "complete"
    IMAGE = "image"
    SPEECH = "speech"
    MEDIA_SEARCH = "media-search"
    VIDEO_METADATA = "video-metadata"
    RENDER_SUBMIT = "render-submit"
    RENDER_STATUS = "render-status"


class ProviderCall(BaseModel):
    """A provider-neutral request built by an action handler."""

    operation: Operation
    model: str
    prompt: str = ""
    system: str = ""
    json_output: bool = False
    max_tokens: int = Field(default=2048, gt=0)
    params: dict[str, Any] = Field(default_factory=dict)


class ProviderReply(BaseModel):
    """A provider-neutral response: text, a url, or structured data."""

    text: str | None = None
    url: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    units: int = Field(default=0, ge=0)


_QUOTA_MARKERS = ("insufficient_quota", "quota", "resource_exhausted", "billing")
_KEY_MARKERS = ("api_key_invalid", "invalid api key", "invalid_api_key", "invalid x-api-key")


def classify_http_error(status_code: int, body: str = "") -> ProviderErrorKind:
    """Map an HTTP status and error body to a provider error kind."""
    text = body.lower()
    if status_code == 401:
        return ProviderErrorKind.INVALID_KEY
    if status_code == 403:
        if any(m in text for m in _QUOTA_MARKERS):
            return ProviderErrorKind.QUOTA_EXCEEDED
        return ProviderErrorKind.PERMISSION_DENIED
    if status_code == 402:
        return ProviderErrorKind.QUOTA_EXCEEDED
    if status_code == 404:
        return ProviderErrorKind.MODEL_NOT_FOUND
    if status_code == 429:
        if any(m in text for m in _QUOTA_MARKERS):
            return ProviderErrorKind.QUOTA_EXCEEDED
        return ProviderErrorKind.RATE_LIMITED
    if status_code == 400 and any(m in text for m in _KEY_MARKERS):
        return ProviderErrorKind.INVALID_KEY
    if status_code in (408, 504):
        return ProviderErrorKind.TIMEOUT
    if status_code in (502, 503):
        return ProviderErrorKind.NETWORK_ERROR
    if status_code == 529:
        return ProviderErrorKind.RATE_LIMITED
    return ProviderErrorKind.UNKNOWN


class ProviderAdapter(ABC):
    """Translates provider-neutral calls to one provider's wire protocol."""

    provider_id: str = ""
    operations: frozenset[Operation] = frozenset()

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    async def call(self, call: ProviderCall) -> ProviderReply:
        if call.operation not in self.operations:
            raise CatalogError(
                f"Provider {self.provider_id} does not support {call.operation}",
                details={"provider": self.provider_id, "operation": call.operation.value},
            )
        return await self.send(call)

    @abstractmethod
    async def send(self, call: ProviderCall) -> ProviderReply:
        """Issue the wire request for ``call`` and normalize the answer."""

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send one HTTP request, turning every failure into a ProviderError."""
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderError(
                f"{self.provider_id} request timed out",
                kind=ProviderErrorKind.TIMEOUT,
                provider=self.provider_id,
            ) from e
        except httpx.TransportError as e:
            raise ProviderError(
                f"{self.provider_id} unreachable: {e}",
                kind=ProviderErrorKind.NETWORK_ERROR,
                provider=self.provider_id,
            ) from e

        if response.status_code >= 400:
            body = response.text
            kind = classify_http_error(response.status_code, body)
            logger.debug(f"{self.provider_id} HTTP {response.status_code}: {body[:200]}")
            raise ProviderError(
                f"{self.provider_id} returned HTTP {response.status_code}",
                kind=kind,
                provider=self.provider_id,
                status_code=response.status_code,
                details={"body_preview": body[:200]},
            )
        return response

    async def _json(self, method: str, url: str, **kwargs) -> dict:
        response = await self._request(method, url, **kwargs)
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"{self.provider_id} returned a non-JSON body",
                kind=ProviderErrorKind.UNKNOWN,
                provider=self.provider_id,
                status_code=response.status_code,
            ) from e
        if not isinstance(data, dict):
            raise ProviderError(
                f"{self.provider_id} returned an unexpected JSON shape",
                provider=self.provider_id,
                status_code=response.status_code,
            )
        return data

    def _malformed(self, what: str) -> ProviderError:
        return ProviderError(
            f"{self.provider_id} reply is missing {what}",
            kind=ProviderErrorKind.UNKNOWN,
            provider=self.provider_id,
        )


# Registry of available provider adapters
_PROVIDERS: dict[str, type[ProviderAdapter]] = {}


def register_provider(name: str):
    """Decorator to register a provider adapter class."""

    def decorator(cls: type[ProviderAdapter]):
        cls.provider_id = name
        _PROVIDERS[name] = cls
        return cls

    return decorator


def registered_providers() -> list[str]:
    return sorted(_PROVIDERS)


def create_provider(
    provider_id: str,
    api_key: str,
    timeout: float = 30.0,
    http_client: httpx.AsyncClient | None = None,
    **options,
) -> ProviderAdapter:
    """Instantiate the adapter registered under ``provider_id``."""
    adapter_class = _PROVIDERS.get(provider_id)
    if adapter_class is None:
        raise CatalogError(
            f"No adapter for provider: {provider_id}", details={"provider": provider_id}
        )
    return adapter_class(api_key=api_key, timeout=timeout, http_client=http_client, **options)
