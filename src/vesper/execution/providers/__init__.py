"""Provider adapters.

Importing this package registers every adapter with ``create_provider``.
"""

from vesper.execution.providers import (  # noqa: F401
    anthropic,
    azure_speech,
    elevenlabs,
    google,
    json2video,
    openai_compatible,
    pexels,
    pixabay,
    unsplash,
    youtube,
)
from vesper.execution.providers.base import (
    Operation,
    ProviderAdapter,
    ProviderCall,
    ProviderReply,
    classify_http_error,
    create_provider,
    registered_providers,
)

__all__ = [
    "Operation",
    "ProviderAdapter",
    "ProviderCall",
    "ProviderReply",
    "classify_http_error",
    "create_provider",
    "registered_providers",
]
