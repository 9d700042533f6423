"""Application configuration using Pydantic BaseSettings."""

from pathlib import Path

from pydantic_settings import BaseSettings

from vesper.models.actions import ExecutionMode


class Settings(BaseSettings):
    """Vesper configuration loaded from environment variables."""

    model_config = {"env_prefix": "VESPER_", "env_file": ".env", "extra": "ignore"}

    # Execution
    mode: ExecutionMode = ExecutionMode.SIMULATED
    request_timeout_seconds: float = 30.0
    simulated_delay_seconds: float = 0.5
    simulated_render_polls: int = 2

    # Provider credentials
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    gemini_api_key: str = ""
    groq_api_key: str = ""
    elevenlabs_api_key: str = ""
    pexels_api_key: str = ""
    pixabay_api_key: str = ""
    unsplash_access_key: str = ""
    azure_speech_key: str = ""
    json2video_api_key: str = ""
    youtube_api_key: str = ""

    # Render job polling
    render_max_attempts: int = 60
    render_poll_interval: float = 5.0

    # Storage
    session_store_dir: Path = Path("/tmp/vesper/sessions")

    # Channel
    channel_name: str = "Mundo da Prece"
    elevenlabs_voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    neural_voice: str = "pt-BR-FranciscaNeural"
    azure_speech_region: str = "eastus"

    def api_key_for(self, provider: str) -> str:
        """Return the configured API key for a provider id, or an empty string."""
        field = {
            "openai": "openai_api_key",
            "anthropic": "anthropic_api_key",
            "google": "gemini_api_key",
            "groq": "groq_api_key",
            "elevenlabs": "elevenlabs_api_key",
            "pexels": "pexels_api_key",
            "pixabay": "pixabay_api_key",
            "unsplash": "unsplash_access_key",
            "azure-speech": "azure_speech_key",
            "json2video": "json2video_api_key",
            "youtube": "youtube_api_key",
        }.get(provider)
        return getattr(self, field) if field else ""

    def provider_options(self, provider: str) -> dict:
        """Extra constructor arguments for a provider adapter."""
        if provider == "azure-speech":
            return {"region": self.azure_speech_region}
        return {}


def get_settings() -> Settings:
    """Return settings instance."""
    return Settings()
