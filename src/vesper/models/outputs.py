"""Output schemas of each action.

Simulated and live execution both validate against these, so the
orchestrator can treat either result the same way.
"""

from pydantic import BaseModel, Field

from vesper.models.pipeline import (
    ChannelAnalysis,
    CompetitorAnalysis,
    CreationOption,
    ResearchFindings,
    VideoMetadata,
)
from vesper.models.render import RenderPoll


class MetadataOutput(BaseModel):
    metadata: VideoMetadata | None = None


class OptionsOutput(BaseModel):
    options: list[CreationOption] = Field(..., min_length=2, max_length=3)


class ThumbnailOutput(BaseModel):
    image_url: str | None = None


class ScriptOutput(BaseModel):
    script: str = Field(..., min_length=1)


class NarrationOutput(BaseModel):
    audio_url: str | None = None
    duration_seconds: int | None = Field(default=None, ge=0)


class MediaOutput(BaseModel):
    visual_url: str | None = None
    source: str | None = None
    attribution: str | None = None


class RenderSubmission(BaseModel):
    job_id: str = Field(..., min_length=1)


class SeoOutput(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    tags: list[str] = Field(default_factory=list)


OUTPUT_MODELS: dict[str, type[BaseModel]] = {
    "fetch-video-metadata": MetadataOutput,
    "deep-research": ResearchFindings,
    "analyze-channel": ChannelAnalysis,
    "analyze-competitor": CompetitorAnalysis,
    "generate-options": OptionsOutput,
    "generate-thumbnail": ThumbnailOutput,
    "generate-script": ScriptOutput,
    "refine-script": ScriptOutput,
    "generate-narration": NarrationOutput,
    "find-scene-media": MediaOutput,
    "render-video": RenderSubmission,
    "render-status": RenderPoll,
    "seo-optimization": SeoOutput,
}
