"""Action, capability role and execution result models."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from vesper.models.phase import Phase


class ExecutionMode(StrEnum):
    """The two interchangeable execution strategies."""

    SIMULATED = "simulated"
    LIVE = "live"


class Role(StrEnum):
    """Capability a model can provide."""

    ANALYSIS = "analysis"
    RESEARCH = "research"
    SEO = "seo"
    WRITING = "writing"
    EMOTION = "emotion"
    LOGIC = "logic"
    FAST = "fast"
    REFINEMENT = "refinement"
    REASONING = "reasoning"
    IMAGE_GENERATION = "image-generation"
    SPEECH_SYNTHESIS = "speech-synthesis"
    STOCK_MEDIA_SEARCH = "stock-media-search"
    VIDEO_RENDER = "video-render"
    VIDEO_METADATA = "video-metadata"


class ModelRef(BaseModel):
    """A (provider, model) pair."""

    model_config = {"frozen": True}

    provider: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return f"{self.provider}/{self.model}"


class Action(BaseModel):
    """A unit of work within a phase, with its currently selected model."""

    action_id: str = Field(..., min_length=1)
    phase: Phase
    required_roles: frozenset[Role] = Field(default_factory=frozenset)
    estimated_units: int = Field(default=0, ge=0, description="Tokens, characters or calls")
    critical: bool = False
    provider: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    alternates: tuple[ModelRef, ...] = Field(default=(), description="Tried in order after the selection")

    @property
    def selection(self) -> ModelRef:
        return ModelRef(provider=self.provider, model=self.model)


class ActionResult(BaseModel):
    """Common result shape of every action, regardless of execution mode."""

    action_id: str
    provider: str
    model: str
    mode: ExecutionMode
    simulated: bool
    fallback: bool = False
    output: dict[str, Any] = Field(default_factory=dict)
    units: int = Field(default=0, ge=0)
    cost_usd: float = Field(default=0.0, ge=0)
    completed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
