"""Pipeline session and per-phase data models."""

import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator

from vesper.models.actions import Action
from vesper.models.phase import Phase
from vesper.models.render import RenderJob


class ContentType(StrEnum):
    GUIDED_PRAYER = "guided-prayer"
    SPIRITUAL_MEDITATION = "spiritual-meditation"
    BIBLE_REFLECTION = "bible-reflection"
    NARRATED_PSALM = "narrated-psalm"
    FAITH_MESSAGE = "faith-message"


class TargetDuration(StrEnum):
    SHORT = "3-5min"
    MEDIUM = "5-10min"
    LONG = "10-15min"
    EXTENDED = "15+min"


class EmotionalTrigger(StrEnum):
    HOPE = "hope"
    HEALING = "healing"
    PROTECTION = "protection"
    GRATITUDE = "gratitude"
    INNER_PEACE = "inner-peace"
    STRENGTH = "strength"
    FORGIVENESS = "forgiveness"
    PROSPERITY = "prosperity"
    WISDOM = "wisdom"


# --- Trigger ---


class VideoMetadata(BaseModel):
    """Public metadata of a reference video."""

    video_id: str = Field(..., min_length=1)
    title: str = ""
    channel: str = ""
    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    published_at: str = ""
    duration: str = ""
    tags: list[str] = Field(default_factory=list)
    description: str = ""
    thumbnail_url: str = ""


class Competitor(BaseModel):
    """A competitor video used as a reference."""

    competitor_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    link: str = ""
    metadata: VideoMetadata | None = None
    transcript: str | None = None

    @property
    def is_usable(self) -> bool:
        return bool(self.link.strip()) or bool((self.transcript or "").strip())


class TriggerData(BaseModel):
    """What the user wants to produce."""

    topic: str = ""
    content_type: ContentType = ContentType.GUIDED_PRAYER
    target_duration: TargetDuration = TargetDuration.MEDIUM
    emotional_triggers: set[EmotionalTrigger] = Field(default_factory=set)
    special_notes: str = ""
    competitors: list[Competitor] = Field(default_factory=list)


# --- Planning ---


class PlanningData(BaseModel):
    """The research plan and its approval checkpoint."""

    plan: str = ""
    original_plan: str = ""
    approved: bool = False
    approved_at: datetime | None = None

    @property
    def is_modified(self) -> bool:
        return self.plan != self.original_plan


# --- Intelligence ---


class ResearchFindings(BaseModel):
    facts: list[str] = Field(default_factory=list)
    trivia: list[str] = Field(default_factory=list)
    citations: list[str] = Field(default_factory=list)


class ChannelAnalysis(BaseModel):
    success_patterns: list[str] = Field(default_factory=list)
    retention_themes: list[str] = Field(default_factory=list)
    ideal_duration: str = ""
    engagement_triggers: list[str] = Field(default_factory=list)


class CompetitorAnalysis(BaseModel):
    narrative_structure: str = ""
    retention_hooks: list[str] = Field(default_factory=list)
    viral_elements: list[str] = Field(default_factory=list)


class IntelligenceData(BaseModel):
    research: ResearchFindings = Field(default_factory=ResearchFindings)
    channel_analysis: ChannelAnalysis = Field(default_factory=ChannelAnalysis)
    competitor_analysis: CompetitorAnalysis = Field(default_factory=CompetitorAnalysis)


# --- Creation ---


class CreationOption(BaseModel):
    """One candidate title/thumbnail/hook combination."""

    option_id: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    thumbnail_concept: str = ""
    hook: str = ""
    thumbnail_url: str | None = None
    thumbnail_prompt: str | None = None


class CreationData(BaseModel):
    options: list[CreationOption] = Field(default_factory=list, max_length=3)
    selected_option_id: int | None = None
    script: str = ""

    @field_validator("options")
    @classmethod
    def validate_options(cls, v: list[CreationOption]) -> list[CreationOption]:
        if len(v) == 1:
            raise ValueError("Creation needs 2-3 options, got 1")
        ids = [o.option_id for o in v]
        if len(set(ids)) != len(ids):
            raise ValueError("Option ids must be unique")
        return v

    @model_validator(mode="after")
    def validate_selection(self) -> "CreationData":
        if self.selected_option_id is not None and self.selected_option() is None:
            raise ValueError(f"Selected option {self.selected_option_id} does not exist")
        return self

    def selected_option(self) -> CreationOption | None:
        for option in self.options:
            if option.option_id == self.selected_option_id:
                return option
        return None


# --- Studio ---


class Scene(BaseModel):
    """A timed slice of the script with its visual and audio references."""

    scene_id: int = Field(..., ge=1)
    start: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    end: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    title: str = ""
    narration: str = ""
    visual_suggestion: str = ""
    visual_url: str | None = None
    audio_url: str | None = None
    audio_duration_seconds: int | None = Field(default=None, ge=0)

    @property
    def timestamp(self) -> str:
        return f"{self.start}-{self.end}"


class StudioData(BaseModel):
    scenes: list[Scene] = Field(default_factory=list)
    soundtrack_url: str = ""
    render_job: RenderJob | None = None
    manual_assembly_acknowledged: bool = False


# --- Delivery ---


class DeliveryData(BaseModel):
    title: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    thumbnail_url: str | None = None
    video_url: str | None = None
    published: bool = False
    scheduled_for: datetime | None = None


# --- Session ---


class PipelineSession(BaseModel):
    """The unit of work for one production."""

    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    owner: str = ""
    current_phase: Phase = Phase.TRIGGER
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    trigger: TriggerData = Field(default_factory=TriggerData)
    planning: PlanningData = Field(default_factory=PlanningData)
    intelligence: IntelligenceData = Field(default_factory=IntelligenceData)
    creation: CreationData = Field(default_factory=CreationData)
    studio: StudioData = Field(default_factory=StudioData)
    delivery: DeliveryData = Field(default_factory=DeliveryData)
    actions: dict[str, Action] = Field(default_factory=dict)

    def phase_data(self, phase: Phase) -> BaseModel:
        """Return the data record owned by ``phase``."""
        return getattr(self, phase.value)
