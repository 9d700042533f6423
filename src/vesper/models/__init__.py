"""Data models for Vesper."""

from vesper.models.actions import Action, ActionResult, ExecutionMode, ModelRef, Role
from vesper.models.errors import (
    CatalogError,
    ConfigurationError,
    ErrorResponse,
    InconsistentState,
    OperationCancelled,
    ProviderError,
    ProviderErrorKind,
    RenderError,
    RenderExplicitFailure,
    RenderTimeout,
    ValidationError,
    VesperError,
)
from vesper.models.guidelines import Guidelines
from vesper.models.phase import Phase
from vesper.models.pipeline import (
    ChannelAnalysis,
    Competitor,
    CompetitorAnalysis,
    ContentType,
    CreationData,
    CreationOption,
    DeliveryData,
    EmotionalTrigger,
    IntelligenceData,
    PipelineSession,
    PlanningData,
    ResearchFindings,
    Scene,
    StudioData,
    TargetDuration,
    TriggerData,
    VideoMetadata,
)
from vesper.models.render import RenderJob, RenderPoll, RenderStatus

__all__ = [
    "Action",
    "ActionResult",
    "CatalogError",
    "ChannelAnalysis",
    "Competitor",
    "CompetitorAnalysis",
    "ConfigurationError",
    "ContentType",
    "CreationData",
    "CreationOption",
    "DeliveryData",
    "EmotionalTrigger",
    "ErrorResponse",
    "ExecutionMode",
    "Guidelines",
    "InconsistentState",
    "IntelligenceData",
    "ModelRef",
    "OperationCancelled",
    "Phase",
    "PipelineSession",
    "PlanningData",
    "ProviderError",
    "ProviderErrorKind",
    "RenderError",
    "RenderExplicitFailure",
    "RenderJob",
    "RenderPoll",
    "RenderStatus",
    "RenderTimeout",
    "ResearchFindings",
    "Role",
    "Scene",
    "StudioData",
    "TargetDuration",
    "TriggerData",
    "ValidationError",
    "VesperError",
    "VideoMetadata",
]
