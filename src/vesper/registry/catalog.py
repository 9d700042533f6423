"""Static catalog of providers, models and actions, with cost estimation."""

from enum import StrEnum

from pydantic import BaseModel, Field

from vesper.models.actions import Action, ExecutionMode, ModelRef, Role
from vesper.models.errors import CatalogError, ValidationError
from vesper.models.phase import Phase


class Speed(StrEnum):
    FAST = "fast"
    MEDIUM = "medium"
    SLOW = "slow"

    @property
    def rank(self) -> int:
        return list(Speed).index(self)


class PricingKind(StrEnum):
    PER_1K_UNITS = "per_1k_units"
    PER_CALL = "per_call"
    FREE_TIER = "free_tier"


class PricingRule(BaseModel):
    """How a model turns usage units into USD."""

    model_config = {"frozen": True}

    kind: PricingKind
    unit_price: float = Field(default=0.0, ge=0)

    @classmethod
    def per_1k(cls, price: float) -> "PricingRule":
        return cls(kind=PricingKind.PER_1K_UNITS, unit_price=price)

    @classmethod
    def per_call(cls, price: float) -> "PricingRule":
        return cls(kind=PricingKind.PER_CALL, unit_price=price)

    @classmethod
    def free(cls) -> "PricingRule":
        return cls(kind=PricingKind.FREE_TIER)

    def cost(self, units: int) -> float:
        if self.kind == PricingKind.PER_1K_UNITS:
            return self.unit_price * units / 1000
        if self.kind == PricingKind.PER_CALL:
            return self.unit_price * units
        return 0.0


class ModelSpec(BaseModel):
    model_config = {"frozen": True}

    model_id: str
    name: str
    roles: frozenset[Role]
    speed: Speed
    pricing: PricingRule
    description: str = ""


class ProviderSpec(BaseModel):
    model_config = {"frozen": True}

    provider_id: str
    name: str
    models: tuple[ModelSpec, ...]
    docs_url: str = ""


class ActionDefinition(BaseModel):
    """Definition-time description of an action and its default model."""

    model_config = {"frozen": True}

    action_id: str
    label: str
    phase: Phase
    required_roles: frozenset[Role]
    default: ModelRef
    estimated_units: int = Field(..., ge=0)
    critical: bool = False
    alternates: tuple[ModelRef, ...] = ()


def _model(model_id, name, roles, speed, pricing, description=""):
    return ModelSpec(
        model_id=model_id,
        name=name,
        roles=frozenset(roles),
        speed=speed,
        pricing=pricing,
        description=description,
    )


R = Role

CATALOG: tuple[ProviderSpec, ...] = (
    ProviderSpec(
        provider_id="google",
        name="Google (Gemini)",
        docs_url="https://ai.google.dev",
        models=(
            _model(
                "gemini-2.5-flash",
                "Gemini 2.5 Flash",
                [R.ANALYSIS, R.SEO, R.FAST, R.RESEARCH],
                Speed.FAST,
                PricingRule.per_1k(0.0001),
                "Fast and cheap analysis",
            ),
            _model(
                "gemini-2.0-pro",
                "Gemini 2.0 Pro",
                [R.ANALYSIS, R.RESEARCH, R.WRITING, R.LOGIC],
                Speed.MEDIUM,
                PricingRule.per_1k(0.001),
                "Deep analysis and research",
            ),
            _model(
                "gemini-1.5-pro",
                "Gemini 1.5 Pro",
                [R.ANALYSIS, R.WRITING, R.REASONING],
                Speed.MEDIUM,
                PricingRule.per_1k(0.0005),
                "Long context",
            ),
        ),
    ),
    ProviderSpec(
        provider_id="openai",
        name="OpenAI",
        docs_url="https://platform.openai.com",
        models=(
            _model(
                "gpt-4o",
                "GPT-4o",
                [R.LOGIC, R.REASONING, R.WRITING],
                Speed.MEDIUM,
                PricingRule.per_1k(0.005),
            ),
            _model(
                "gpt-4o-mini",
                "GPT-4o Mini",
                [R.FAST, R.ANALYSIS, R.SEO],
                Speed.FAST,
                PricingRule.per_1k(0.00015),
            ),
            _model(
                "gpt-4-turbo",
                "GPT-4 Turbo",
                [R.LOGIC, R.REASONING, R.WRITING],
                Speed.MEDIUM,
                PricingRule.per_1k(0.01),
            ),
            _model(
                "dall-e-3",
                "DALL-E 3",
                [R.IMAGE_GENERATION],
                Speed.SLOW,
                PricingRule.per_call(0.04),
                "One unit per image",
            ),
        ),
    ),
    ProviderSpec(
        provider_id="anthropic",
        name="Anthropic (Claude)",
        docs_url="https://console.anthropic.com",
        models=(
            _model(
                "claude-3-5-sonnet-latest",
                "Claude 3.5 Sonnet",
                [R.WRITING, R.EMOTION, R.REASONING],
                Speed.MEDIUM,
                PricingRule.per_1k(0.003),
                "Emotional writing",
            ),
            _model(
                "claude-3-opus-latest",
                "Claude 3 Opus",
                [R.WRITING, R.EMOTION, R.REASONING, R.LOGIC],
                Speed.SLOW,
                PricingRule.per_1k(0.015),
            ),
            _model(
                "claude-3-haiku-20240307",
                "Claude 3 Haiku",
                [R.FAST, R.REFINEMENT],
                Speed.FAST,
                PricingRule.per_1k(0.00025),
                "Quick refinements",
            ),
        ),
    ),
    ProviderSpec(
        provider_id="groq",
        name="Groq",
        docs_url="https://console.groq.com",
        models=(
            _model(
                "llama-3.3-70b-versatile",
                "Llama 3.3 70B",
                [R.FAST, R.ANALYSIS, R.WRITING],
                Speed.FAST,
                PricingRule.per_1k(0.0001),
            ),
            _model(
                "mixtral-8x7b-32768",
                "Mixtral 8x7B",
                [R.FAST, R.ANALYSIS, R.LOGIC],
                Speed.FAST,
                PricingRule.per_1k(0.00005),
            ),
        ),
    ),
    ProviderSpec(
        provider_id="elevenlabs",
        name="ElevenLabs",
        docs_url="https://elevenlabs.io",
        models=(
            _model(
                "eleven_multilingual_v2",
                "Multilingual V2",
                [R.SPEECH_SYNTHESIS],
                Speed.MEDIUM,
                PricingRule.per_1k(0.018),
                "Priced per 1000 characters",
            ),
            _model(
                "eleven_turbo_v2",
                "Turbo V2",
                [R.SPEECH_SYNTHESIS, R.FAST],
                Speed.FAST,
                PricingRule.per_1k(0.009),
            ),
        ),
    ),
    ProviderSpec(
        provider_id="azure-speech",
        name="Microsoft Neural Voices (Azure Speech)",
        docs_url="https://learn.microsoft.com/azure/ai-services/speech-service",
        models=(
            _model(
                "neural-tts",
                "Neural TTS (Edge voices)",
                [R.SPEECH_SYNTHESIS, R.FAST],
                Speed.FAST,
                PricingRule.free(),
                "Covered by the Azure free tier",
            ),
        ),
    ),
    ProviderSpec(
        provider_id="pexels",
        name="Pexels",
        docs_url="https://www.pexels.com/api",
        models=(
            _model(
                "pexels-search",
                "Pexels Search",
                [R.STOCK_MEDIA_SEARCH],
                Speed.FAST,
                PricingRule.free(),
            ),
        ),
    ),
    ProviderSpec(
        provider_id="pixabay",
        name="Pixabay",
        docs_url="https://pixabay.com/api/docs",
        models=(
            _model(
                "pixabay-search",
                "Pixabay Search",
                [R.STOCK_MEDIA_SEARCH],
                Speed.FAST,
                PricingRule.free(),
            ),
        ),
    ),
    ProviderSpec(
        provider_id="unsplash",
        name="Unsplash",
        docs_url="https://unsplash.com/documentation",
        models=(
            _model(
                "unsplash-search",
                "Unsplash Photo Search",
                [R.STOCK_MEDIA_SEARCH],
                Speed.FAST,
                PricingRule.free(),
                "Photos only, attribution required",
            ),
        ),
    ),
    ProviderSpec(
        provider_id="json2video",
        name="JSON2Video",
        docs_url="https://json2video.com/docs",
        models=(
            _model(
                "json2video-v2",
                "JSON2Video v2",
                [R.VIDEO_RENDER],
                Speed.SLOW,
                PricingRule.per_call(0.1),
                "One unit per submitted movie",
            ),
        ),
    ),
    ProviderSpec(
        provider_id="youtube",
        name="YouTube Data API",
        docs_url="https://developers.google.com/youtube/v3",
        models=(
            _model(
                "youtube-data-v3",
                "YouTube Data v3",
                [R.VIDEO_METADATA],
                Speed.FAST,
                PricingRule.free(),
            ),
        ),
    ),
)


def _action(action_id, label, phase, roles, provider, model, units, critical=False, alternates=()):
    return ActionDefinition(
        action_id=action_id,
        label=label,
        phase=phase,
        required_roles=frozenset(roles),
        default=ModelRef(provider=provider, model=model),
        estimated_units=units,
        critical=critical,
        alternates=tuple(ModelRef(provider=p, model=m) for p, m in alternates),
    )


ACTIONS: tuple[ActionDefinition, ...] = (
    _action(
        "fetch-video-metadata",
        "Competitor metadata",
        Phase.TRIGGER,
        [R.VIDEO_METADATA],
        "youtube",
        "youtube-data-v3",
        1,
    ),
    _action(
        "deep-research",
        "Deep research",
        Phase.INTELLIGENCE,
        [R.RESEARCH, R.ANALYSIS],
        "google",
        "gemini-2.0-pro",
        8000,
    ),
    _action(
        "analyze-channel",
        "Channel analysis",
        Phase.INTELLIGENCE,
        [R.ANALYSIS],
        "google",
        "gemini-2.5-flash",
        3000,
    ),
    _action(
        "analyze-competitor",
        "Competitor analysis",
        Phase.INTELLIGENCE,
        [R.ANALYSIS, R.RESEARCH],
        "google",
        "gemini-2.0-pro",
        5000,
    ),
    _action(
        "generate-options",
        "Title, hook and thumbnail options",
        Phase.CREATION,
        [R.WRITING, R.EMOTION],
        "anthropic",
        "claude-3-5-sonnet-latest",
        4000,
    ),
    _action(
        "generate-thumbnail",
        "Thumbnail image",
        Phase.CREATION,
        [R.IMAGE_GENERATION],
        "openai",
        "dall-e-3",
        1,
    ),
    _action(
        "generate-script",
        "Script",
        Phase.CREATION,
        [R.WRITING, R.EMOTION],
        "anthropic",
        "claude-3-5-sonnet-latest",
        6000,
        critical=True,
    ),
    _action(
        "refine-script",
        "Script refinement",
        Phase.CREATION,
        [R.REFINEMENT, R.WRITING],
        "anthropic",
        "claude-3-haiku-20240307",
        3000,
    ),
    _action(
        "generate-narration",
        "Scene narration",
        Phase.STUDIO,
        [R.SPEECH_SYNTHESIS],
        "elevenlabs",
        "eleven_multilingual_v2",
        5000,
        alternates=[("azure-speech", "neural-tts")],
    ),
    _action(
        "find-scene-media",
        "Scene stock media",
        Phase.STUDIO,
        [R.STOCK_MEDIA_SEARCH],
        "pexels",
        "pexels-search",
        1,
        alternates=[("pixabay", "pixabay-search"), ("unsplash", "unsplash-search")],
    ),
    _action(
        "render-video",
        "Video render",
        Phase.STUDIO,
        [R.VIDEO_RENDER],
        "json2video",
        "json2video-v2",
        1,
        critical=True,
    ),
    _action(
        "render-status",
        "Render status",
        Phase.STUDIO,
        [R.VIDEO_RENDER],
        "json2video",
        "json2video-v2",
        0,
        critical=True,
    ),
    _action(
        "seo-optimization",
        "SEO metadata",
        Phase.DELIVERY,
        [R.SEO, R.ANALYSIS],
        "google",
        "gemini-2.5-flash",
        2000,
    ),
)


class ModelRegistry:
    """Read-only view over the provider, model and action catalogs."""

    def __init__(
        self,
        providers: tuple[ProviderSpec, ...] = CATALOG,
        actions: tuple[ActionDefinition, ...] = ACTIONS,
    ):
        self._providers = {p.provider_id: p for p in providers}
        self._actions = {a.action_id: a for a in actions}
        for definition in self._actions.values():
            self.get_model(definition.default.provider, definition.default.model)
            for ref in definition.alternates:
                self.get_model(ref.provider, ref.model)

    @property
    def providers(self) -> list[ProviderSpec]:
        return list(self._providers.values())

    @property
    def actions(self) -> list[ActionDefinition]:
        return list(self._actions.values())

    def get_provider(self, provider_id: str) -> ProviderSpec:
        provider = self._providers.get(provider_id)
        if provider is None:
            raise CatalogError(f"Unknown provider: {provider_id}", details={"provider": provider_id})
        return provider

    def get_model(self, provider_id: str, model_id: str) -> ModelSpec:
        provider = self.get_provider(provider_id)
        for model in provider.models:
            if model.model_id == model_id:
                return model
        raise CatalogError(
            f"Unknown model: {provider_id}/{model_id}",
            details={"provider": provider_id, "model": model_id},
        )

    def models_for_roles(self, roles) -> list[ModelRef]:
        """Every model serving at least one of ``roles``, fastest then cheapest first."""
        wanted = set()
        for role in roles:
            try:
                wanted.add(Role(role))
            except ValueError:
                continue
        if not wanted:
            return []

        matches = [
            (provider.provider_id, model)
            for provider in self._providers.values()
            for model in provider.models
            if model.roles & wanted
        ]
        matches.sort(key=lambda m: (m[1].speed.rank, m[1].pricing.unit_price))
        return [ModelRef(provider=p, model=m.model_id) for p, m in matches]

    def estimate_cost(
        self,
        provider_id: str,
        model_id: str,
        units: int,
        mode: ExecutionMode = ExecutionMode.LIVE,
    ) -> float:
        """Estimated USD cost of ``units`` of usage; zero when simulated or free."""
        model = self.get_model(provider_id, model_id)
        if units < 0:
            raise ValidationError(f"Usage units must be non-negative, got {units}")
        if mode == ExecutionMode.SIMULATED:
            return 0.0
        return model.pricing.cost(units)

    def action_definition(self, action_id: str) -> ActionDefinition:
        definition = self._actions.get(action_id)
        if definition is None:
            raise CatalogError(f"Unknown action: {action_id}", details={"action_id": action_id})
        return definition

    def actions_for_phase(self, phase: Phase) -> list[ActionDefinition]:
        return [a for a in self._actions.values() if a.phase == phase]

    def default_selection(self, action_id: str) -> ModelRef:
        return self.action_definition(action_id).default

    def create_action(self, action_id: str) -> Action:
        """Build a per-session action record starting from the default model."""
        definition = self.action_definition(action_id)
        return Action(
            action_id=definition.action_id,
            phase=definition.phase,
            required_roles=definition.required_roles,
            estimated_units=definition.estimated_units,
            critical=definition.critical,
            provider=definition.default.provider,
            model=definition.default.model,
            alternates=definition.alternates,
        )

    def validate_selection(self, action_id: str, provider_id: str, model_id: str) -> ModelSpec:
        """Check that ``provider_id/model_id`` serves one of the action's roles."""
        definition = self.action_definition(action_id)
        model = self.get_model(provider_id, model_id)
        if not model.roles & definition.required_roles:
            raise ValidationError(
                f"{provider_id}/{model_id} cannot serve action {action_id}",
                details={
                    "action_id": action_id,
                    "required_roles": sorted(definition.required_roles),
                },
            )
        return model
