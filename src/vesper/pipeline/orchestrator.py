"""Pipeline orchestrator: the phase state machine and its phase actions."""

import asyncio
import inspect
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from vesper.config import Settings
from vesper.execution.adapter import ExecutionAdapter
from vesper.models.actions import Action, ActionResult, ExecutionMode
from vesper.models.errors import ConfigurationError, ValidationError, VesperError
from vesper.models.guidelines import Guidelines
from vesper.models.outputs import MetadataOutput, OptionsOutput, SeoOutput
from vesper.models.phase import Phase
from vesper.models.pipeline import (
    ChannelAnalysis,
    Competitor,
    CompetitorAnalysis,
    CreationOption,
    PipelineSession,
    ResearchFindings,
    Scene,
)
from vesper.models.render import RenderJob, RenderPoll, RenderStatus
from vesper.pipeline.planning import draft_research_plan
from vesper.pipeline.scenes import parse_scenes, spoken_text
from vesper.polling.poller import RenderJobPoller
from vesper.registry.catalog import ModelRegistry
from vesper.storage.session_store import SessionStore, save_session

logger = logging.getLogger(__name__)

TRIGGER_FIELDS = frozenset(
    {"topic", "content_type", "target_duration", "emotional_triggers", "special_notes"}
)


class PipelineOrchestrator:
    """Owns one PipelineSession and moves it through the six phases.

    State operations are synchronous; phase actions are coroutines that
    delegate all provider work to the execution adapter.
    """

    def __init__(
        self,
        session: PipelineSession,
        adapter: ExecutionAdapter,
        settings: Settings | None = None,
        registry: ModelRegistry | None = None,
        store: SessionStore | None = None,
        guidelines: Guidelines | None = None,
        mode: ExecutionMode | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep=asyncio.sleep,
    ):
        self.session = session
        self.adapter = adapter
        self.settings = settings or adapter.settings
        self.registry = registry or adapter.registry
        self.store = store
        self.guidelines = guidelines or Guidelines()
        self.mode = mode or self.settings.mode
        self._clock = clock
        self._sleep = sleep

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    @property
    def current_phase(self) -> Phase:
        return self.session.current_phase

    def can_advance(self, phase: Phase | None = None) -> bool:
        """Readiness predicate of ``phase`` (default: the current phase)."""
        phase = phase or self.session.current_phase
        s = self.session

        if phase == Phase.TRIGGER:
            return bool(s.trigger.topic.strip()) or any(c.is_usable for c in s.trigger.competitors)
        if phase == Phase.PLANNING:
            return s.planning.approved
        if phase == Phase.INTELLIGENCE:
            return bool(s.intelligence.research.facts)
        if phase == Phase.CREATION:
            return s.creation.selected_option_id is not None and bool(s.creation.script.strip())
        if phase == Phase.STUDIO:
            job = s.studio.render_job
            rendered = job is not None and job.succeeded
            return bool(s.studio.scenes) and (rendered or s.studio.manual_assembly_acknowledged)
        return False

    def blocking_phase(self, target: Phase) -> Phase | None:
        """First phase before ``target`` whose predicate fails, if any."""
        for phase in Phase.ordered()[: target.index]:
            if not self.can_advance(phase):
                return phase
        return None

    def advance(self) -> Phase:
        current = self.session.current_phase
        nxt = current.next()
        if nxt is None:
            raise ValidationError("Delivery is the final phase")
        if not self.can_advance(current):
            raise ValidationError(
                f"Phase {current} is not complete",
                details={"phase": current.value},
            )
        # Earlier phases can be edited after they were left behind.
        blocking = self.blocking_phase(nxt)
        if blocking is not None:
            raise ValidationError(
                f"Cannot enter {nxt}: phase {blocking} is not complete",
                details={"phase": nxt.value, "blocking": blocking.value},
            )
        return self._move_to(nxt)

    def go_back(self, target: Phase | None = None) -> Phase:
        """Move to the previous phase, or any earlier ``target``; data is kept."""
        current = self.session.current_phase
        if target is None:
            target = current.previous()
            if target is None:
                raise ValidationError("Already at the first phase")
        elif target.index >= current.index:
            raise ValidationError(
                f"Cannot go back from {current} to {target}",
                details={"from": current.value, "to": target.value},
            )
        return self._move_to(target)

    def go_to(self, phase: Phase) -> Phase:
        """Jump to ``phase``: backward always, forward only through complete phases."""
        current = self.session.current_phase
        if phase == current:
            return current
        if phase.index < current.index:
            return self.go_back(phase)
        blocking = self.blocking_phase(phase)
        if blocking is not None:
            raise ValidationError(
                f"Cannot enter {phase}: phase {blocking} is not complete",
                details={"phase": phase.value, "blocking": blocking.value},
            )
        return self._move_to(phase)

    def _move_to(self, phase: Phase) -> Phase:
        previous = self.session.current_phase
        self.session.current_phase = phase
        self._touch()
        logger.info(f"Session {self.session.session_id}: {previous} -> {phase}")
        return phase

    def _require_reachable(self, phase: Phase) -> None:
        blocking = self.blocking_phase(phase)
        if blocking is not None:
            raise ValidationError(
                f"Phase {blocking} must be complete before working on {phase}",
                details={"phase": phase.value, "blocking": blocking.value},
            )

    # ------------------------------------------------------------------
    # Trigger
    # ------------------------------------------------------------------

    def update_trigger(self, **fields) -> None:
        unknown = set(fields) - TRIGGER_FIELDS
        if unknown:
            raise ValidationError(f"Unknown trigger fields: {sorted(unknown)}")
        data = self.session.trigger.model_dump()
        data.update(fields)
        try:
            updated = type(self.session.trigger).model_validate(data)
        except ValueError as e:
            raise ValidationError(f"Invalid trigger data: {e}") from e
        self.session.trigger = updated
        self._touch()

    def add_competitor(self, link: str = "", transcript: str | None = None) -> Competitor:
        competitor = Competitor(link=link.strip(), transcript=transcript)
        if not competitor.is_usable:
            raise ValidationError("A competitor needs a link or a transcript")
        self.session.trigger.competitors.append(competitor)
        self._touch()
        return competitor

    def remove_competitor(self, competitor_id: str) -> None:
        competitors = self.session.trigger.competitors
        remaining = [c for c in competitors if c.competitor_id != competitor_id]
        if len(remaining) == len(competitors):
            raise ValidationError(f"Competitor {competitor_id} not found")
        self.session.trigger.competitors = remaining
        self._touch()

    async def extract_competitor_metadata(self, competitor_id: str) -> ActionResult:
        competitor = self._competitor(competitor_id)
        if not competitor.link:
            raise ValidationError(f"Competitor {competitor_id} has no link")
        result = await self._execute("fetch-video-metadata", {"link": competitor.link})
        competitor.metadata = MetadataOutput.model_validate(result.output).metadata
        self._touch()
        return result

    def _competitor(self, competitor_id: str) -> Competitor:
        for competitor in self.session.trigger.competitors:
            if competitor.competitor_id == competitor_id:
                return competitor
        raise ValidationError(f"Competitor {competitor_id} not found")

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def draft_plan(self) -> str:
        """Draft the research plan locally and reset its baseline."""
        self._require_reachable(Phase.PLANNING)
        plan = draft_research_plan(
            self.session.trigger, self.guidelines, self.settings.channel_name
        )
        self.session.planning.plan = plan
        self.session.planning.original_plan = plan
        self._touch()
        return plan

    def edit_plan(self, text: str) -> None:
        if not text.strip():
            raise ValidationError("The research plan cannot be empty")
        self.session.planning.plan = text
        self._touch()

    def approve_planning(self) -> None:
        """Approve the plan; approving twice keeps the first approval time."""
        planning = self.session.planning
        if not planning.plan.strip():
            raise ValidationError("Draft a research plan before approving it")
        if planning.approved:
            return
        planning.approved = True
        planning.approved_at = datetime.now(UTC)
        self._touch()
        logger.info(f"Session {self.session.session_id}: research plan approved")

    # ------------------------------------------------------------------
    # Intelligence
    # ------------------------------------------------------------------

    async def run_intelligence(self) -> list[ActionResult]:
        self._require_reachable(Phase.INTELLIGENCE)
        results = [
            await self._regenerate_research(),
            await self._regenerate_channel_analysis(),
        ]
        if self.session.trigger.competitors:
            results.append(await self._regenerate_competitor_analysis())
        return results

    async def _regenerate_research(self) -> ActionResult:
        result = await self._execute("deep-research", self._research_payload())
        self.session.intelligence.research = ResearchFindings.model_validate(result.output)
        self._touch()
        return result

    async def _regenerate_channel_analysis(self) -> ActionResult:
        t = self.session.trigger
        payload = {
            "topic": t.topic,
            "content_type": t.content_type.value,
            "channel_name": self.settings.channel_name,
        }
        result = await self._execute("analyze-channel", payload)
        self.session.intelligence.channel_analysis = ChannelAnalysis.model_validate(result.output)
        self._touch()
        return result

    async def _regenerate_competitor_analysis(self) -> ActionResult:
        competitors = self.session.trigger.competitors
        if not competitors:
            raise ValidationError("There are no competitors to analyze")
        payload = {
            "topic": self.session.trigger.topic,
            "competitors": [
                {
                    "link": c.link,
                    "title": c.metadata.title if c.metadata else "",
                    "transcript": c.transcript or "",
                }
                for c in competitors
            ],
        }
        result = await self._execute("analyze-competitor", payload)
        self.session.intelligence.competitor_analysis = CompetitorAnalysis.model_validate(
            result.output
        )
        self._touch()
        return result

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def generate_options(self) -> ActionResult:
        self._require_reachable(Phase.CREATION)
        result = await self._execute("generate-options", self._options_payload())
        fresh = OptionsOutput.model_validate(result.output).options
        creation = self.session.creation
        selected = creation.selected_option()
        if selected is None:
            creation.selected_option_id = None
            creation.options = fresh
        else:
            # Keep the chosen option and its id; fill the other slots with new ones.
            next_id = max(o.option_id for o in creation.options) + 1
            others = [
                option.model_copy(update={"option_id": next_id + i})
                for i, option in enumerate(fresh[:2])
            ]
            creation.options = [selected, *others]
        self._touch()
        return result

    def select_option(self, option_id: int) -> CreationOption:
        creation = self.session.creation
        for option in creation.options:
            if option.option_id == option_id:
                creation.selected_option_id = option_id
                self._touch()
                return option
        raise ValidationError(f"Option {option_id} does not exist")

    async def generate_thumbnails(
        self, option_ids: list[int] | None = None
    ) -> dict[int, ActionResult | VesperError]:
        """Generate thumbnails concurrently; each option succeeds or fails on its own."""
        options = self.session.creation.options
        if not options:
            raise ValidationError("Generate options before thumbnails")
        ids = option_ids or [o.option_id for o in options]
        targets = [self._option(i) for i in ids]

        outcomes = await asyncio.gather(
            *(self._thumbnail(option) for option in targets), return_exceptions=True
        )
        results: dict[int, ActionResult | VesperError] = {}
        for option, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException) and not isinstance(outcome, VesperError):
                raise outcome
            if isinstance(outcome, VesperError):
                logger.warning(f"Thumbnail for option {option.option_id} failed: {outcome.message}")
            results[option.option_id] = outcome
        self._touch()
        return results

    async def generate_thumbnail(self, option_id: int) -> ActionResult:
        result = await self._thumbnail(self._option(option_id))
        self._touch()
        return result

    async def _thumbnail(self, option: CreationOption) -> ActionResult:
        payload = {
            "option_id": option.option_id,
            "title": option.title,
            "thumbnail_concept": option.thumbnail_concept,
            "thumbnail_prompt": option.thumbnail_prompt or "",
        }
        result = await self._execute("generate-thumbnail", payload)
        if result.output.get("image_url"):
            option.thumbnail_url = result.output["image_url"]
        return result

    def _option(self, option_id: int) -> CreationOption:
        for option in self.session.creation.options:
            if option.option_id == option_id:
                return option
        raise ValidationError(f"Option {option_id} does not exist")

    async def generate_script(self) -> ActionResult:
        self._require_reachable(Phase.CREATION)
        option = self.session.creation.selected_option()
        if option is None:
            raise ValidationError("Select an option before generating the script")
        t = self.session.trigger
        payload = {
            "topic": t.topic,
            "content_type": t.content_type.value,
            "target_duration": t.target_duration.value,
            "emotional_triggers": sorted(t.emotional_triggers),
            "special_notes": t.special_notes,
            "title": option.title,
            "hook": option.hook,
            "research": self.session.intelligence.research.model_dump(),
            "guidelines": self.guidelines.model_dump(),
            "channel_name": self.settings.channel_name,
        }
        result = await self._execute("generate-script", payload)
        self.session.creation.script = result.output["script"]
        self._touch()
        self._warn_banned_words(self.session.creation.script)
        return result

    async def refine_script(self) -> ActionResult:
        script = self.session.creation.script
        if not script.strip():
            raise ValidationError("There is no script to refine")
        payload = {"script": script, "guidelines": self.guidelines.model_dump()}
        result = await self._execute("refine-script", payload)
        self.session.creation.script = result.output["script"]
        self._touch()
        return result

    def update_script(self, text: str) -> None:
        self.session.creation.script = text
        self._touch()

    def _warn_banned_words(self, text: str) -> None:
        banned = self.guidelines.banned_words_in(text)
        if banned:
            logger.warning(f"Script contains blacklisted words: {', '.join(banned)}")

    # ------------------------------------------------------------------
    # Studio
    # ------------------------------------------------------------------

    def parse_scenes(self) -> list[Scene]:
        self._require_reachable(Phase.STUDIO)
        scenes = parse_scenes(self.session.creation.script)
        if not scenes:
            raise ValidationError("The script has no content to split into scenes")
        self.session.studio.scenes = scenes
        self._touch()
        return scenes

    async def generate_narration(self, scene_id: int) -> ActionResult:
        scene = self._scene(scene_id)
        payload = {
            "scene_id": scene.scene_id,
            "text": spoken_text(scene.narration),
            "voice_id": self.settings.elevenlabs_voice_id,
            "neural_voice": self.settings.neural_voice,
        }
        result = await self._execute("generate-narration", payload)
        scene.audio_url = result.output.get("audio_url")
        scene.audio_duration_seconds = result.output.get("duration_seconds")
        self._touch()
        return result

    async def find_scene_media(self, scene_id: int) -> ActionResult:
        scene = self._scene(scene_id)
        payload = {"scene_id": scene.scene_id, "query": scene.visual_suggestion}
        result = await self._execute("find-scene-media", payload)
        if result.output.get("visual_url"):
            scene.visual_url = result.output["visual_url"]
        self._touch()
        return result

    def set_soundtrack(self, url: str) -> None:
        self.session.studio.soundtrack_url = url.strip()
        self._touch()

    def acknowledge_manual_assembly(self) -> None:
        self.session.studio.manual_assembly_acknowledged = True
        self._touch()

    async def render_video(self, cancel_event: asyncio.Event | None = None) -> RenderJob:
        """Submit the render and poll it to a terminal status.

        Render errors are terminal; a new call submits a new job.
        """
        self._require_reachable(Phase.STUDIO)
        studio = self.session.studio
        if not studio.scenes:
            raise ValidationError("Split the script into scenes before rendering")
        if studio.render_job is not None and not studio.render_job.is_terminal:
            raise ValidationError(f"Render job {studio.render_job.job_id} is still in progress")

        payload = {
            "scenes": [
                {
                    "timestamp": scene.timestamp,
                    "visual_url": scene.visual_url,
                    "audio_url": scene.audio_url,
                }
                for scene in studio.scenes
            ],
            "soundtrack_url": studio.soundtrack_url,
        }
        submission = await self._execute("render-video", payload, cancel_event)

        poller = RenderJobPoller(self._poll_render, clock=self._clock, sleep=self._sleep)
        job = poller.submitted(
            submission.output["job_id"],
            max_attempts=self.settings.render_max_attempts,
            poll_interval=self.settings.render_poll_interval,
        )
        studio.render_job = job
        self._touch()
        logger.info(f"Session {self.session.session_id}: render job {job.job_id} submitted")

        try:
            await poller.wait(job, cancel_event)
        finally:
            self._touch()
        return job

    async def _poll_render(self, job_id: str) -> RenderPoll:
        result = await self._execute("render-status", {"job_id": job_id})
        return RenderPoll.model_validate(result.output)

    def _scene(self, scene_id: int) -> Scene:
        for scene in self.session.studio.scenes:
            if scene.scene_id == scene_id:
                return scene
        raise ValidationError(f"Scene {scene_id} does not exist")

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def prepare_delivery(self) -> ActionResult:
        self._require_reachable(Phase.DELIVERY)
        result = await self._execute("seo-optimization", self._seo_payload())
        seo = SeoOutput.model_validate(result.output)
        delivery = self.session.delivery
        option = self.session.creation.selected_option()
        job = self.session.studio.render_job

        delivery.title = seo.title
        delivery.description = seo.description
        delivery.tags = seo.tags
        delivery.thumbnail_url = option.thumbnail_url if option else None
        delivery.video_url = job.result_url if job and job.status == RenderStatus.DONE else None
        self._touch()
        return result

    def mark_published(self, scheduled_for: datetime | None = None) -> None:
        if self.session.current_phase != Phase.DELIVERY:
            raise ValidationError("Only a session in delivery can be published")
        self.session.delivery.published = True
        self.session.delivery.scheduled_for = scheduled_for
        self._touch()
        logger.info(f"Session {self.session.session_id}: marked as published")

    # ------------------------------------------------------------------
    # Regeneration
    # ------------------------------------------------------------------

    async def regenerate(self, phase: Phase, field: str) -> ActionResult | None:
        """Replace exactly one field of one phase, leaving everything else intact."""
        key = (Phase(phase), field)
        if key == (Phase.PLANNING, "plan"):
            self.draft_plan()
            return None
        if key == (Phase.STUDIO, "scenes"):
            self.parse_scenes()
            return None

        regenerators = {
            (Phase.INTELLIGENCE, "research"): self._regenerate_research,
            (Phase.INTELLIGENCE, "channel_analysis"): self._regenerate_channel_analysis,
            (Phase.INTELLIGENCE, "competitor_analysis"): self._regenerate_competitor_analysis,
            (Phase.CREATION, "options"): self.generate_options,
            (Phase.CREATION, "script"): self.generate_script,
            (Phase.DELIVERY, "description"): lambda: self._regenerate_delivery("description"),
            (Phase.DELIVERY, "tags"): lambda: self._regenerate_delivery("tags"),
        }
        regenerator = regenerators.get(key)
        if regenerator is None:
            raise ValidationError(
                f"Cannot regenerate {field} of {phase}",
                details={"phase": key[0].value, "field": field},
            )
        self._require_reachable(key[0])
        logger.info(f"Session {self.session.session_id}: regenerating {key[0]}.{field}")
        return await regenerator()

    async def _regenerate_delivery(self, field: str) -> ActionResult:
        result = await self._execute("seo-optimization", self._seo_payload())
        seo = SeoOutput.model_validate(result.output)
        setattr(self.session.delivery, field, getattr(seo, field))
        self._touch()
        return result

    # ------------------------------------------------------------------
    # Models and mode
    # ------------------------------------------------------------------

    def action(self, action_id: str) -> Action:
        """The session's record for ``action_id``, created from its definition on first use."""
        record = self.session.actions.get(action_id)
        if record is None:
            record = self.registry.create_action(action_id)
            self.session.actions[action_id] = record
        return record

    def select_model(self, action_id: str, provider: str, model: str) -> Action:
        self.registry.validate_selection(action_id, provider, model)
        record = self.action(action_id)
        record.provider = provider
        record.model = model
        self._touch()
        logger.info(f"Session {self.session.session_id}: {action_id} now uses {provider}/{model}")
        return record

    def estimate_phase_cost(self, phase: Phase) -> float:
        """Estimated USD cost of every action of ``phase`` with the current selections."""
        total = 0.0
        for definition in self.registry.actions_for_phase(phase):
            record = self.action(definition.action_id)
            total += self.registry.estimate_cost(
                record.provider, record.model, record.estimated_units, self.mode
            )
        return total

    async def switch_mode(self, mode: ExecutionMode, health_check=None) -> ExecutionMode:
        """Switch execution mode; going live requires a passing health check."""
        mode = ExecutionMode(mode)
        if mode == ExecutionMode.LIVE:
            if health_check is None:
                raise ConfigurationError("Switching to live mode requires a health check")
            healthy = health_check()
            if inspect.isawaitable(healthy):
                healthy = await healthy
            if not healthy:
                raise ConfigurationError(
                    "Critical dependencies are not reachable; staying in simulated mode"
                )
        previous, self.mode = self.mode, mode
        logger.info(f"Session {self.session.session_id}: mode {previous} -> {mode}")
        return mode

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _execute(
        self, action_id: str, payload: dict, cancel_event: asyncio.Event | None = None
    ) -> ActionResult:
        record = self.action(action_id)
        return await self.adapter.execute(
            record, record.provider, record.model, payload, self.mode, cancel_event
        )

    def _research_payload(self) -> dict:
        t = self.session.trigger
        return {
            "topic": t.topic,
            "content_type": t.content_type.value,
            "emotional_triggers": sorted(t.emotional_triggers),
            "plan": self.session.planning.plan,
        }

    def _options_payload(self) -> dict:
        t = self.session.trigger
        return {
            "topic": t.topic,
            "content_type": t.content_type.value,
            "target_duration": t.target_duration.value,
            "emotional_triggers": sorted(t.emotional_triggers),
            "research": self.session.intelligence.research.model_dump(),
        }

    def _seo_payload(self) -> dict:
        option = self.session.creation.selected_option()
        return {
            "topic": self.session.trigger.topic,
            "title": option.title if option else "",
            "script": self.session.creation.script,
            "channel_name": self.settings.channel_name,
        }

    def _touch(self) -> None:
        self.session.updated_at = datetime.now(UTC)
        if self.store is not None:
            save_session(self.store, self.session)
