"""Tests for the pipeline orchestrator (simulated mode, fake clock)."""

import asyncio

import pytest

from tests.conftest import drive_to
from vesper.models.actions import ExecutionMode
from vesper.models.errors import ConfigurationError, RenderExplicitFailure, ValidationError
from vesper.models.phase import Phase
from vesper.models.render import RenderStatus
from vesper.storage.session_store import load_session


class TestTrigger:
    def test_empty_trigger_blocks_advance(self, orchestrator):
        assert not orchestrator.can_advance()
        with pytest.raises(ValidationError):
            orchestrator.advance()
        assert orchestrator.current_phase == Phase.TRIGGER

    def test_topic_unlocks_advance(self, morning_prayer):
        assert morning_prayer.can_advance()
        assert morning_prayer.advance() == Phase.PLANNING

    def test_competitor_alone_unlocks_advance(self, orchestrator):
        orchestrator.add_competitor(transcript="Senhor, obrigado por este dia")
        assert orchestrator.can_advance()

    def test_empty_competitor_rejected(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.add_competitor(link="  ")

    def test_remove_competitor(self, orchestrator):
        competitor = orchestrator.add_competitor(link="https://youtu.be/abc123")
        orchestrator.remove_competitor(competitor.competitor_id)
        assert orchestrator.session.trigger.competitors == []
        with pytest.raises(ValidationError):
            orchestrator.remove_competitor(competitor.competitor_id)

    def test_unknown_trigger_field(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.update_trigger(mood="calm")

    def test_invalid_trigger_value(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.update_trigger(target_duration="2h")

    def test_extract_competitor_metadata(self, orchestrator):
        competitor = orchestrator.add_competitor(link="https://www.youtube.com/watch?v=abc123")
        result = asyncio.run(orchestrator.extract_competitor_metadata(competitor.competitor_id))
        assert result.simulated
        assert competitor.metadata.video_id == "abc123"
        assert competitor.metadata.views > 0


class TestPlanning:
    def test_draft_resets_baseline(self, morning_prayer):
        morning_prayer.advance()
        plan = morning_prayer.draft_plan()
        assert "Oração da manhã" in plan
        assert not morning_prayer.session.planning.is_modified

    def test_edit_marks_modified(self, morning_prayer):
        morning_prayer.advance()
        morning_prayer.draft_plan()
        morning_prayer.edit_plan("Plano revisado")
        assert morning_prayer.session.planning.is_modified

    def test_cannot_approve_empty_plan(self, morning_prayer):
        morning_prayer.advance()
        with pytest.raises(ValidationError):
            morning_prayer.approve_planning()

    def test_approval_is_idempotent(self, morning_prayer):
        morning_prayer.advance()
        morning_prayer.draft_plan()
        morning_prayer.approve_planning()
        first = morning_prayer.session.planning.approved_at
        morning_prayer.approve_planning()
        assert morning_prayer.session.planning.approved
        assert morning_prayer.session.planning.approved_at == first

    def test_unapproved_plan_blocks_intelligence(self, morning_prayer):
        morning_prayer.advance()
        morning_prayer.draft_plan()
        with pytest.raises(ValidationError):
            morning_prayer.advance()
        with pytest.raises(ValidationError):
            asyncio.run(morning_prayer.run_intelligence())

    def test_draft_needs_trigger(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.draft_plan()


class TestNavigation:
    def test_go_back_keeps_data(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        research = morning_prayer.session.intelligence.research
        assert morning_prayer.go_back() == Phase.INTELLIGENCE
        assert morning_prayer.session.intelligence.research == research
        assert morning_prayer.session.planning.approved

    def test_go_back_to_target(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        assert morning_prayer.go_back(Phase.TRIGGER) == Phase.TRIGGER

    def test_go_back_from_first_phase(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.go_back()

    def test_go_back_cannot_move_forward(self, morning_prayer):
        morning_prayer.advance()
        with pytest.raises(ValidationError):
            morning_prayer.go_back(Phase.STUDIO)

    def test_go_to_forward_through_complete_phases(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        morning_prayer.go_back(Phase.TRIGGER)
        assert morning_prayer.go_to(Phase.CREATION) == Phase.CREATION

    def test_go_to_skipping_incomplete_phase(self, morning_prayer):
        with pytest.raises(ValidationError) as exc_info:
            morning_prayer.go_to(Phase.INTELLIGENCE)
        assert exc_info.value.details["blocking"] == "planning"

    def test_advance_rechecks_earlier_phases(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.STUDIO))
        morning_prayer.parse_scenes()
        morning_prayer.acknowledge_manual_assembly()
        morning_prayer.update_trigger(topic="")
        assert morning_prayer.can_advance()
        with pytest.raises(ValidationError) as exc_info:
            morning_prayer.advance()
        assert exc_info.value.details["blocking"] == "trigger"
        assert morning_prayer.current_phase == Phase.STUDIO

    def test_delivery_is_final(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.DELIVERY))
        assert not morning_prayer.can_advance()
        with pytest.raises(ValidationError):
            morning_prayer.advance()


class TestIntelligence:
    def test_research_required(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.INTELLIGENCE))
        assert not morning_prayer.can_advance()
        results = asyncio.run(morning_prayer.run_intelligence())
        assert [r.action_id for r in results] == ["deep-research", "analyze-channel"]
        assert morning_prayer.can_advance()

    def test_competitor_analysis_when_competitors_exist(self, morning_prayer):
        morning_prayer.add_competitor(transcript="Pai nosso...")
        asyncio.run(drive_to(morning_prayer, Phase.INTELLIGENCE))
        results = asyncio.run(morning_prayer.run_intelligence())
        assert results[-1].action_id == "analyze-competitor"
        assert morning_prayer.session.intelligence.competitor_analysis.retention_hooks


class TestCreation:
    def test_options_and_selection(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        asyncio.run(morning_prayer.generate_options())
        options = morning_prayer.session.creation.options
        assert 2 <= len(options) <= 3
        assert morning_prayer.select_option(2).option_id == 2
        with pytest.raises(ValidationError):
            morning_prayer.select_option(9)

    def test_script_needs_selection(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        asyncio.run(morning_prayer.generate_options())
        with pytest.raises(ValidationError):
            asyncio.run(morning_prayer.generate_script())
        assert not morning_prayer.can_advance()

    def test_script_and_selection_unlock_studio(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        asyncio.run(morning_prayer.generate_options())
        morning_prayer.select_option(1)
        asyncio.run(morning_prayer.generate_script())
        assert "[00:00-00:15]" in morning_prayer.session.creation.script
        assert morning_prayer.can_advance()

    def test_thumbnails_concurrently(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        asyncio.run(morning_prayer.generate_options())
        results = asyncio.run(morning_prayer.generate_thumbnails())
        assert set(results) == {o.option_id for o in morning_prayer.session.creation.options}
        assert all(o.thumbnail_url for o in morning_prayer.session.creation.options)

    def test_retry_single_thumbnail(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        asyncio.run(morning_prayer.generate_options())
        result = asyncio.run(morning_prayer.generate_thumbnail(2))
        assert result.action_id == "generate-thumbnail"
        options = morning_prayer.session.creation.options
        assert options[1].thumbnail_url
        assert options[0].thumbnail_url is None

    def test_thumbnail_failure_is_isolated(self, morning_prayer, tmp_dir):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        asyncio.run(morning_prayer.generate_options())
        # Live mode without an OpenAI key: each thumbnail fails on its own.
        morning_prayer.mode = ExecutionMode.LIVE
        results = asyncio.run(morning_prayer.generate_thumbnails())
        assert all(isinstance(r, ConfigurationError) for r in results.values())
        assert morning_prayer.session.creation.options[0].title

    def test_refine_script_removes_banned_words(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        morning_prayer.update_script("[00:00-00:30] ABERTURA\nUma oração para blindar seu lar")
        asyncio.run(morning_prayer.refine_script())
        assert "blindar" not in morning_prayer.session.creation.script


class TestStudio:
    def _enter_studio(self, orchestrator):
        asyncio.run(drive_to(orchestrator, Phase.STUDIO))
        return orchestrator.parse_scenes()

    def test_scenes_from_script(self, morning_prayer):
        scenes = self._enter_studio(morning_prayer)
        assert len(scenes) == 8
        assert scenes[0].start == "00:00"
        assert scenes[0].title == "ABERTURA MAGNÉTICA"

    def test_narration_and_media(self, morning_prayer):
        self._enter_studio(morning_prayer)
        asyncio.run(morning_prayer.generate_narration(1))
        asyncio.run(morning_prayer.find_scene_media(1))
        scene = morning_prayer.session.studio.scenes[0]
        assert scene.audio_url
        assert scene.audio_duration_seconds is not None
        assert scene.visual_url
        with pytest.raises(ValidationError):
            asyncio.run(morning_prayer.generate_narration(99))

    def test_render_unlocks_delivery(self, morning_prayer, clock):
        self._enter_studio(morning_prayer)
        assert not morning_prayer.can_advance()
        job = asyncio.run(morning_prayer.render_video())
        assert job.status == RenderStatus.DONE
        assert job.attempts == 2
        assert clock.sleeps == [1.0]
        assert morning_prayer.can_advance()

    def test_rerender_is_a_new_job(self, morning_prayer, clock):
        self._enter_studio(morning_prayer)
        first = asyncio.run(morning_prayer.render_video())
        second = asyncio.run(morning_prayer.render_video())
        assert second.job_id != first.job_id
        assert second.attempts == 2
        assert second.result_url != first.result_url
        assert morning_prayer.adapter.simulated.pending_jobs == 0

    def test_manual_assembly_unlocks_delivery(self, morning_prayer):
        self._enter_studio(morning_prayer)
        morning_prayer.acknowledge_manual_assembly()
        assert morning_prayer.can_advance()

    def test_soundtrack_is_stored(self, morning_prayer):
        self._enter_studio(morning_prayer)
        morning_prayer.set_soundtrack("  https://cdn.example/hino.mp3 ")
        assert morning_prayer.session.studio.soundtrack_url == "https://cdn.example/hino.mp3"

    def test_render_needs_scenes(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.STUDIO))
        with pytest.raises(ValidationError):
            asyncio.run(morning_prayer.render_video())

    def test_failed_render_keeps_studio_locked(self, morning_prayer, monkeypatch):
        self._enter_studio(morning_prayer)
        simulated = morning_prayer.adapter.simulated
        monkeypatch.setattr(simulated, "_render_status", lambda handler, payload: {"status": "failed"})
        with pytest.raises(RenderExplicitFailure):
            asyncio.run(morning_prayer.render_video())
        assert morning_prayer.session.studio.render_job.status == RenderStatus.FAILED
        assert not morning_prayer.can_advance()


class TestDelivery:
    def test_prepare_and_publish(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.DELIVERY))
        asyncio.run(morning_prayer.prepare_delivery())
        delivery = morning_prayer.session.delivery
        assert delivery.title
        assert "oração" in delivery.tags
        assert delivery.video_url == morning_prayer.session.studio.render_job.result_url
        morning_prayer.mark_published()
        assert delivery.published

    def test_publish_only_in_delivery(self, morning_prayer):
        with pytest.raises(ValidationError):
            morning_prayer.mark_published()


class TestRegenerate:
    def test_plan_regeneration_resets_baseline(self, morning_prayer):
        morning_prayer.advance()
        morning_prayer.draft_plan()
        morning_prayer.edit_plan("Meu plano")
        asyncio.run(morning_prayer.regenerate(Phase.PLANNING, "plan"))
        assert not morning_prayer.session.planning.is_modified

    def test_research_only_touches_research(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        before = morning_prayer.session.model_copy(deep=True)
        morning_prayer.session.intelligence.research.facts = ["velho"]
        asyncio.run(morning_prayer.regenerate(Phase.INTELLIGENCE, "research"))
        after = morning_prayer.session
        assert after.intelligence.research.facts != ["velho"]
        assert after.intelligence.channel_analysis == before.intelligence.channel_analysis
        assert after.creation == before.creation
        assert after.planning == before.planning
        assert after.current_phase == Phase.CREATION

    def test_options_keep_selected_option(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.STUDIO))
        creation = morning_prayer.session.creation
        selected = creation.selected_option()
        script = creation.script
        asyncio.run(morning_prayer.regenerate(Phase.CREATION, "options"))
        assert creation.selected_option() == selected
        assert creation.script == script
        assert len({o.option_id for o in creation.options}) == len(creation.options)

    def test_delivery_tags_only(self, morning_prayer):
        asyncio.run(drive_to(morning_prayer, Phase.DELIVERY))
        asyncio.run(morning_prayer.prepare_delivery())
        morning_prayer.session.delivery.tags = []
        description = morning_prayer.session.delivery.description
        asyncio.run(morning_prayer.regenerate(Phase.DELIVERY, "tags"))
        assert morning_prayer.session.delivery.tags
        assert morning_prayer.session.delivery.description == description

    def test_unknown_field(self, morning_prayer):
        with pytest.raises(ValidationError):
            asyncio.run(morning_prayer.regenerate(Phase.TRIGGER, "topic"))


class TestModelsAndMode:
    def test_select_model(self, orchestrator):
        action = orchestrator.select_model("seo-optimization", "openai", "gpt-4o-mini")
        assert action.selection.model == "gpt-4o-mini"
        assert orchestrator.session.actions["seo-optimization"].provider == "openai"

    def test_select_incompatible_model(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.select_model("generate-narration", "openai", "gpt-4o")

    def test_selection_is_used(self, morning_prayer):
        morning_prayer.select_model("deep-research", "google", "gemini-2.5-flash")
        asyncio.run(drive_to(morning_prayer, Phase.INTELLIGENCE))
        results = asyncio.run(morning_prayer.run_intelligence())
        assert results[0].model == "gemini-2.5-flash"

    def test_phase_cost_simulated_is_zero(self, orchestrator):
        assert orchestrator.estimate_phase_cost(Phase.CREATION) == 0.0

    def test_phase_cost_live(self, orchestrator, registry):
        orchestrator.mode = ExecutionMode.LIVE
        expected = sum(
            registry.estimate_cost(a.default.provider, a.default.model, a.estimated_units)
            for a in registry.actions_for_phase(Phase.STUDIO)
        )
        assert orchestrator.estimate_phase_cost(Phase.STUDIO) == pytest.approx(expected)

    def test_switch_to_live_requires_health_check(self, orchestrator):
        with pytest.raises(ConfigurationError):
            asyncio.run(orchestrator.switch_mode(ExecutionMode.LIVE))
        assert orchestrator.mode == ExecutionMode.SIMULATED

    def test_failed_health_check_keeps_mode(self, orchestrator):
        with pytest.raises(ConfigurationError):
            asyncio.run(orchestrator.switch_mode(ExecutionMode.LIVE, lambda: False))
        assert orchestrator.mode == ExecutionMode.SIMULATED

    def test_async_health_check(self, orchestrator):
        async def healthy():
            return True

        asyncio.run(orchestrator.switch_mode(ExecutionMode.LIVE, healthy))
        assert orchestrator.mode == ExecutionMode.LIVE
        asyncio.run(orchestrator.switch_mode(ExecutionMode.SIMULATED))
        assert orchestrator.mode == ExecutionMode.SIMULATED


class TestPersistence:
    def test_every_mutation_is_saved(self, morning_prayer, store):
        asyncio.run(drive_to(morning_prayer, Phase.CREATION))
        restored = load_session(store, morning_prayer.session.session_id)
        assert restored.current_phase == Phase.CREATION
        assert restored.planning.approved
        assert restored.intelligence.research.facts
