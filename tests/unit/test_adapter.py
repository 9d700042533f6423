"""Tests for the execution adapter in simulated and live modes."""

import asyncio
import json

import httpx
import pytest

from tests.conftest import ALL_KEYS, json_response, make_adapter, make_settings
from vesper.execution.adapter import ExecutionAdapter, SimulatedExecutor
from vesper.models.actions import ExecutionMode
from vesper.models.errors import (
    CatalogError,
    ConfigurationError,
    OperationCancelled,
    ProviderError,
    ProviderErrorKind,
    ValidationError,
)
from vesper.models.outputs import OUTPUT_MODELS

SIM = ExecutionMode.SIMULATED
LIVE = ExecutionMode.LIVE

RESEARCH_PAYLOAD = {"topic": "Oração da manhã", "emotional_triggers": ["hope"], "plan": "..."}


def _gemini_text(text: str, tokens: int = 1200):
    return json_response(
        {
            "candidates": [{"content": {"parts": [{"text": text}]}}],
            "usageMetadata": {"totalTokenCount": tokens},
        }
    )


def _execute(adapter, registry, action_id, payload, mode, **kwargs):
    action = registry.create_action(action_id)
    return asyncio.run(
        adapter.execute(action, action.provider, action.model, payload, mode, **kwargs)
    )


class TestSimulated:
    @pytest.mark.parametrize(
        "action_id,payload",
        [
            ("fetch-video-metadata", {"link": "https://youtu.be/abc123"}),
            ("deep-research", RESEARCH_PAYLOAD),
            ("analyze-channel", {"topic": "Oração da manhã", "channel_name": "Mundo da Prece"}),
            ("analyze-competitor", {"topic": "Oração", "competitors": []}),
            ("generate-options", {"topic": "Oração da manhã"}),
            ("generate-thumbnail", {"option_id": 1, "title": "Oração"}),
            ("generate-script", {"topic": "Oração da manhã", "target_duration": "5-10min"}),
            ("refine-script", {"script": "Uma oração", "guidelines": {"blacklist": []}}),
            ("generate-narration", {"scene_id": 1, "text": "Senhor, dai-me paz"}),
            ("find-scene-media", {"scene_id": 1, "query": "Mãos em oração"}),
            ("render-video", {"scenes": [], "soundtrack_url": ""}),
            ("seo-optimization", {"topic": "Oração da manhã", "title": "Oração"}),
        ],
    )
    def test_output_matches_schema(self, adapter, registry, action_id, payload):
        result = _execute(adapter, registry, action_id, payload, SIM)
        OUTPUT_MODELS[action_id].model_validate(result.output)
        assert result.simulated
        assert result.cost_usd == 0.0
        assert not result.fallback

    def test_deterministic(self, adapter, registry):
        first = _execute(adapter, registry, "deep-research", RESEARCH_PAYLOAD, SIM)
        second = _execute(adapter, registry, "deep-research", RESEARCH_PAYLOAD, SIM)
        assert first.output == second.output

    def test_units_are_estimated(self, adapter, registry):
        result = _execute(adapter, registry, "deep-research", RESEARCH_PAYLOAD, SIM)
        assert result.units == registry.action_definition("deep-research").estimated_units

    def test_render_status_finishes_after_configured_polls(self, adapter, registry):
        payload = {"job_id": "sim-1"}
        first = _execute(adapter, registry, "render-status", payload, SIM)
        second = _execute(adapter, registry, "render-status", payload, SIM)
        assert first.output["status"] == "processing"
        assert second.output["status"] == "done"
        assert second.output["result_url"]

    def test_identical_submissions_are_separate_jobs(self, adapter, registry):
        payload = {"scenes": [{"timestamp": "00:00-00:15"}], "soundtrack_url": ""}
        first = _execute(adapter, registry, "render-video", payload, SIM).output["job_id"]
        second = _execute(adapter, registry, "render-video", payload, SIM).output["job_id"]
        assert first != second
        for job_id in (first, second):
            polls = [
                _execute(adapter, registry, "render-status", {"job_id": job_id}, SIM).output["status"]
                for _ in range(2)
            ]
            assert polls == ["processing", "done"]
        assert adapter.simulated.pending_jobs == 0

    def test_refine_scrubs_blacklist(self, adapter, registry):
        payload = {"script": "Oração para blindar a casa", "guidelines": {"blacklist": ["blindar"]}}
        result = _execute(adapter, registry, "refine-script", payload, SIM)
        assert "blindar" not in result.output["script"]

    def test_no_credentials_needed(self, adapter, registry):
        # settings fixture carries no API keys at all
        result = _execute(adapter, registry, "generate-script", {"topic": "Fé"}, SIM)
        assert result.output["script"]


class TestValidation:
    def test_unknown_model(self, adapter, registry):
        action = registry.create_action("deep-research")
        with pytest.raises(CatalogError):
            asyncio.run(adapter.execute(action, "google", "gemini-9", RESEARCH_PAYLOAD, SIM))

    def test_bad_link_fails_in_both_modes(self, registry, tmp_dir):
        adapter = make_adapter(make_settings(tmp_dir, **ALL_KEYS), registry, handler=lambda r: None)
        for mode in (SIM, LIVE):
            with pytest.raises(ValidationError):
                _execute(adapter, registry, "fetch-video-metadata", {"link": "https://vimeo.com/1"}, mode)

    def test_render_status_needs_job_id(self, adapter, registry):
        with pytest.raises(ValidationError):
            _execute(adapter, registry, "render-status", {}, SIM)


class TestLive:
    def test_success_with_cost(self, registry, tmp_dir):
        reply = json.dumps({"facts": ["Salmo 5:3 fala da oração da manhã"], "trivia": [], "citations": []})
        adapter = make_adapter(
            make_settings(tmp_dir, **ALL_KEYS), registry, handler=lambda r: _gemini_text(reply, 2000)
        )
        result = _execute(adapter, registry, "deep-research", RESEARCH_PAYLOAD, LIVE)
        assert result.output["facts"] == ["Salmo 5:3 fala da oração da manhã"]
        assert not result.simulated
        assert result.units == 2000
        assert result.cost_usd == pytest.approx(registry.estimate_cost("google", "gemini-2.0-pro", 2000))

    def test_markdown_wrapped_json(self, registry, tmp_dir):
        reply = '```json\n{"facts": ["a"], "trivia": ["b"], "citations": []}\n```'
        adapter = make_adapter(
            make_settings(tmp_dir, **ALL_KEYS), registry, handler=lambda r: _gemini_text(reply)
        )
        result = _execute(adapter, registry, "deep-research", RESEARCH_PAYLOAD, LIVE)
        assert result.output["trivia"] == ["b"]

    def test_missing_key_fails_before_io(self, registry, tmp_dir):
        calls = []

        def handler(request):
            calls.append(request)
            return _gemini_text("{}")

        adapter = make_adapter(make_settings(tmp_dir), registry, handler=handler)
        with pytest.raises(ConfigurationError):
            _execute(adapter, registry, "deep-research", RESEARCH_PAYLOAD, LIVE)
        assert calls == []

    def test_non_critical_failure_uses_fallback(self, registry, tmp_dir):
        adapter = make_adapter(
            make_settings(tmp_dir, **ALL_KEYS),
            registry,
            handler=lambda r: json_response({"error": "boom"}, status_code=500),
        )
        result = _execute(adapter, registry, "deep-research", RESEARCH_PAYLOAD, LIVE)
        assert result.fallback
        assert result.cost_usd == 0.0
        assert result.output["facts"][0].startswith("Pesquisa indisponível")

    def test_unparseable_reply_uses_fallback(self, registry, tmp_dir):
        adapter = make_adapter(
            make_settings(tmp_dir, **ALL_KEYS), registry, handler=lambda r: _gemini_text("not json")
        )
        result = _execute(adapter, registry, "seo-optimization", {"topic": "Fé"}, LIVE)
        assert result.fallback
        assert result.output["title"]

    def test_critical_failure_raises(self, registry, tmp_dir):
        adapter = make_adapter(
            make_settings(tmp_dir, **ALL_KEYS),
            registry,
            handler=lambda r: json_response({"error": {"type": "rate_limit_error"}}, status_code=429),
        )
        with pytest.raises(ProviderError) as exc_info:
            _execute(adapter, registry, "generate-script", {"topic": "Fé"}, LIVE)
        assert exc_info.value.kind == ProviderErrorKind.RATE_LIMITED
        assert exc_info.value.provider == "anthropic"

    def test_mode_parity_of_output_shape(self, registry, tmp_dir):
        reply = json.dumps({"title": "Oração da Manhã", "description": "Paz", "tags": ["fé"]})
        adapter = make_adapter(
            make_settings(tmp_dir, **ALL_KEYS), registry, handler=lambda r: _gemini_text(reply)
        )
        live = _execute(adapter, registry, "seo-optimization", {"topic": "Fé"}, LIVE)
        sim = _execute(adapter, registry, "seo-optimization", {"topic": "Fé"}, SIM)
        assert set(live.output) == set(sim.output)
        assert live.model_dump().keys() == sim.model_dump().keys()


class TestProviderChain:
    MEDIA = {"query": "nascer do sol", "scene_id": 1}

    def _adapter(self, tmp_dir, registry, routes, **overrides):
        seen = []

        def handler(request):
            seen.append(request.url.host)
            return routes[request.url.host](request)

        settings = make_settings(tmp_dir, **{**ALL_KEYS, **overrides})
        return make_adapter(settings, registry, handler=handler), seen

    def test_empty_pexels_moves_to_pixabay(self, registry, tmp_dir):
        routes = {
            "api.pexels.com": lambda r: json_response({"videos": [], "photos": []}),
            "pixabay.com": lambda r: json_response(
                {"hits": [{"videos": {"large": {"url": "https://pb.example/sol.mp4"}}}]}
            ),
        }
        adapter, seen = self._adapter(tmp_dir, registry, routes)
        result = _execute(adapter, registry, "find-scene-media", self.MEDIA, LIVE)
        assert result.output["visual_url"] == "https://pb.example/sol.mp4"
        assert result.provider == "pixabay"
        assert result.model == "pixabay-search"
        assert not result.fallback
        assert "api.unsplash.com" not in seen

    def test_failed_pexels_moves_to_pixabay(self, registry, tmp_dir):
        routes = {
            "api.pexels.com": lambda r: json_response({"error": "boom"}, status_code=500),
            "pixabay.com": lambda r: json_response({"hits": [{"largeImageURL": "https://pb.example/sol.jpg"}]})
            if r.url.path == "/api/"
            else json_response({"hits": []}),
        }
        adapter, _ = self._adapter(tmp_dir, registry, routes)
        result = _execute(adapter, registry, "find-scene-media", self.MEDIA, LIVE)
        assert result.output["source"] == "pixabay-photo"
        assert result.provider == "pixabay"

    def test_unsplash_is_last_and_credited(self, registry, tmp_dir):
        routes = {
            "api.pexels.com": lambda r: json_response({"videos": [], "photos": []}),
            "pixabay.com": lambda r: json_response({"hits": []}),
            "api.unsplash.com": lambda r: json_response(
                {"results": [{"urls": {"regular": "https://us.example/sol.jpg"}, "user": {"name": "Rui"}}]}
            ),
        }
        adapter, seen = self._adapter(tmp_dir, registry, routes)
        result = _execute(adapter, registry, "find-scene-media", self.MEDIA, LIVE)
        assert result.provider == "unsplash"
        assert result.output["attribution"] == "Photo by Rui on Unsplash"
        assert seen[-1] == "api.unsplash.com"

    def test_alternate_without_key_is_skipped(self, registry, tmp_dir):
        routes = {
            "api.pexels.com": lambda r: json_response({"videos": [], "photos": []}),
            "api.unsplash.com": lambda r: json_response(
                {"results": [{"urls": {"regular": "https://us.example/sol.jpg"}}]}
            ),
        }
        adapter, seen = self._adapter(tmp_dir, registry, routes, pixabay_api_key="")
        result = _execute(adapter, registry, "find-scene-media", self.MEDIA, LIVE)
        assert result.provider == "unsplash"
        assert "pixabay.com" not in seen

    def test_nothing_found_anywhere(self, registry, tmp_dir):
        routes = {
            "api.pexels.com": lambda r: json_response({"videos": [], "photos": []}),
            "pixabay.com": lambda r: json_response({"hits": []}),
            "api.unsplash.com": lambda r: json_response({"results": []}),
        }
        adapter, _ = self._adapter(tmp_dir, registry, routes)
        result = _execute(adapter, registry, "find-scene-media", self.MEDIA, LIVE)
        assert result.output["visual_url"] is None
        assert result.provider == "pexels"
        assert not result.fallback

    def test_selected_provider_still_needs_a_key(self, registry, tmp_dir):
        adapter, seen = self._adapter(tmp_dir, registry, {}, pexels_api_key="")
        with pytest.raises(ConfigurationError):
            _execute(adapter, registry, "find-scene-media", self.MEDIA, LIVE)
        assert seen == []

    def test_narration_uses_neural_voice(self, registry, tmp_dir):
        routes = {
            "api.elevenlabs.io": lambda r: json_response({"detail": "boom"}, status_code=500),
            "eastus.tts.speech.microsoft.com": lambda r: httpx.Response(200, content=b"ID3audio"),
        }
        adapter, _ = self._adapter(tmp_dir, registry, routes)
        payload = {"text": "No princípio era o Verbo.", "neural_voice": "pt-BR-AntonioNeural"}
        result = _execute(adapter, registry, "generate-narration", payload, LIVE)
        assert result.provider == "azure-speech"
        assert result.output["audio_url"].startswith("data:audio/mpeg;base64,")
        assert result.cost_usd == 0.0
        assert not result.fallback

    def test_every_provider_failing_uses_fallback(self, registry, tmp_dir):
        routes = {
            "api.elevenlabs.io": lambda r: json_response({"detail": "boom"}, status_code=500),
            "eastus.tts.speech.microsoft.com": lambda r: httpx.Response(503),
        }
        adapter, _ = self._adapter(tmp_dir, registry, routes)
        result = _execute(adapter, registry, "generate-narration", {"text": "Amém."}, LIVE)
        assert result.fallback
        assert result.output["audio_url"] is None


class TestCancellation:
    def test_already_cancelled(self, adapter, registry):
        event = asyncio.Event()
        event.set()
        with pytest.raises(OperationCancelled):
            _execute(adapter, registry, "deep-research", RESEARCH_PAYLOAD, SIM, cancel_event=event)

    def test_cancel_in_flight(self, settings, registry):
        adapter = ExecutionAdapter(settings, registry, simulated=SimulatedExecutor(delay=60))
        action = registry.create_action("deep-research")

        async def scenario():
            event = asyncio.Event()
            asyncio.get_running_loop().call_later(0.01, event.set)
            await adapter.execute(
                action, action.provider, action.model, RESEARCH_PAYLOAD, SIM, cancel_event=event
            )

        with pytest.raises(OperationCancelled):
            asyncio.run(scenario())
