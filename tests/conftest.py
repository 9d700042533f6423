"""Shared test fixtures, fake clock and session builders."""

import json
from pathlib import Path

import httpx
import pytest

from vesper.config import Settings
from vesper.execution.adapter import ExecutionAdapter, LiveExecutor, SimulatedExecutor
from vesper.models.actions import ExecutionMode
from vesper.models.phase import Phase
from vesper.models.pipeline import EmotionalTrigger, PipelineSession
from vesper.pipeline.orchestrator import PipelineOrchestrator
from vesper.registry.catalog import ModelRegistry
from vesper.storage.session_store import InMemorySessionStore

ALL_KEYS = {
    "openai_api_key": "sk-test",
    "anthropic_api_key": "sk-ant-test",
    "gemini_api_key": "gm-test",
    "groq_api_key": "gsk-test",
    "elevenlabs_api_key": "el-test",
    "pexels_api_key": "px-test",
    "pixabay_api_key": "pb-test",
    "unsplash_access_key": "us-test",
    "azure_speech_key": "az-test",
    "json2video_api_key": "j2v-test",
    "youtube_api_key": "yt-test",
}
NO_KEYS = {name: "" for name in ALL_KEYS}


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_settings(tmp_dir: Path | None = None, **overrides) -> Settings:
    values = {
        **NO_KEYS,
        "simulated_delay_seconds": 0.0,
        "simulated_render_polls": 2,
        "render_max_attempts": 5,
        "render_poll_interval": 1.0,
        "session_store_dir": tmp_dir or Path("/tmp/vesper-tests/sessions"),
    }
    values.update(overrides)
    return Settings(**values)


def make_adapter(settings: Settings, registry: ModelRegistry | None = None, handler=None):
    """Adapter whose live executor talks to ``handler`` through httpx.MockTransport."""
    registry = registry or ModelRegistry()
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler)) if handler else None
    return ExecutionAdapter(
        settings,
        registry,
        simulated=SimulatedExecutor(delay=0.0, render_polls=settings.simulated_render_polls),
        live=LiveExecutor(settings, http_client=client),
    )


def json_response(payload: dict, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(payload).encode("utf-8"))


@pytest.fixture
def tmp_dir(tmp_path):
    """Provide a temporary directory for test files."""
    return tmp_path


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry():
    return ModelRegistry()


@pytest.fixture
def settings(tmp_dir):
    return make_settings(tmp_dir)


@pytest.fixture
def adapter(settings, registry):
    return make_adapter(settings, registry)


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def orchestrator(settings, registry, adapter, store, clock):
    """A fresh simulated-mode session."""
    return PipelineOrchestrator(
        PipelineSession(owner="tester"),
        adapter,
        settings=settings,
        registry=registry,
        store=store,
        mode=ExecutionMode.SIMULATED,
        clock=clock,
        sleep=clock.sleep,
    )


@pytest.fixture
def morning_prayer(orchestrator):
    """Orchestrator with the "Oração da manhã" trigger filled in."""
    orchestrator.update_trigger(
        topic="Oração da manhã",
        emotional_triggers={EmotionalTrigger.HOPE, EmotionalTrigger.GRATITUDE},
    )
    return orchestrator


async def drive_to(orchestrator: PipelineOrchestrator, target: Phase) -> None:
    """Run every phase action needed to enter ``target`` and advance into it."""
    while orchestrator.current_phase.index < target.index:
        phase = orchestrator.current_phase
        if phase == Phase.PLANNING:
            orchestrator.draft_plan()
            orchestrator.approve_planning()
        elif phase == Phase.INTELLIGENCE:
            await orchestrator.run_intelligence()
        elif phase == Phase.CREATION:
            await orchestrator.generate_options()
            orchestrator.select_option(1)
            await orchestrator.generate_script()
        elif phase == Phase.STUDIO:
            orchestrator.parse_scenes()
            await orchestrator.render_video()
        orchestrator.advance()
