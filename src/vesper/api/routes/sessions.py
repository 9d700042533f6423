"""Session endpoints: phase transitions, edits and phase actions."""

from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field

from vesper.api.dependencies import get_session_manager
from vesper.models.actions import ActionResult
from vesper.models.errors import ValidationError
from vesper.models.phase import Phase
from vesper.models.pipeline import ContentType, EmotionalTrigger, TargetDuration
from vesper.pipeline.manager import SessionManager
from vesper.pipeline.orchestrator import PipelineOrchestrator

router = APIRouter(prefix="/api/v1", tags=["sessions"])


class CreateSessionRequest(BaseModel):
    owner: str = ""


class TriggerUpdate(BaseModel):
    topic: str | None = None
    content_type: ContentType | None = None
    target_duration: TargetDuration | None = None
    emotional_triggers: set[EmotionalTrigger] | None = None
    special_notes: str | None = None


class CompetitorRequest(BaseModel):
    link: str = ""
    transcript: str | None = None


class BackRequest(BaseModel):
    target: Phase | None = None


class TextRequest(BaseModel):
    text: str


class SelectOptionRequest(BaseModel):
    option_id: int = Field(..., ge=1)


class RegenerateRequest(BaseModel):
    phase: Phase
    field: str


class ModelSelectionRequest(BaseModel):
    provider: str
    model: str


class StepRequest(BaseModel):
    competitor_id: str | None = None
    option_id: int | None = None
    scene_id: int | None = None


class PublishRequest(BaseModel):
    scheduled_for: datetime | None = None


def _state(orchestrator: PipelineOrchestrator) -> dict:
    return {
        "session": orchestrator.session.model_dump(mode="json"),
        "mode": orchestrator.mode.value,
        "can_advance": orchestrator.can_advance(),
    }


def _results(results: list[ActionResult]) -> list[dict]:
    return [r.model_dump(mode="json") for r in results]


@router.post("/sessions")
async def create_session(
    request: CreateSessionRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    """Start a new production session in the trigger phase."""
    return _state(manager.create_session(owner=request.owner))


@router.get("/sessions")
async def list_sessions(manager: SessionManager = Depends(get_session_manager)):
    return {"sessions": manager.list_sessions()}


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    return _state(manager.get_session(session_id))


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    if not manager.delete_session(session_id):
        raise ValidationError(f"Session {session_id} not found")
    return {"session_id": session_id, "deleted": True}


@router.patch("/sessions/{session_id}/trigger")
async def update_trigger(
    session_id: str,
    request: TriggerUpdate,
    manager: SessionManager = Depends(get_session_manager),
):
    orchestrator = manager.get_session(session_id)
    orchestrator.update_trigger(**request.model_dump(exclude_none=True))
    return _state(orchestrator)


@router.post("/sessions/{session_id}/competitors")
async def add_competitor(
    session_id: str,
    request: CompetitorRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    orchestrator = manager.get_session(session_id)
    competitor = orchestrator.add_competitor(request.link, request.transcript)
    return {"competitor": competitor.model_dump(mode="json")}


@router.post("/sessions/{session_id}/advance")
async def advance(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    orchestrator = manager.get_session(session_id)
    orchestrator.advance()
    return _state(orchestrator)


@router.post("/sessions/{session_id}/back")
async def go_back(
    session_id: str,
    request: BackRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    orchestrator = manager.get_session(session_id)
    orchestrator.go_back(request.target)
    return _state(orchestrator)


@router.put("/sessions/{session_id}/planning/plan")
async def edit_plan(
    session_id: str,
    request: TextRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    orchestrator = manager.get_session(session_id)
    orchestrator.edit_plan(request.text)
    return _state(orchestrator)


@router.post("/sessions/{session_id}/planning/approve")
async def approve_planning(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    orchestrator = manager.get_session(session_id)
    orchestrator.approve_planning()
    return _state(orchestrator)


@router.post("/sessions/{session_id}/creation/select")
async def select_option(
    session_id: str,
    request: SelectOptionRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    orchestrator = manager.get_session(session_id)
    orchestrator.select_option(request.option_id)
    return _state(orchestrator)


@router.put("/sessions/{session_id}/creation/script")
async def update_script(
    session_id: str,
    request: TextRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    orchestrator = manager.get_session(session_id)
    orchestrator.update_script(request.text)
    return _state(orchestrator)


@router.put("/sessions/{session_id}/studio/soundtrack")
async def set_soundtrack(
    session_id: str,
    request: TextRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    orchestrator = manager.get_session(session_id)
    orchestrator.set_soundtrack(request.text)
    return _state(orchestrator)


@router.post("/sessions/{session_id}/studio/acknowledge")
async def acknowledge_manual_assembly(
    session_id: str, manager: SessionManager = Depends(get_session_manager)
):
    orchestrator = manager.get_session(session_id)
    orchestrator.acknowledge_manual_assembly()
    return _state(orchestrator)


@router.post("/sessions/{session_id}/delivery/publish")
async def mark_published(
    session_id: str,
    request: PublishRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    orchestrator = manager.get_session(session_id)
    orchestrator.mark_published(request.scheduled_for)
    return _state(orchestrator)


@router.put("/sessions/{session_id}/actions/{action_id}/model")
async def select_model(
    session_id: str,
    action_id: str,
    request: ModelSelectionRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    orchestrator = manager.get_session(session_id)
    action = orchestrator.select_model(action_id, request.provider, request.model)
    return {"action": action.model_dump(mode="json")}


@router.post("/sessions/{session_id}/regenerate")
async def regenerate(
    session_id: str,
    request: RegenerateRequest,
    manager: SessionManager = Depends(get_session_manager),
):
    orchestrator = manager.get_session(session_id)
    result = await orchestrator.regenerate(request.phase, request.field)
    return {
        **_state(orchestrator),
        "result": result.model_dump(mode="json") if result else None,
    }


@router.post("/sessions/{session_id}/steps/{step}")
async def run_step(
    session_id: str,
    step: str,
    request: StepRequest,
    background_tasks: BackgroundTasks,
    manager: SessionManager = Depends(get_session_manager),
):
    """Run one phase action; rendering continues in the background."""
    orchestrator = manager.get_session(session_id)
    results: list[ActionResult] = []

    if step == "competitor-metadata":
        competitor_id = _require(request.competitor_id, "competitor_id")
        results.append(await orchestrator.extract_competitor_metadata(competitor_id))
    elif step == "plan":
        orchestrator.draft_plan()
    elif step == "intelligence":
        results = await orchestrator.run_intelligence()
    elif step == "options":
        results.append(await orchestrator.generate_options())
    elif step == "thumbnails":
        ids = [request.option_id] if request.option_id is not None else None
        outcomes = await orchestrator.generate_thumbnails(ids)
        results = [r for r in outcomes.values() if isinstance(r, ActionResult)]
    elif step == "script":
        results.append(await orchestrator.generate_script())
    elif step == "refine-script":
        results.append(await orchestrator.refine_script())
    elif step == "scenes":
        orchestrator.parse_scenes()
    elif step == "narration":
        results.append(await orchestrator.generate_narration(_require(request.scene_id, "scene_id")))
    elif step == "scene-media":
        results.append(await orchestrator.find_scene_media(_require(request.scene_id, "scene_id")))
    elif step == "render":
        background_tasks.add_task(manager.run_render, session_id)
    elif step == "delivery":
        results.append(await orchestrator.prepare_delivery())
    else:
        raise ValidationError(f"Unknown step: {step}")

    return {**_state(orchestrator), "results": _results(results)}


@router.delete("/sessions/{session_id}/render")
async def cancel_render(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Cancel an in-flight render."""
    if not manager.cancel(session_id):
        raise ValidationError(f"Session {session_id} has no render in progress")
    return {"session_id": session_id, "status": "cancelling"}


def _require(value, name: str):
    if value is None:
        raise ValidationError(f"This step needs {name}")
    return value
