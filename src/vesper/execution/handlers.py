"""Per-action handlers.

A handler knows, for one action, how to turn a payload into a provider
call, how to turn the provider reply into the action's output, what the
simulated output looks like, and what to fall back to when a live reply
cannot be used.
"""

import re
from collections.abc import Callable

from vesper.execution import defaults
from vesper.execution.providers.base import Operation, ProviderCall, ProviderReply
from vesper.execution.providers.youtube import extract_video_id
from vesper.models.errors import ProviderError, ProviderErrorKind, ValidationError
from vesper.pipeline import prompts
from vesper.pipeline.parser import parse_llm_response, strip_script


class ActionHandler:
    """Base handler; subclasses override the pieces that differ."""

    action_id: str = ""
    operation: Operation = Operation.COMPLETE
    json_output: bool = False
    max_tokens: int = 2048

    def build_call(self, payload: dict, model: str) -> ProviderCall:
        return ProviderCall(
            operation=self.operation,
            model=model,
            prompt=self.prompt(payload),
            system=prompts.SYSTEM_PROMPT if self.operation == Operation.COMPLETE else "",
            json_output=self.json_output,
            max_tokens=self.max_tokens,
            params=self.params(payload),
        )

    def prompt(self, payload: dict) -> str:
        return ""

    def params(self, payload: dict) -> dict:
        return {}

    def normalize(self, reply: ProviderReply, payload: dict) -> dict:
        return dict(reply.data)

    def simulate(self, payload: dict) -> dict:
        raise NotImplementedError

    def fallback(self, payload: dict) -> dict | None:
        """Deterministic replacement output; ``None`` means no fallback exists."""
        return None

    def is_empty(self, output: dict) -> bool:
        """A valid answer that found nothing; the next provider in the chain is tried."""
        return False


class JsonCompletionHandler(ActionHandler):
    """A language-model action whose reply is a JSON object."""

    json_output = True

    def __init__(
        self,
        action_id: str,
        build_prompt: Callable[[dict], str],
        simulated: Callable[[dict], dict],
        fallback: Callable[[dict], dict] | None = None,
        max_tokens: int = 2048,
    ):
        self.action_id = action_id
        self._build_prompt = build_prompt
        self._simulated = simulated
        self._fallback = fallback
        self.max_tokens = max_tokens

    def prompt(self, payload: dict) -> str:
        return self._build_prompt(payload)

    def normalize(self, reply: ProviderReply, payload: dict) -> dict:
        return parse_llm_response(reply.text or "")

    def simulate(self, payload: dict) -> dict:
        return self._simulated(payload)

    def fallback(self, payload: dict) -> dict | None:
        return self._fallback(payload) if self._fallback else None


class OptionsHandler(JsonCompletionHandler):
    """Keeps at most three options and numbers them 1..n in reply order."""

    def normalize(self, reply: ProviderReply, payload: dict) -> dict:
        data = parse_llm_response(reply.text or "")
        raw = data.get("options")
        if not isinstance(raw, list):
            raise ProviderError("Options reply has no options list", kind=ProviderErrorKind.UNKNOWN)
        options = [o for o in raw if isinstance(o, dict)][:3]
        for i, option in enumerate(options, start=1):
            option["option_id"] = i
        return {"options": options}


class MetadataHandler(ActionHandler):
    action_id = "fetch-video-metadata"
    operation = Operation.VIDEO_METADATA

    def params(self, payload: dict) -> dict:
        link = payload.get("link") or ""
        video_id = extract_video_id(link)
        if not video_id:
            raise ValidationError(f"Not a YouTube video link: {link!r}")
        return {"video_id": video_id}

    def simulate(self, payload: dict) -> dict:
        return defaults.video_metadata(payload)

    def fallback(self, payload: dict) -> dict:
        return {"metadata": None}


class ThumbnailHandler(ActionHandler):
    action_id = "generate-thumbnail"
    operation = Operation.IMAGE

    def prompt(self, payload: dict) -> str:
        return prompts.build_thumbnail_prompt(payload)

    def params(self, payload: dict) -> dict:
        return {"size": "1792x1024"}

    def normalize(self, reply: ProviderReply, payload: dict) -> dict:
        return {"image_url": reply.url}

    def simulate(self, payload: dict) -> dict:
        return defaults.thumbnail(payload)

    def fallback(self, payload: dict) -> dict:
        return {"image_url": None}


class ScriptHandler(ActionHandler):
    """The only source of the script; it has no fallback."""

    action_id = "generate-script"
    max_tokens = 4096

    def prompt(self, payload: dict) -> str:
        return prompts.build_script_prompt(payload)

    def normalize(self, reply: ProviderReply, payload: dict) -> dict:
        return {"script": strip_script(reply.text or "")}

    def simulate(self, payload: dict) -> dict:
        return {"script": defaults.script(payload)}


class RefineScriptHandler(ActionHandler):
    action_id = "refine-script"
    max_tokens = 4096

    def prompt(self, payload: dict) -> str:
        return prompts.build_refine_prompt(payload)

    def normalize(self, reply: ProviderReply, payload: dict) -> dict:
        return {"script": strip_script(reply.text or "")}

    def simulate(self, payload: dict) -> dict:
        blacklist = (payload.get("guidelines") or {}).get("blacklist") or []
        return {"script": scrub(payload.get("script") or "", blacklist)}

    def fallback(self, payload: dict) -> dict:
        return {"script": payload.get("script") or ""}


class NarrationHandler(ActionHandler):
    action_id = "generate-narration"
    operation = Operation.SPEECH

    def prompt(self, payload: dict) -> str:
        return payload.get("text") or ""

    def params(self, payload: dict) -> dict:
        return {
            "voice_id": payload.get("voice_id") or "21m00Tcm4TlvDq8ikWAM",
            "neural_voice": payload.get("neural_voice") or "pt-BR-FranciscaNeural",
        }

    def normalize(self, reply: ProviderReply, payload: dict) -> dict:
        return {"audio_url": reply.url, "duration_seconds": reply.data.get("duration_seconds")}

    def is_empty(self, output: dict) -> bool:
        return not output.get("audio_url")

    def simulate(self, payload: dict) -> dict:
        return defaults.narration(payload)

    def fallback(self, payload: dict) -> dict:
        return defaults.narration_fallback(payload)


class SceneMediaHandler(ActionHandler):
    action_id = "find-scene-media"
    operation = Operation.MEDIA_SEARCH

    def prompt(self, payload: dict) -> str:
        return payload.get("query") or ""

    def normalize(self, reply: ProviderReply, payload: dict) -> dict:
        return {
            "visual_url": reply.url,
            "source": reply.data.get("source"),
            "attribution": reply.data.get("attribution"),
        }

    def is_empty(self, output: dict) -> bool:
        return not output.get("visual_url")

    def simulate(self, payload: dict) -> dict:
        return defaults.scene_media(payload)

    def fallback(self, payload: dict) -> dict:
        return {"visual_url": None, "source": None, "attribution": None}


class RenderSubmitHandler(ActionHandler):
    action_id = "render-video"
    operation = Operation.RENDER_SUBMIT

    def params(self, payload: dict) -> dict:
        return {
            "scenes": payload.get("scenes") or [],
            "soundtrack_url": payload.get("soundtrack_url") or "",
        }

    def simulate(self, payload: dict) -> dict:
        return {"job_id": defaults.render_job_id(payload)}


class RenderStatusHandler(ActionHandler):
    action_id = "render-status"
    operation = Operation.RENDER_STATUS

    def params(self, payload: dict) -> dict:
        if not payload.get("job_id"):
            raise ValidationError("A render status check needs a job id")
        return {"job_id": payload["job_id"]}

    def normalize(self, reply: ProviderReply, payload: dict) -> dict:
        return {"status": reply.data.get("status"), "result_url": reply.url}

    def simulate(self, payload: dict) -> dict:
        # The simulated executor tracks poll counts itself.
        return {"status": "done", "result_url": defaults.render_url(payload["job_id"])}


def scrub(text: str, blacklist: list[str]) -> str:
    """Remove blacklisted words, case-insensitively."""
    for word in blacklist:
        text = re.sub(rf"\b{re.escape(word)}\b", "", text, flags=re.IGNORECASE)
    return re.sub(r"[ \t]{2,}", " ", text).strip()


def _handlers() -> dict[str, ActionHandler]:
    handlers: list[ActionHandler] = [
        MetadataHandler(),
        JsonCompletionHandler(
            "deep-research",
            prompts.build_research_prompt,
            defaults.research,
            defaults.research_fallback,
        ),
        JsonCompletionHandler(
            "analyze-channel",
            prompts.build_channel_analysis_prompt,
            defaults.channel_analysis,
            defaults.channel_analysis,
        ),
        JsonCompletionHandler(
            "analyze-competitor",
            prompts.build_competitor_prompt,
            defaults.competitor_analysis,
            defaults.competitor_analysis,
        ),
        OptionsHandler(
            "generate-options",
            prompts.build_options_prompt,
            defaults.options,
            defaults.options,
        ),
        ThumbnailHandler(),
        ScriptHandler(),
        RefineScriptHandler(),
        NarrationHandler(),
        SceneMediaHandler(),
        RenderSubmitHandler(),
        RenderStatusHandler(),
        JsonCompletionHandler(
            "seo-optimization",
            prompts.build_seo_prompt,
            defaults.seo,
            defaults.seo,
        ),
    ]
    return {h.action_id: h for h in handlers}


HANDLERS: dict[str, ActionHandler] = _handlers()
