"""Script to scene splitting."""

import math
import re

from vesper.models.pipeline import Scene

SCENE_PATTERN = re.compile(
    r"\[(\d{2}:\d{2})\s*-\s*(\d{2}:\d{2})\]\s*([^\n]*)\n(.*?)(?=\[\d{2}:\d{2}\s*-|\Z)",
    re.DOTALL,
)
CUE_PATTERN = re.compile(r"\[[^\]]*\]")

# Untimed scripts are spread over a seven-minute video.
DEFAULT_TOTAL_SECONDS = 420

_VISUAL_RULES = (
    (("abertura", "gancho"), "Pessoa idosa em momento de reflexão, luz suave"),
    (("oração", "reza"), "Mãos em oração, luz celestial, atmosfera serena"),
    (("silêncio", "meditação"), "Paisagem tranquila, natureza, pôr do sol"),
    (("bíblia", "escritura", "palavra"), "Bíblia aberta com luz, ambiente acolhedor"),
    (("final", "encerramento"), "Céu azul com nuvens, raios de sol, esperança"),
)
DEFAULT_VISUAL = "Imagem serena espiritual, tons quentes e acolhedores"


def visual_suggestion(title: str, content: str) -> str:
    """Keyword-based visual direction for a scene."""
    lower = f"{title} {content}".lower()
    for keywords, suggestion in _VISUAL_RULES:
        if any(k in lower for k in keywords):
            return suggestion
    return DEFAULT_VISUAL


def spoken_text(narration: str) -> str:
    """Narration without stage cues such as ``[pausa]``."""
    text = CUE_PATTERN.sub(" ", narration)
    return re.sub(r"\s+", " ", text).strip()


def _mmss(seconds: int) -> str:
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def parse_scenes(script: str) -> list[Scene]:
    """Split a script into scenes on ``[MM:SS-MM:SS] TITLE`` markers.

    Scripts without timestamps are split on blank lines and spread evenly
    over a seven-minute timeline.
    """
    scenes = []
    for start, end, title, content in SCENE_PATTERN.findall(script or ""):
        scenes.append(
            Scene(
                scene_id=len(scenes) + 1,
                start=start,
                end=end,
                title=title.strip(),
                narration=content.strip(),
                visual_suggestion=visual_suggestion(title, content),
            )
        )
    if scenes:
        return scenes

    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", script or "") if p.strip()]
    if not paragraphs:
        return []
    per_paragraph = math.ceil(DEFAULT_TOTAL_SECONDS / len(paragraphs))
    for i, paragraph in enumerate(paragraphs):
        start = min(i * per_paragraph, DEFAULT_TOTAL_SECONDS)
        end = min((i + 1) * per_paragraph, DEFAULT_TOTAL_SECONDS)
        scenes.append(
            Scene(
                scene_id=i + 1,
                start=_mmss(start),
                end=_mmss(end),
                narration=paragraph,
                visual_suggestion=visual_suggestion("", paragraph),
            )
        )
    return scenes
