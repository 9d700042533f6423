"""Deterministic content for simulated runs and live-mode fallbacks.

Everything here is a pure function of the action payload, so the same
payload always yields the same content.
"""

import hashlib
import json

from vesper.execution.providers.elevenlabs import estimate_speech_seconds
from vesper.execution.providers.youtube import extract_video_id

TRIGGER_LABELS = {
    "hope": "esperança",
    "healing": "cura",
    "protection": "proteção",
    "gratitude": "gratidão",
    "inner-peace": "paz interior",
    "strength": "força",
    "forgiveness": "perdão",
    "prosperity": "prosperidade",
    "wisdom": "sabedoria",
}

CONTENT_LABELS = {
    "guided-prayer": "Oração Guiada",
    "spiritual-meditation": "Meditação",
    "bible-reflection": "Reflexão Bíblica",
    "narrated-psalm": "Salmo Narrado",
    "faith-message": "Mensagem de Fé",
}

# Script length in minutes for each target duration.
DURATION_MINUTES = {"3-5min": 4, "5-10min": 8, "10-15min": 12, "15+min": 16}


def digest(payload: dict, length: int = 12) -> str:
    """Stable short hash of a payload."""
    raw = json.dumps(payload, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:length]


def trigger_labels(payload: dict) -> list[str]:
    return [TRIGGER_LABELS.get(t, t) for t in payload.get("emotional_triggers") or []]


def _topic(payload: dict) -> str:
    return (payload.get("topic") or "").strip() or "Oração"


def _mmss(seconds: int) -> str:
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def video_metadata(payload: dict) -> dict:
    link = payload.get("link") or ""
    video_id = extract_video_id(link) or f"sim{digest(payload, 8)}"
    return {
        "metadata": {
            "video_id": video_id,
            "title": "Oração Poderosa Para Acalmar a Mente e o Coração | Paz Interior",
            "channel": "Canal Espiritual Exemplo",
            "views": 458723,
            "likes": 32456,
            "comments": 1847,
            "published_at": "2024-01-15T06:00:00Z",
            "duration": "12:34",
            "tags": ["oração", "paz interior", "espiritualidade", "fé", "oração da manhã"],
            "description": "Uma oração poderosa para trazer paz ao seu coração.",
            "thumbnail_url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
        }
    }


def research(payload: dict) -> dict:
    topic = _topic(payload)
    triggers = ", ".join(trigger_labels(payload)) or "esperança, paz"
    return {
        "facts": [
            f'O tema "{topic}" está entre os mais buscados no nicho espiritual',
            "Orações guiadas retêm mais que conteúdo apenas falado",
            "O público 60+ prefere narração lenta e pausada",
            f"Gatilhos como {triggers} aumentam o engajamento",
        ],
        "trivia": [
            'A palavra "poderosa" no título aumenta a taxa de cliques',
            "Thumbnails com luz dourada performam melhor neste nicho",
            "Vídeos publicados às 6h têm mais views nas primeiras 24h",
        ],
        "citations": [
            "Salmos 23:1-4",
            "Filipenses 4:6-7",
            "Isaías 41:10",
            "Mateus 11:28",
            "Jeremias 29:11",
        ],
    }


def research_fallback(payload: dict) -> dict:
    """Placeholder findings when the research reply cannot be used."""
    return {
        "facts": [f'Pesquisa indisponível: revise manualmente o tema "{_topic(payload)}"'],
        "trivia": [],
        "citations": [],
    }


def channel_analysis(payload: dict) -> dict:
    return {
        "success_patterns": [
            "Títulos com promessa emocional clara",
            "Thumbnails com rostos serenos e luz suave",
            "Descrições com timestamps e links úteis",
        ],
        "retention_themes": [_topic(payload), "Oração da manhã", "Paz interior", "Cura emocional"],
        "ideal_duration": "8-12 minutos",
        "engagement_triggers": [
            "Abertura com pergunta retórica",
            "Pausas para reflexão",
            "Convite para comentar a experiência",
        ],
    }


def competitor_analysis(payload: dict) -> dict:
    return {
        "narrative_structure": (
            "Abertura emocional (15s), contextualização (30s), oração principal "
            "e fechamento esperançoso"
        ),
        "retention_hooks": [
            "Promessa de transformação no início",
            "Música ambiente suave",
            "Pausas estratégicas para absorção",
        ],
        "viral_elements": [
            'Título com a palavra "poderosa" ou "milagrosa"',
            "Thumbnail com contraste de luz e sombra",
            "Primeiros 5 segundos com gancho forte",
        ],
    }


def options(payload: dict) -> dict:
    topic = _topic(payload)
    labels = trigger_labels(payload)
    first = labels[0] if labels else "esperança"
    kind = CONTENT_LABELS.get(payload.get("content_type", ""), "Oração Guiada")
    return {
        "options": [
            {
                "option_id": 1,
                "title": f"{topic} - Oração Poderosa Para Sua Vida",
                "thumbnail_concept": (
                    "Pessoa idosa de mãos postas em oração, luz dourada celestial ao fundo"
                ),
                "hook": (
                    "Você já sentiu que suas orações não estão sendo ouvidas? Nos próximos "
                    "minutos, eu vou te mostrar como conectar seu coração com Deus..."
                ),
                "thumbnail_prompt": (
                    "Elderly person with hands in prayer, golden celestial light background, "
                    "peaceful serene expression, 16:9"
                ),
            },
            {
                "option_id": 2,
                "title": f"PARE TUDO e Faça Esta Oração Agora - {kind}",
                "thumbnail_concept": "Mãos erguidas para o céu com raios de luz e nuvens",
                "hook": (
                    "Esta oração mudou a vida de milhares de pessoas. "
                    "E hoje, ela pode mudar a sua também..."
                ),
                "thumbnail_prompt": (
                    "Hands raised to the sky with rays of light, celestial clouds, "
                    "miracle atmosphere, 16:9"
                ),
            },
            {
                "option_id": 3,
                "title": f"A Oração Que Deus Sempre Ouve - {first.capitalize()} e Fé",
                "thumbnail_concept": "Bíblia aberta com luz emanando, tons quentes",
                "hook": (
                    "Existe uma forma de orar que toca o coração de Deus. "
                    "E ela está esquecida pela maioria das pessoas..."
                ),
                "thumbnail_prompt": (
                    "Open Bible with light emanating, cozy spiritual environment, "
                    "warm tones, 16:9"
                ),
            },
        ]
    }


def thumbnail(payload: dict) -> dict:
    option_id = payload.get("option_id", 0)
    return {
        "image_url": f"https://picsum.photos/seed/{digest(payload, 8)}-{option_id}/1792/1024"
    }


def script(payload: dict) -> str:
    """A complete timestamped script following the channel structure."""
    topic = _topic(payload)
    hook = payload.get("hook") or "Se você chegou até aqui, não foi por acaso..."
    triggers = " e ".join(trigger_labels(payload)) or "paz e esperança"
    ctas = (payload.get("guidelines") or {}).get("required_ctas") or {}
    total = DURATION_MINUTES.get(payload.get("target_duration", ""), 8) * 60

    # Section boundaries scale with the target duration.
    marks = [0, 15, 30] + [30 + round((total - 30) * f) for f in (0.2, 0.45, 0.7, 0.85, 0.95, 1)]
    t = [_mmss(m) for m in marks]

    return f"""[{t[0]}-{t[1]}] ABERTURA MAGNÉTICA
{hook}

[{t[1]}-{t[2]}] GANCHO EMOCIONAL
Talvez você esteja passando por um momento difícil... Mas eu quero que você saiba: você não está sozinho. Deus está aqui, agora, esperando você abrir seu coração.
{ctas.get('opening', '')}

[{t[2]}-{t[3]}] DESENVOLVIMENTO
Vamos juntos nesta jornada de oração sobre {topic}. Feche seus olhos... Respire fundo... [pausa]
Senhor, eu venho até Ti com o coração aberto. Tu conheces cada dor que carrego.

[{t[3]}-{t[4]}] PALAVRA
[voz suave] A Bíblia nos ensina em Filipenses 4:6-7: "Não andem ansiosos por coisa alguma, mas em tudo, pela oração e súplicas, apresentem seus pedidos a Deus."
{ctas.get('middle', '')}

[{t[4]}-{t[5]}] ORAÇÃO CENTRAL
Pai Celestial... derrama sobre nós {triggers}. Tu és o Deus que acalma tempestades, que cura feridas, que restaura esperanças. [pausa]

[{t[5]}-{t[6]}] MOMENTO DE SILÊNCIO
Fique em silêncio agora... Permita que a presença de Deus preencha cada espaço vazio do seu coração. [pausa longa]

[{t[6]}-{t[7]}] ENCERRAMENTO
Lembre-se sempre: você é amado. Não importa o que esteja enfrentando, Deus está trabalhando em seu favor.

[{t[7]}-{t[8]}] CTA FINAL
{ctas.get('closing', '')}
Se esta oração tocou seu coração, deixe um amém nos comentários. Que a paz do Senhor esteja com você."""


def narration(payload: dict) -> dict:
    return {
        "audio_url": f"https://cdn.vesper.invalid/audio/{digest(payload)}.mp3",
        "duration_seconds": estimate_speech_seconds(payload.get("text") or ""),
    }


def narration_fallback(payload: dict) -> dict:
    return {
        "audio_url": None,
        "duration_seconds": estimate_speech_seconds(payload.get("text") or ""),
    }


def scene_media(payload: dict) -> dict:
    return {
        "visual_url": f"https://picsum.photos/seed/{digest(payload, 8)}/1920/1080",
        "source": "simulated",
        "attribution": None,
    }


def render_job_id(payload: dict) -> str:
    return f"sim-{digest(payload)}"


def render_url(job_id: str) -> str:
    return f"https://cdn.vesper.invalid/renders/{job_id}.mp4"


def seo(payload: dict) -> dict:
    topic = _topic(payload)
    title = (payload.get("title") or "").strip() or f"{topic} - Oração Poderosa"
    channel = payload.get("channel_name") or ""
    description = (
        f"{title}\n\n"
        f"{topic} - Uma oração especial para você que está precisando de paz "
        "e renovação espiritual.\n\n"
        "Neste vídeo, vamos orar juntos por:\n"
        "- Paz interior\n- Renovação da fé\n- Força para enfrentar os desafios\n\n"
        "Baixe nosso E-book gratuito com 30 orações poderosas - link abaixo.\n"
        "Entre no nosso Grupo VIP do WhatsApp - link abaixo.\n"
    )
    if channel:
        description += f"\nInscreva-se no {channel} e ative o sininho."
    words = [w.strip(".,!?|-").lower() for w in topic.split()]
    tags = [topic.lower(), "oração", "oração poderosa", "fé", "espiritualidade", "deus"]
    tags += [w for w in words if len(w) > 3]
    unique = list(dict.fromkeys(t for t in tags if t))
    return {"title": title[:100], "description": description, "tags": unique}
