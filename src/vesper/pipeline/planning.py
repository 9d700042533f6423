"""Deterministic research-plan drafting from the trigger data."""

from vesper.execution.defaults import CONTENT_LABELS, TRIGGER_LABELS
from vesper.models.guidelines import Guidelines
from vesper.models.pipeline import TriggerData

DURATION_LABELS = {
    "3-5min": "3 a 5 minutos",
    "5-10min": "5 a 10 minutos",
    "10-15min": "10 a 15 minutos",
    "15+min": "mais de 15 minutos",
}


def format_count(num: int) -> str:
    """1234567 -> ``1.2M``; 4321 -> ``4.3K``."""
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return str(num)


def draft_research_plan(
    trigger: TriggerData, guidelines: Guidelines, channel_name: str = ""
) -> str:
    """Build the editable research plan reviewed at the planning checkpoint."""
    lines = ["=== PLANO DE PESQUISA PARA INTELIGÊNCIA ===", ""]

    if trigger.topic.strip():
        lines += [
            "## 1. PESQUISA DO TEMA",
            f'- Tema principal: "{trigger.topic.strip()}"',
            f"- Tipo de conteúdo: {CONTENT_LABELS.get(trigger.content_type, trigger.content_type)}",
            f"- Duração alvo: {DURATION_LABELS.get(trigger.target_duration, trigger.target_duration)}",
            "",
            "Pesquisar:",
            "  - Versículos bíblicos relacionados ao tema",
            "  - Salmos apropriados para o contexto",
            "  - Frases de santos e teólogos sobre o assunto",
            "  - Curiosidades e fatos relevantes",
            "",
        ]

    if trigger.emotional_triggers:
        lines += ["## 2. GATILHOS EMOCIONAIS", "Otimizar conteúdo para os seguintes gatilhos:"]
        # Sets have no order; keep the plan stable across runs.
        for item in sorted(trigger.emotional_triggers):
            lines.append(f"  - {TRIGGER_LABELS.get(item, item)}")
        lines += [
            "",
            "Pesquisar:",
            "  - Palavras-chave que ativam esses sentimentos",
            "  - Estruturas narrativas que geram conexão emocional",
            "  - Hooks de retenção associados",
            "",
        ]

    with_metadata = [c for c in trigger.competitors if c.metadata]
    if with_metadata:
        lines += [
            "## 3. ANÁLISE DE CONCORRENTES",
            f"Analisar {len(with_metadata)} vídeo(s) de referência:",
        ]
        for i, comp in enumerate(with_metadata, start=1):
            meta = comp.metadata
            lines += [
                f'  {i}. "{meta.title}"',
                f"     Canal: {meta.channel}",
                f"     Views: {format_count(meta.views)} | Likes: {format_count(meta.likes)}",
                f"     Duração: {meta.duration}",
            ]
        lines += [
            "",
            "Extrair:",
            "  - Estrutura narrativa (abertura, desenvolvimento, fechamento)",
            "  - Ganchos de retenção usados",
            "  - Elementos que geraram engajamento",
            "",
        ]

    with_transcript = [c for c in trigger.competitors if (c.transcript or "").strip()]
    if with_transcript:
        lines += [
            "## 4. ANÁLISE DE TRANSCRIÇÕES",
            f"{len(with_transcript)} transcrição(ões) disponível(is) para análise",
            "",
            "Extrair:",
            "  - Tom e estilo de comunicação",
            "  - Estrutura do roteiro",
            "  - CTAs utilizados e posicionamento",
            "",
        ]

    if channel_name:
        lines += [
            "## 5. OTIMIZAÇÃO PARA O CANAL",
            f"Canal: {channel_name}",
            "Aplicar os padrões de sucesso e a duração que performa no canal",
            "",
        ]

    lines.append("## 6. DIRETRIZES A APLICAR")
    if guidelines.blacklist:
        lines.append(f"- Lista negra: evitar {len(guidelines.blacklist)} palavra(s) proibida(s)")
    lines.append("- CTAs obrigatórios: Abertura + E-book + Grupo VIP")
    lines.append("- Arquitetura do roteiro: seguir a estrutura padrão do canal")

    if trigger.special_notes.strip():
        lines += ["", "## 7. OBSERVAÇÕES ESPECIAIS", trigger.special_notes.strip()]

    lines += ["", "---", "NOTA: Edite este plano conforme necessário antes de aprovar."]
    return "\n".join(lines)
