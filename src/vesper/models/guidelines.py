"""Channel guideline models."""

from pydantic import BaseModel, Field


class RequiredCTAs(BaseModel):
    """Calls to action every script must carry."""

    opening: str = Field(
        default="Se inscreva no canal e ative o sininho para receber mais orações"
    )
    middle: str = Field(
        default="Baixe nosso E-book gratuito com 30 orações poderosas - link na descrição"
    )
    closing: str = Field(default="Entre no nosso Grupo VIP do WhatsApp - link na descrição")


class ScriptArchitecture(BaseModel):
    """Section-by-section shape of a script."""

    magnetic_opening: str = Field(default="15 segundos de gancho emocional forte")
    emotional_hook: str = Field(
        default="Até 30 segundos, conectar com a dor/desejo do público"
    )
    development: str = Field(default="Pausas para respiração, tom suave e acolhedor")
    middle_cta: str = Field(default="Inserir convite do E-book naturalmente")
    closing: str = Field(default="Mensagem de esperança e fé")
    final_cta: str = Field(default="Inscrição + Grupo VIP WhatsApp")


class Guidelines(BaseModel):
    """Editorial guidelines applied to plans, prompts and scripts."""

    blacklist: list[str] = Field(
        default_factory=lambda: [
            "blindar",
            "escudo",
            "chave",
            "amuleto",
            "simpatia",
            "magia",
            "feitiço",
            "encantamento",
            "ritual mágico",
        ]
    )
    required_ctas: RequiredCTAs = Field(default_factory=RequiredCTAs)
    script_architecture: ScriptArchitecture = Field(default_factory=ScriptArchitecture)
    visual_style: str = Field(
        default="Pessoas aparentando 60+ anos, paisagens celestiais, luz divina"
    )

    def banned_words_in(self, text: str) -> list[str]:
        """Return blacklisted words that appear in ``text``."""
        lower = text.lower()
        return [word for word in self.blacklist if word.lower() in lower]
