"""Ordered production phases."""

from enum import StrEnum


class Phase(StrEnum):
    """The six ordered stages of a production."""

    TRIGGER = "trigger"
    PLANNING = "planning"
    INTELLIGENCE = "intelligence"
    CREATION = "creation"
    STUDIO = "studio"
    DELIVERY = "delivery"

    @classmethod
    def ordered(cls) -> list["Phase"]:
        return list(cls)

    @property
    def index(self) -> int:
        return Phase.ordered().index(self)

    def next(self) -> "Phase | None":
        phases = Phase.ordered()
        i = self.index
        return phases[i + 1] if i + 1 < len(phases) else None

    def previous(self) -> "Phase | None":
        i = self.index
        return Phase.ordered()[i - 1] if i > 0 else None
