"""Shared hint data structures."""

from dataclasses import dataclass
from enum import Enum

from .syntax import TextRange


class HintKind(Enum):
    """What a hint shows. Renderers style by kind; the engine does not."""

    TYPE = "type"
    PARAMETER = "parameter"
    CHAINING = "chaining"


@dataclass(frozen=True)
class Hint:
    """One inline label attached to a source range."""

    range: TextRange
    kind: HintKind
    label: str

    def to_dict(self) -> dict[str, object]:
        return {
            "start": self.range.start,
            "end": self.range.end,
            "kind": self.kind.value,
            "label": self.label,
        }
