"""Shared dataclasses for solver output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import MalformedInputError
from .moves import MOVE_NAMES, parse_move


@dataclass(frozen=True)
class SolutionStep:
    move: str  # canonical move symbol, e.g. "R'"
    description: str = ""

    def __post_init__(self):
        # Normalise "R’" / "Ri" / move indices to the canonical symbol.
        object.__setattr__(self, "move", MOVE_NAMES[parse_move(self.move)])
        if not isinstance(self.description, str):
            raise MalformedInputError("Step description must be a string")

    def to_dict(self) -> dict[str, str]:
        return {"move": self.move, "description": self.description}

    @classmethod
    def from_dict(cls, data: Any) -> SolutionStep:
        if not isinstance(data, dict) or "move" not in data:
            raise MalformedInputError("Solution step must be an object with a 'move' field")
        return cls(move=data["move"], description=data.get("description") or "")
