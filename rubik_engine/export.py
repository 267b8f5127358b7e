"""Text and JSON export of solution steps."""

from __future__ import annotations

import json
import re
from typing import Any

from .errors import MalformedInputError
from .types import SolutionStep

_LISTING_RE = re.compile(r"^\s*(\d+)\.\s+(\S+)(?: - (.*))?$")


def format_clipboard(steps: list[SolutionStep]) -> str:
    """Single line of move symbols, e.g. ``"R U R' U'"``."""
    return " ".join(step.move for step in steps)


def format_listing(steps: list[SolutionStep]) -> str:
    """Numbered listing, one ``"1. R - description"`` line per step."""
    lines = []
    for i, step in enumerate(steps, start=1):
        if "\n" in step.description:
            raise MalformedInputError(f"Description of step {i} spans several lines")
        line = f"{i}. {step.move}"
        if step.description:
            line += f" - {step.description}"
        lines.append(line)
    return "\n".join(lines)


def parse_listing(text: str) -> list[SolutionStep]:
    steps: list[SolutionStep] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        m = _LISTING_RE.match(line)
        if m is None:
            raise MalformedInputError(f"Line {lineno} is not a numbered step: {line!r}")
        if int(m.group(1)) != len(steps) + 1:
            raise MalformedInputError(f"Line {lineno} has step number {m.group(1)}, expected {len(steps) + 1}")
        steps.append(SolutionStep(move=m.group(2), description=m.group(3) or ""))
    return steps


def steps_to_json(steps: list[SolutionStep]) -> str:
    return json.dumps([step.to_dict() for step in steps])


def steps_from_json(text: str | bytes) -> list[SolutionStep]:
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedInputError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise MalformedInputError("Expected a JSON list of steps")
    return [SolutionStep.from_dict(item) for item in data]
