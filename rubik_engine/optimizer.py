"""Move-sequence simplification: merge same-face neighbours, drop no-ops."""

from __future__ import annotations

from typing import Any

from .moves import MOVE_NAMES, make_move, move_face, move_power, parse_moves
from .types import SolutionStep


def optimize_moves(moves: Any) -> list[int]:
    """Shortest sequence reachable by merging consecutive turns of one face.

    Adjacent entries of the stack never share a face, so a single pass
    reaches the fixed point: when two turns cancel, the entry underneath
    becomes the neighbour of the next incoming move.
    """
    stack: list[tuple[int, int]] = []
    for m in parse_moves(moves):
        face, power = move_face(m), move_power(m)
        if stack and stack[-1][0] == face:
            _, prev = stack.pop()
            power = (prev + power) % 4
            if power == 0:
                continue
        stack.append((face, power))
    return [make_move(face, power) for face, power in stack]


def optimize_steps(steps: list[SolutionStep]) -> list[SolutionStep]:
    """Same rewrite on solution steps; a merged step keeps the later description."""
    stack: list[tuple[int, int, str]] = []
    for step in steps:
        (m,) = parse_moves([step])
        face, power = move_face(m), move_power(m)
        if stack and stack[-1][0] == face:
            _, prev, _ = stack.pop()
            power = (prev + power) % 4
            if power == 0:
                continue
        stack.append((face, power, step.description))
    return [SolutionStep(MOVE_NAMES[make_move(face, power)], desc) for face, power, desc in stack]


def optimize(sequence: Any) -> Any:
    """Optimize a move string, a list of moves or a list of ``SolutionStep``.

    Steps come back as steps; everything else as a list of move symbols.
    """
    if isinstance(sequence, (list, tuple)) and sequence and all(isinstance(s, SolutionStep) for s in sequence):
        return optimize_steps(list(sequence))
    return [MOVE_NAMES[m] for m in optimize_moves(sequence)]
