"""Move notation, composition and application for the 3x3 engine."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any, Union

import numpy as np

from .cubie import MOVE_CUBES, CubieCube
from .errors import MalformedInputError
from .facelets import CORNER_FACELETS, EDGE_FACELETS, FACE_INDEX, FACE_ORDER, N_FACES, STATE_SIZE
from .state_codec import CubeState

# Move index -> (face, power); power 1 = clockwise, 2 = half turn,
# 3 = counter-clockwise. This is also the fixed tie-break order of the solver.
MOVE_TABLE = [(face, power) for face in FACE_ORDER for power in (1, 2, 3)]
N_MOVES = len(MOVE_TABLE)
_SUFFIX = {1: "", 2: "2", 3: "'"}
MOVE_NAMES = [f"{face}{_SUFFIX[power]}" for face, power in MOVE_TABLE]
MOVE_INDEX = {name: i for i, name in enumerate(MOVE_NAMES)}

# Moves that keep the <U, D, R2, L2, F2, B2> subgroup.
PHASE2_MOVES = tuple(
    i for i, (face, power) in enumerate(MOVE_TABLE) if face in ("U", "D") or power == 2
)

_TOKEN_RE = re.compile(r"^([URFDLB])(2|2'|'|’|i)?$")
_POWER = {None: 1, "2": 2, "2'": 2, "'": 3, "’": 3, "i": 3}

MoveLike = Union[int, str]


def move_face(move: int) -> int:
    return move // 3


def move_power(move: int) -> int:
    return move % 3 + 1


def make_move(face: int, power: int) -> int | None:
    """Move index for ``power`` quarter turns of ``face``; None for a no-op."""
    power %= 4
    if power == 0:
        return None
    return face * 3 + power - 1


def move_name(move: int) -> str:
    return MOVE_NAMES[move]


def inverse_move(move: int) -> int:
    return move_face(move) * 3 + 3 - move_power(move)


def parse_move(token: MoveLike) -> int:
    if isinstance(token, (int, np.integer)) and not isinstance(token, bool):
        if 0 <= int(token) < N_MOVES:
            return int(token)
        raise MalformedInputError(f"Move index must be in 0..{N_MOVES - 1}, got {int(token)}")
    if isinstance(token, str):
        m = _TOKEN_RE.match(token.strip())
        if m:
            return FACE_INDEX[m.group(1)] * 3 + _POWER[m.group(2)] - 1
    raise MalformedInputError(f"Unknown move {token!r}")


def parse_moves(moves: Any) -> list[int]:
    """Parse ``"R U R' U'"``, a single move, or an iterable of moves."""
    if moves is None:
        return []
    if isinstance(moves, str):
        return [parse_move(tok) for tok in moves.replace(",", " ").split()]
    if isinstance(moves, (int, np.integer)) and not isinstance(moves, bool):
        return [parse_move(moves)]
    if isinstance(moves, Iterable):
        return [parse_move(getattr(m, "move", m)) for m in moves]
    raise MalformedInputError(f"Unsupported move sequence of type {type(moves).__name__}")


def format_moves(moves: Any) -> str:
    return " ".join(MOVE_NAMES[m] for m in parse_moves(moves))


def compose(*sequences: Any) -> list[int]:
    """Concatenate sequences; applying the result equals applying each in turn."""
    out: list[int] = []
    for seq in sequences:
        out.extend(parse_moves(seq))
    return out


def invert(moves: Any) -> list[int]:
    return [inverse_move(m) for m in reversed(parse_moves(moves))]


def _facelet_permutation(cube: CubieCube) -> np.ndarray:
    """Permutation ``p`` with ``after = before[p]`` for the given move cube."""
    perm = np.arange(STATE_SIZE, dtype=np.int32)
    for i, facelets in enumerate(CORNER_FACELETS):
        j = int(cube.cp[i])
        ori = int(cube.co[i])
        for n in range(3):
            perm[facelets[(n + ori) % 3]] = CORNER_FACELETS[j][n]
    for i, facelets in enumerate(EDGE_FACELETS):
        j = int(cube.ep[i])
        ori = int(cube.eo[i])
        for n in range(2):
            perm[facelets[(n + ori) % 2]] = EDGE_FACELETS[j][n]
    return perm


# Facelet permutations of the 18 moves, derived from the cubie definitions.
MOVE_PERMUTATIONS = np.stack([_facelet_permutation(cube) for cube in MOVE_CUBES])
MOVE_PERMUTATIONS.setflags(write=False)


def apply(state, moves: Any):
    """Apply a move or move sequence and return a new state.

    ``state`` may be a ``CubeState`` (or anything it accepts) or a
    ``CubieCube``; the result has the same representation. The input is never
    modified.
    """
    seq = parse_moves(moves)
    if isinstance(state, CubieCube):
        cube = state
        for m in seq:
            cube = cube.multiply(MOVE_CUBES[m])
        return cube

    colors = CubeState(state).colors
    for m in seq:
        colors = colors[MOVE_PERMUTATIONS[m]]
    return CubeState(colors)


def scramble(steps: int, seed: int | None = None, rng: np.random.Generator | None = None) -> list[int]:
    """Random move sequence without two consecutive turns of the same face."""
    if not isinstance(steps, int) or isinstance(steps, bool) or steps < 0:
        raise MalformedInputError("Scramble steps must be a non-negative integer")
    if rng is None:
        rng = np.random.default_rng(seed)

    moves: list[int] = []
    prev_face: int | None = None
    for _ in range(steps):
        faces = [f for f in range(N_FACES) if f != prev_face]
        face = int(rng.choice(faces))
        power = int(rng.integers(1, 4))
        moves.append(face * 3 + power - 1)
        prev_face = face
    return moves
