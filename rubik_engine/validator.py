"""Legality checks that turn a facelet assignment into a solvable cubie cube."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from .cubie import N_CORNERS, N_EDGES, CubieCube
from .errors import ColorCountError, CubieError, DuplicateCenterError, OrientationError, ParityError
from .facelets import CENTER_INDICES, FACE_NAMES, FACE_ORDER, N_FACES, STICKERS_PER_FACE, Color
from .state_codec import CubeState


@dataclass(frozen=True)
class ValidatedCube:
    """A cube that passed every check, with its cubie model.

    ``face_colors[f]`` is the center color of face ``f``; it maps the solved
    cubie cube back to facelet colors.
    """

    state: CubeState
    cubie: CubieCube
    face_colors: tuple[Color, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "facelets": self.state.to_string(),
            "face_colors": {FACE_NAMES[f]: c.label for f, c in zip(FACE_ORDER, self.face_colors)},
            "cubie": self.cubie.to_dict(),
        }


def check_cubie(cubie: CubieCube) -> CubieCube:
    """Raise a ``ValidationError`` for a cubie cube that legal moves cannot reach."""
    if sorted(cubie.cp.tolist()) != list(range(N_CORNERS)) or sorted(cubie.ep.tolist()) != list(range(N_EDGES)):
        raise CubieError("Corner and edge permutations must contain every cubie exactly once")
    if cubie.co.min() < 0 or cubie.co.max() > 2 or cubie.eo.min() < 0 or cubie.eo.max() > 1:
        raise CubieError("Corner twists must be 0..2 and edge flips 0..1")

    corner_parity = cubie.corner_parity()
    edge_parity = cubie.edge_parity()
    if corner_parity != edge_parity:
        raise ParityError(corner_parity, edge_parity)

    twist, flip = cubie.twist_sum(), cubie.flip_sum()
    if twist % 3 or flip % 2:
        raise OrientationError(twist, flip)
    return cubie


def validate(value: Any) -> ValidatedCube:
    """Check a facelet assignment and return its cubie model.

    Checks run in order: malformed input, color counts, distinct centers,
    cubie identity, permutation parity, orientation sums. The first failing
    check raises its ``ValidationError`` subclass.
    """
    if isinstance(value, ValidatedCube):
        return value
    state = value if isinstance(value, CubeState) else CubeState(value)
    colors = state.colors.astype(np.int64)

    counts = np.bincount(colors, minlength=N_FACES)
    if np.any(counts != STICKERS_PER_FACE):
        raise ColorCountError({Color(i).label: int(n) for i, n in enumerate(counts)})

    centers = colors[list(CENTER_INDICES)]
    if np.unique(centers).size != N_FACES:
        raise DuplicateCenterError(
            {FACE_NAMES[f]: Color(int(c)).label for f, c in zip(FACE_ORDER, centers)}
        )

    face_of_color = np.empty(N_FACES, dtype=np.int8)
    face_of_color[centers] = np.arange(N_FACES, dtype=np.int8)
    cubie = check_cubie(CubieCube.from_faces(face_of_color[colors]))
    return ValidatedCube(
        state=state,
        cubie=cubie,
        face_colors=tuple(Color(int(c)) for c in centers),
    )
