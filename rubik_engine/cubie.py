"""Cubie-level cube model: corner/edge permutation and orientation."""

from __future__ import annotations

from typing import Any

import numpy as np

from .errors import CubieError
from .facelets import (
    CANONICAL_FACE_COLORS,
    CORNER_FACELETS,
    CORNER_FACES,
    D,
    EDGE_FACELETS,
    EDGE_FACES,
    FACE_ORDER,
    N_FACES,
    STATE_SIZE,
    STICKERS_PER_FACE,
    U,
)

CORNER_NAMES = ("URF", "UFL", "ULB", "UBR", "DFR", "DLF", "DBL", "DRB")
EDGE_NAMES = ("UR", "UF", "UL", "UB", "DR", "DF", "DL", "DB", "FR", "FL", "BL", "BR")
CORNER_INDEX = {name: i for i, name in enumerate(CORNER_NAMES)}
EDGE_INDEX = {name: i for i, name in enumerate(EDGE_NAMES)}
N_CORNERS = len(CORNER_NAMES)
N_EDGES = len(EDGE_NAMES)


def permutation_parity(perm: np.ndarray) -> int:
    """0 for an even permutation, 1 for an odd one."""
    p = np.asarray(perm)
    i, j = np.triu_indices(p.size, 1)
    return int(np.count_nonzero(p[i] > p[j]) % 2)


def _frozen(values: Any, size: int) -> np.ndarray:
    arr = np.array(values, dtype=np.int8).reshape(-1)
    if arr.size != size:
        raise ValueError(f"Expected {size} values, got {arr.size}")
    arr.setflags(write=False)
    return arr


class CubieCube:
    """Cube on the cubie level.

    ``cp[i]`` is the corner cubie sitting in corner position ``i`` and ``co[i]``
    its clockwise twist; ``ep``/``eo`` are the same for edges. Instances are
    immutable; every operation returns a new cube.
    """

    __slots__ = ("cp", "co", "ep", "eo")

    def __init__(self, cp=None, co=None, ep=None, eo=None):
        self.cp = _frozen(range(N_CORNERS) if cp is None else cp, N_CORNERS)
        self.co = _frozen([0] * N_CORNERS if co is None else co, N_CORNERS)
        self.ep = _frozen(range(N_EDGES) if ep is None else ep, N_EDGES)
        self.eo = _frozen([0] * N_EDGES if eo is None else eo, N_EDGES)

    def multiply(self, other: CubieCube) -> CubieCube:
        """Return ``self`` followed by ``other``."""
        return CubieCube(
            cp=self.cp[other.cp],
            co=(self.co[other.cp] + other.co) % 3,
            ep=self.ep[other.ep],
            eo=(self.eo[other.ep] + other.eo) % 2,
        )

    def inverse(self) -> CubieCube:
        cp = np.argsort(self.cp)
        ep = np.argsort(self.ep)
        return CubieCube(
            cp=cp,
            co=(-self.co[cp]) % 3,
            ep=ep,
            eo=self.eo[ep],
        )

    def corner_parity(self) -> int:
        return permutation_parity(self.cp)

    def edge_parity(self) -> int:
        return permutation_parity(self.ep)

    def twist_sum(self) -> int:
        return int(self.co.sum())

    def flip_sum(self) -> int:
        return int(self.eo.sum())

    def is_identity(self) -> bool:
        return self == SOLVED_CUBIE

    def to_faces(self) -> np.ndarray:
        """Flat array of 54 face ids: which face's color each facelet shows."""
        faces = np.repeat(np.arange(N_FACES, dtype=np.int8), STICKERS_PER_FACE)
        for i in range(N_CORNERS):
            j = int(self.cp[i])
            ori = int(self.co[i])
            for n in range(3):
                faces[CORNER_FACELETS[i][(n + ori) % 3]] = CORNER_FACES[j][n]
        for i in range(N_EDGES):
            j = int(self.ep[i])
            ori = int(self.eo[i])
            for n in range(2):
                faces[EDGE_FACELETS[i][(n + ori) % 2]] = EDGE_FACES[j][n]
        return faces

    def to_colors(self, face_colors: tuple[int, ...] = CANONICAL_FACE_COLORS) -> np.ndarray:
        """Flat color ids when face ``f`` carries ``face_colors[f]``."""
        return np.asarray(face_colors, dtype=np.int8)[self.to_faces()]

    @classmethod
    def from_faces(cls, faces: np.ndarray) -> CubieCube:
        """Build the cubie cube from 54 face ids.

        Raises ``CubieError`` when stickers do not form a real cubie or a
        cubie occurs more than once.
        """
        f = np.asarray(faces, dtype=np.int8).reshape(-1)
        if f.size != STATE_SIZE:
            raise ValueError(f"Expected {STATE_SIZE} facelets, got {f.size}")

        cp = [0] * N_CORNERS
        co = [0] * N_CORNERS
        for i, facelets in enumerate(CORNER_FACELETS):
            stickers = [int(f[k]) for k in facelets]
            for ori in range(3):
                if stickers[ori] in (U, D):
                    break
            else:
                raise CubieError(
                    f"Corner position {CORNER_NAMES[i]} has no top or bottom sticker "
                    f"({_face_letters(stickers)})"
                )
            seen = (stickers[ori], stickers[(ori + 1) % 3], stickers[(ori + 2) % 3])
            try:
                cp[i] = CORNER_FACES.index(seen)
            except ValueError:
                raise CubieError(
                    f"Corner position {CORNER_NAMES[i]} holds stickers "
                    f"{_face_letters(stickers)} which do not form a corner cubie"
                ) from None
            co[i] = ori

        ep = [0] * N_EDGES
        eo = [0] * N_EDGES
        for i, facelets in enumerate(EDGE_FACELETS):
            stickers = (int(f[facelets[0]]), int(f[facelets[1]]))
            if stickers in EDGE_FACES:
                ep[i] = EDGE_FACES.index(stickers)
                eo[i] = 0
            elif stickers[::-1] in EDGE_FACES:
                ep[i] = EDGE_FACES.index(stickers[::-1])
                eo[i] = 1
            else:
                raise CubieError(
                    f"Edge position {EDGE_NAMES[i]} holds stickers "
                    f"{_face_letters(stickers)} which do not form an edge cubie"
                )

        _check_unique(cp, CORNER_NAMES, "Corner")
        _check_unique(ep, EDGE_NAMES, "Edge")
        return cls(cp=cp, co=co, ep=ep, eo=eo)

    def to_dict(self) -> dict[str, list[int]]:
        return {
            "cp": self.cp.tolist(),
            "co": self.co.tolist(),
            "ep": self.ep.tolist(),
            "eo": self.eo.tolist(),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CubieCube):
            return NotImplemented
        return (
            np.array_equal(self.cp, other.cp)
            and np.array_equal(self.co, other.co)
            and np.array_equal(self.ep, other.ep)
            and np.array_equal(self.eo, other.eo)
        )

    def __hash__(self) -> int:
        return hash((self.cp.tobytes(), self.co.tobytes(), self.ep.tobytes(), self.eo.tobytes()))

    def __repr__(self) -> str:
        return (
            f"CubieCube(cp={self.cp.tolist()}, co={self.co.tolist()}, "
            f"ep={self.ep.tolist()}, eo={self.eo.tolist()})"
        )


def _face_letters(stickers) -> str:
    return "".join(FACE_ORDER[s] for s in stickers)


def _check_unique(perm: list[int], names: tuple[str, ...], label: str) -> None:
    counts = np.bincount(np.asarray(perm, dtype=np.int64), minlength=len(names))
    bad = [f"{names[j]} x{int(n)}" for j, n in enumerate(counts) if n != 1]
    if bad:
        raise CubieError(f"{label} cubies must each appear once; got {', '.join(bad)}")


SOLVED_CUBIE = CubieCube()


def _basic_move(cp: str, co: list[int], ep: str, eo: list[int]) -> CubieCube:
    return CubieCube(
        cp=[CORNER_INDEX[n] for n in cp.split()],
        co=co,
        ep=[EDGE_INDEX[n] for n in ep.split()],
        eo=eo,
    )


# Clockwise quarter turns of the six faces in FACE_ORDER.
BASIC_MOVE_CUBES = (
    _basic_move(
        "UBR URF UFL ULB DFR DLF DBL DRB",
        [0, 0, 0, 0, 0, 0, 0, 0],
        "UB UR UF UL DR DF DL DB FR FL BL BR",
        [0] * 12,
    ),
    _basic_move(
        "DFR UFL ULB URF DRB DLF DBL UBR",
        [2, 0, 0, 1, 1, 0, 0, 2],
        "FR UF UL UB BR DF DL DB DR FL BL UR",
        [0] * 12,
    ),
    _basic_move(
        "UFL DLF ULB UBR URF DFR DBL DRB",
        [1, 2, 0, 0, 2, 1, 0, 0],
        "UR FL UL UB DR FR DL DB UF DF BL BR",
        [0, 1, 0, 0, 0, 1, 0, 0, 1, 1, 0, 0],
    ),
    _basic_move(
        "URF UFL ULB UBR DLF DBL DRB DFR",
        [0, 0, 0, 0, 0, 0, 0, 0],
        "UR UF UL UB DF DL DB DR FR FL BL BR",
        [0] * 12,
    ),
    _basic_move(
        "URF ULB DBL UBR DFR UFL DLF DRB",
        [0, 1, 2, 0, 0, 2, 1, 0],
        "UR UF BL UB DR DF FL DB FR UL DL BR",
        [0] * 12,
    ),
    _basic_move(
        "URF UFL UBR DRB DFR DLF ULB DBL",
        [0, 0, 1, 2, 0, 0, 2, 1],
        "UR UF UL BR DR DF DL BL FR FL UB DB",
        [0, 0, 0, 1, 0, 0, 0, 1, 0, 0, 1, 1],
    ),
)


def _build_move_cubes() -> tuple[CubieCube, ...]:
    cubes: list[CubieCube] = []
    for basic in BASIC_MOVE_CUBES:
        cube = SOLVED_CUBIE
        for _ in range(3):
            cube = cube.multiply(basic)
            cubes.append(cube)
    return tuple(cubes)


# Index 3 * face + power - 1: quarter, half and three-quarter turns.
MOVE_CUBES = _build_move_cubes()
