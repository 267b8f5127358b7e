"""Integer coordinates of the cubie model used by the two-phase search.

Every encoder works on a single cube (1-D arrays) or on a batch (2-D arrays,
one cube per row), so move tables can be built for all coordinates at once.

Phase 1 coordinates:
    twist  - orientation of corners 0..6 in base 3 (the last one is implied)
    flip   - orientation of edges 0..10 in base 2
    slice  - which 4 of the 12 edge positions hold FR, FL, BL, BR
Phase 2 coordinates (only meaningful inside <U, D, R2, L2, F2, B2>):
    cperm  - permutation of the 8 corners
    udperm - permutation of the 8 U/D-layer edges
    sperm  - permutation of the 4 middle-slice edges
"""

from __future__ import annotations

import itertools
from functools import lru_cache

import numpy as np

from .cubie import N_CORNERS, N_EDGES, CubieCube

N_TWIST = 3 ** (N_CORNERS - 1)
N_FLIP = 2 ** (N_EDGES - 1)
N_SLICE = 495
N_CPERM = 40320
N_UDPERM = 40320
N_SPERM = 24

SLICE_EDGES = (8, 9, 10, 11)
N_UD_EDGES = 8

_TWIST_WEIGHTS = 3 ** np.arange(N_CORNERS - 2, -1, -1, dtype=np.int64)
_FLIP_WEIGHTS = 2 ** np.arange(N_EDGES - 2, -1, -1, dtype=np.int64)
_EDGE_BITS = 1 << np.arange(N_EDGES, dtype=np.int64)

SLICE_COMBINATIONS = tuple(itertools.combinations(range(N_EDGES), len(SLICE_EDGES)))
_SLICE_INDEX_BY_MASK = np.full(1 << N_EDGES, -1, dtype=np.int32)
for _i, _combo in enumerate(SLICE_COMBINATIONS):
    _SLICE_INDEX_BY_MASK[sum(1 << p for p in _combo)] = _i
del _i, _combo


@lru_cache(maxsize=None)
def all_permutations(n: int) -> np.ndarray:
    """All permutations of ``range(n)``; row ``r`` has Lehmer rank ``r``."""
    perms = np.array(list(itertools.permutations(range(n))), dtype=np.int8)
    perms.setflags(write=False)
    return perms


def perm_rank(perms: np.ndarray) -> np.ndarray | int:
    """Lexicographic rank of each permutation row."""
    p = np.asarray(perms, dtype=np.int64)
    single = p.ndim == 1
    p = np.atleast_2d(p)
    n = p.shape[1]
    rank = np.zeros(p.shape[0], dtype=np.int64)
    for i in range(n):
        smaller = np.count_nonzero(p[:, i + 1 :] < p[:, i : i + 1], axis=1)
        rank = rank * (n - i) + smaller
    return int(rank[0]) if single else rank


def twist_coord(co: np.ndarray) -> np.ndarray | int:
    co = np.asarray(co, dtype=np.int64)
    out = co[..., : N_CORNERS - 1] @ _TWIST_WEIGHTS
    return int(out) if co.ndim == 1 else out


def twist_decode() -> np.ndarray:
    """Corner orientations for every twist coordinate, shape (2187, 8)."""
    idx = np.arange(N_TWIST, dtype=np.int64)
    co = np.zeros((N_TWIST, N_CORNERS), dtype=np.int64)
    for k in range(N_CORNERS - 2, -1, -1):
        co[:, k] = idx % 3
        idx //= 3
    co[:, -1] = (-co[:, :-1].sum(axis=1)) % 3
    return co


def flip_coord(eo: np.ndarray) -> np.ndarray | int:
    eo = np.asarray(eo, dtype=np.int64)
    out = eo[..., : N_EDGES - 1] @ _FLIP_WEIGHTS
    return int(out) if eo.ndim == 1 else out


def flip_decode() -> np.ndarray:
    """Edge orientations for every flip coordinate, shape (2048, 12)."""
    idx = np.arange(N_FLIP, dtype=np.int64)
    eo = np.zeros((N_FLIP, N_EDGES), dtype=np.int64)
    for k in range(N_EDGES - 2, -1, -1):
        eo[:, k] = idx % 2
        idx //= 2
    eo[:, -1] = eo[:, :-1].sum(axis=1) % 2
    return eo


def slice_coord_from_occupancy(occupied: np.ndarray) -> np.ndarray | int:
    occ = np.asarray(occupied, dtype=bool)
    masks = occ.astype(np.int64) @ _EDGE_BITS
    out = _SLICE_INDEX_BY_MASK[masks]
    return int(out) if occ.ndim == 1 else out


def slice_coord(ep: np.ndarray) -> np.ndarray | int:
    ep = np.asarray(ep)
    return slice_coord_from_occupancy(ep >= SLICE_EDGES[0])


def slice_decode() -> np.ndarray:
    """Slice-edge occupancy for every slice coordinate, shape (495, 12)."""
    occ = np.zeros((N_SLICE, N_EDGES), dtype=bool)
    for i, combo in enumerate(SLICE_COMBINATIONS):
        occ[i, list(combo)] = True
    return occ


def cperm_coord(cp: np.ndarray) -> np.ndarray | int:
    return perm_rank(cp)


def udperm_coord(ep: np.ndarray) -> np.ndarray | int:
    return perm_rank(np.asarray(ep)[..., :N_UD_EDGES])


def sperm_coord(ep: np.ndarray) -> np.ndarray | int:
    return perm_rank(np.asarray(ep)[..., N_UD_EDGES:] - N_UD_EDGES)


def phase1_coords(cube: CubieCube) -> tuple[int, int, int]:
    return twist_coord(cube.co), flip_coord(cube.eo), slice_coord(cube.ep)


def phase2_coords(cube: CubieCube) -> tuple[int, int, int]:
    """Phase-2 coordinates; the cube must already be in the phase-2 subgroup."""
    return cperm_coord(cube.cp), udperm_coord(cube.ep), sperm_coord(cube.ep)


SOLVED_SLICE = slice_coord(np.arange(N_EDGES))
