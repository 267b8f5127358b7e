"""Move tables and pruning tables for the two-phase search.

The tables are the only expensive shared resource of the engine. They are
built once per process, on first use, under a lock, and are read-only after
that: ``get_tables()`` returns the same ``TwoPhaseTables`` instance to every
caller.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime
from pathlib import Path

import numpy as np

from .coords import (
    N_CPERM,
    N_FLIP,
    N_SLICE,
    N_SPERM,
    N_TWIST,
    N_UD_EDGES,
    N_UDPERM,
    SOLVED_SLICE,
    all_permutations,
    flip_coord,
    flip_decode,
    perm_rank,
    slice_coord_from_occupancy,
    slice_decode,
    twist_coord,
    twist_decode,
)
from .cubie import MOVE_CUBES
from .moves import N_MOVES, PHASE2_MOVES
from .table_cache import TableCache

N_PHASE2_MOVES = len(PHASE2_MOVES)
UNVISITED = 255
_BFS_CHUNK = 1 << 16

TABLE_SHAPES: dict[str, tuple[int, ...]] = {
    "twist_move": (N_TWIST, N_MOVES),
    "flip_move": (N_FLIP, N_MOVES),
    "slice_move": (N_SLICE, N_MOVES),
    "cperm_move": (N_CPERM, N_PHASE2_MOVES),
    "udperm_move": (N_UDPERM, N_PHASE2_MOVES),
    "sperm_move": (N_SPERM, N_PHASE2_MOVES),
    "twist_slice_prune": (N_TWIST * N_SLICE,),
    "flip_slice_prune": (N_FLIP * N_SLICE,),
    "cperm_sperm_prune": (N_CPERM * N_SPERM,),
    "udperm_sperm_prune": (N_UDPERM * N_SPERM,),
}


def _log(message: str) -> None:
    ts = datetime.now().strftime("%H:%M:%S")
    print(f"[{ts}] {message}", flush=True)


def build_move_tables() -> dict[str, np.ndarray]:
    """Coordinate transition tables: ``table[coord, move] -> coord``.

    Phase-1 tables cover all 18 moves, phase-2 tables the 10 moves in
    ``PHASE2_MOVES`` (column ``k`` is move ``PHASE2_MOVES[k]``).
    """
    co_all = twist_decode()
    eo_all = flip_decode()
    occ_all = slice_decode()

    twist_move = np.empty(TABLE_SHAPES["twist_move"], dtype=np.int32)
    flip_move = np.empty(TABLE_SHAPES["flip_move"], dtype=np.int32)
    slice_move = np.empty(TABLE_SHAPES["slice_move"], dtype=np.int32)
    for m, cube in enumerate(MOVE_CUBES):
        cp = cube.cp.astype(np.intp)
        ep = cube.ep.astype(np.intp)
        twist_move[:, m] = twist_coord((co_all[:, cp] + cube.co) % 3)
        flip_move[:, m] = flip_coord((eo_all[:, ep] + cube.eo) % 2)
        slice_move[:, m] = slice_coord_from_occupancy(occ_all[:, ep])

    perms8 = all_permutations(8)
    perms4 = all_permutations(4)
    cperm_move = np.empty(TABLE_SHAPES["cperm_move"], dtype=np.int32)
    udperm_move = np.empty(TABLE_SHAPES["udperm_move"], dtype=np.int32)
    sperm_move = np.empty(TABLE_SHAPES["sperm_move"], dtype=np.int32)
    for k, m in enumerate(PHASE2_MOVES):
        cube = MOVE_CUBES[m]
        ud = cube.ep[:N_UD_EDGES].astype(np.intp)
        sl = cube.ep[N_UD_EDGES:].astype(np.intp) - N_UD_EDGES
        if ud.max() >= N_UD_EDGES or sl.min() < 0:
            raise RuntimeError(f"Move {m} does not keep the middle slice in place")
        cperm_move[:, k] = perm_rank(perms8[:, cube.cp.astype(np.intp)])
        udperm_move[:, k] = perm_rank(perms8[:, ud])
        sperm_move[:, k] = perm_rank(perms4[:, sl])

    return {
        "twist_move": twist_move,
        "flip_move": flip_move,
        "slice_move": slice_move,
        "cperm_move": cperm_move,
        "udperm_move": udperm_move,
        "sperm_move": sperm_move,
    }


def build_pruning_table(move_a: np.ndarray, move_b: np.ndarray, start_a: int, start_b: int) -> np.ndarray:
    """Breadth-first distances over the product of two coordinates.

    Entry ``a * n_b + b`` holds the fewest moves that bring both coordinates
    back to ``(start_a, start_b)``; a lower bound for the full cube.
    """
    n_a, n_b = move_a.shape[0], move_b.shape[0]
    table = np.full(n_a * n_b, UNVISITED, dtype=np.uint8)
    frontier = np.array([start_a * n_b + start_b], dtype=np.int64)
    table[frontier] = 0
    depth = 0
    while frontier.size:
        if depth + 1 >= UNVISITED:
            raise RuntimeError("Pruning depth does not fit into uint8")
        parts: list[np.ndarray] = []
        for lo in range(0, frontier.size, _BFS_CHUNK):
            chunk = frontier[lo : lo + _BFS_CHUNK]
            a, b = np.divmod(chunk, n_b)
            nxt = (move_a[a].astype(np.int64) * n_b + move_b[b]).reshape(-1)
            nxt = np.unique(nxt[table[nxt] == UNVISITED])
            table[nxt] = depth + 1
            parts.append(nxt)
        frontier = np.concatenate(parts)
        depth += 1
    return table


def build_tables(verbose: bool = False) -> dict[str, np.ndarray]:
    t0 = time.perf_counter()
    arrays = build_move_tables()
    if verbose:
        _log(f"table_build move_tables done elapsed={time.perf_counter() - t0:.2f}s")

    specs = (
        ("twist_slice_prune", "twist_move", "slice_move", 0, SOLVED_SLICE),
        ("flip_slice_prune", "flip_move", "slice_move", 0, SOLVED_SLICE),
        ("cperm_sperm_prune", "cperm_move", "sperm_move", 0, 0),
        ("udperm_sperm_prune", "udperm_move", "sperm_move", 0, 0),
    )
    for name, a, b, start_a, start_b in specs:
        arrays[name] = build_pruning_table(arrays[a], arrays[b], start_a, start_b)
        if verbose:
            table = arrays[name]
            _log(
                f"table_build {name} done max_depth={int(table[table != UNVISITED].max())} "
                f"elapsed={time.perf_counter() - t0:.2f}s"
            )
    return arrays


class TwoPhaseTables:
    """Read-only table set with list/bytes views for the search loop."""

    def __init__(self, arrays: dict[str, np.ndarray]):
        for name, shape in TABLE_SHAPES.items():
            if name not in arrays:
                raise ValueError(f"Missing table: {name}")
            if tuple(arrays[name].shape) != shape:
                raise ValueError(f"Table {name} has shape {arrays[name].shape}, expected {shape}")

        self.arrays = {name: np.array(arrays[name], copy=True) for name in TABLE_SHAPES}
        for arr in self.arrays.values():
            arr.setflags(write=False)

        self.twist_move = self.arrays["twist_move"].tolist()
        self.flip_move = self.arrays["flip_move"].tolist()
        self.slice_move = self.arrays["slice_move"].tolist()
        self.cperm_move = self.arrays["cperm_move"].tolist()
        self.udperm_move = self.arrays["udperm_move"].tolist()
        self.sperm_move = self.arrays["sperm_move"].tolist()
        self.twist_slice_prune = self.arrays["twist_slice_prune"].astype(np.uint8).tobytes()
        self.flip_slice_prune = self.arrays["flip_slice_prune"].astype(np.uint8).tobytes()
        self.cperm_sperm_prune = self.arrays["cperm_sperm_prune"].astype(np.uint8).tobytes()
        self.udperm_sperm_prune = self.arrays["udperm_sperm_prune"].astype(np.uint8).tobytes()

    def phase1_bound(self, twist: int, flip: int, slice_: int) -> int:
        return max(
            self.twist_slice_prune[twist * N_SLICE + slice_],
            self.flip_slice_prune[flip * N_SLICE + slice_],
        )

    def phase2_bound(self, cperm: int, udperm: int, sperm: int) -> int:
        return max(
            self.cperm_sperm_prune[cperm * N_SPERM + sperm],
            self.udperm_sperm_prune[udperm * N_SPERM + sperm],
        )


_TABLES: TwoPhaseTables | None = None
_TABLES_LOCK = threading.Lock()


def get_tables(cache_dir: str | Path | None = None, verbose: bool = False) -> TwoPhaseTables:
    """Return the process-wide tables, building (or loading) them on first use.

    Concurrent first callers block on the lock and share the single build.
    """
    global _TABLES
    tables = _TABLES
    if tables is not None:
        return tables
    with _TABLES_LOCK:
        if _TABLES is None:
            _TABLES = _load_or_build(cache_dir, verbose)
        return _TABLES


def tables_loaded() -> bool:
    return _TABLES is not None


def _load_or_build(cache_dir: str | Path | None, verbose: bool) -> TwoPhaseTables:
    cache = TableCache(cache_dir) if cache_dir is not None else None
    if cache is not None:
        arrays = cache.load(TABLE_SHAPES)
        if arrays is not None:
            if verbose:
                _log(f"table_cache loaded path={cache.path}")
            return TwoPhaseTables(arrays)

    if verbose:
        _log("table_build start")
    arrays = build_tables(verbose=verbose)
    if cache is not None:
        path = cache.save(arrays)
        for stale in cache.stale_paths():
            stale.unlink()
            if verbose:
                _log(f"table_cache removed stale={stale}")
        if verbose:
            _log(f"table_cache saved path={path}")
    return TwoPhaseTables(arrays)
