"""Two-phase solver.

Phase 1 searches for a move sequence that orients every corner and edge and
brings the four middle-layer edges into the middle layer, which puts the cube
into the subgroup <U, D, R2, L2, F2, B2>. Phase 2 solves the cube inside that
subgroup using only the ten moves that preserve it. Both phases are
iterative-deepening depth-first searches bounded by the pruning tables in
``tables.py``. Total depths are tried in increasing order up to ``max_depth``
and the first solution of the smallest total is returned; moves are always
expanded in the canonical order of ``MOVE_NAMES``, so results are
deterministic and do not depend on ``max_depth`` beyond the cut-off.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any

from .coords import N_SLICE, N_SPERM, SOLVED_SLICE, phase1_coords, phase2_coords
from .cubie import MOVE_CUBES, CubieCube
from .errors import InternalInvariantError, MalformedInputError, SolverTimeoutError, UnsolvableStateError
from .moves import MOVE_NAMES, N_MOVES, PHASE2_MOVES
from .tables import UNVISITED, TwoPhaseTables, get_tables
from .types import SolutionStep
from .validator import ValidatedCube, check_cubie, validate

# Longest phase 2 tried per phase-1 candidate; deep phase-2 searches are slow.
PHASE2_DEPTH_CAP = 10
# Every cube reaches the phase-1 subgroup in at most 12 moves.
PHASE1_DEPTH_CAP = 12
MAX_DEPTH_LIMIT = 50

_PHASE2_SET = frozenset(PHASE2_MOVES)
_PHASE2_COLUMN = {m: k for k, m in enumerate(PHASE2_MOVES)}
_PHASE2_FACES = tuple(m // 3 for m in PHASE2_MOVES)

PHASE1_GOAL = "reduce to <U, D, R2, L2, F2, B2>"
SOLVED_DESCRIPTION = "cube solved"


@dataclass(frozen=True)
class SolverOptions:
    max_depth: int = 24
    time_budget: float | None = None  # seconds
    retry_on_timeout: bool = True
    retry_depth_step: int = 2
    retry_time_factor: float = 2.0

    def __post_init__(self):
        if not isinstance(self.max_depth, int) or isinstance(self.max_depth, bool):
            raise MalformedInputError("max_depth must be an integer")
        if not 0 <= self.max_depth <= MAX_DEPTH_LIMIT:
            raise MalformedInputError(f"max_depth must be in 0..{MAX_DEPTH_LIMIT}, got {self.max_depth}")
        if self.time_budget is not None:
            if isinstance(self.time_budget, bool) or not isinstance(self.time_budget, (int, float)):
                raise MalformedInputError("time_budget must be a number of seconds or null")
            if self.time_budget <= 0:
                raise MalformedInputError("time_budget must be positive")
        if not isinstance(self.retry_on_timeout, bool):
            raise MalformedInputError("retry_on_timeout must be a boolean")
        if isinstance(self.retry_depth_step, bool) or not isinstance(self.retry_depth_step, int):
            raise MalformedInputError("retry_depth_step must be an integer")
        if self.retry_depth_step < 0:
            raise MalformedInputError("retry_depth_step must be non-negative")
        if isinstance(self.retry_time_factor, bool) or not isinstance(self.retry_time_factor, (int, float)):
            raise MalformedInputError("retry_time_factor must be a number")
        if self.retry_time_factor < 1.0:
            raise MalformedInputError("retry_time_factor must be >= 1")

    def escalated(self) -> SolverOptions:
        """Options for the single retry after a timeout."""
        return replace(
            self,
            max_depth=min(self.max_depth + self.retry_depth_step, MAX_DEPTH_LIMIT),
            time_budget=None if self.time_budget is None else self.time_budget * self.retry_time_factor,
            retry_on_timeout=False,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_depth": self.max_depth,
            "time_budget": self.time_budget,
            "retry_on_timeout": self.retry_on_timeout,
            "retry_depth_step": self.retry_depth_step,
            "retry_time_factor": self.retry_time_factor,
        }


@dataclass(frozen=True)
class Solution:
    phase1: tuple[int, ...]
    phase2: tuple[int, ...]
    descriptions: tuple[str, ...] = field(repr=False)
    nodes: int = 0
    elapsed: float = 0.0

    @property
    def moves(self) -> list[int]:
        return [*self.phase1, *self.phase2]

    def __len__(self) -> int:
        return len(self.phase1) + len(self.phase2)

    def format(self) -> str:
        return " ".join(MOVE_NAMES[m] for m in self.moves)

    def to_steps(self) -> list[SolutionStep]:
        return [SolutionStep(MOVE_NAMES[m], d) for m, d in zip(self.moves, self.descriptions)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "moves": self.format(),
            "length": len(self),
            "phase1_length": len(self.phase1),
            "phase2_length": len(self.phase2),
            "nodes": self.nodes,
            "elapsed": self.elapsed,
            "steps": [s.to_dict() for s in self.to_steps()],
        }


class _Search:
    """State of one ``solve`` call; never shared between calls.

    Total depths are tried in increasing order. For a total ``n`` every
    split ``n = depth1 + depth2`` is tried with ``depth1`` ascending, and the
    phase-1 goals of each length are visited in canonical move order, so the
    first hit is the first solution of the smallest total depth.
    """

    def __init__(self, tables: TwoPhaseTables, cube: CubieCube, options: SolverOptions):
        self.t = tables
        self.cube = cube
        self.max_depth = options.max_depth
        self.time_budget = options.time_budget
        self.deadline = None if options.time_budget is None else time.monotonic() + options.time_budget
        self.nodes = 0
        self.path1: list[int] = []
        self.path2: list[int] = []
        # depth1 -> [(path1, cperm, udperm, sperm, phase-2 bound)]
        self._goals: dict[int, list[tuple[tuple[int, ...], int, int, int, int]]] = {}

    def _tick(self) -> None:
        self.nodes += 1
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise SolverTimeoutError(
                f"Time budget of {self.time_budget}s exhausted after {self.nodes} nodes",
                max_depth=self.max_depth,
                time_budget=self.time_budget,
            )

    def run(self) -> tuple[list[int], list[int]]:
        twist, flip, slc = phase1_coords(self.cube)
        h = self.t.phase1_bound(twist, flip, slc)
        if h == UNVISITED:
            raise UnsolvableStateError("Phase 1 pruning tables do not reach this cube")
        self._start = (twist, flip, slc)

        for total in range(h, self.max_depth + 1):
            for depth1 in range(max(h, total - PHASE2_DEPTH_CAP), min(total, PHASE1_DEPTH_CAP) + 1):
                depth2 = total - depth1
                for path1, cperm, udperm, sperm, h2 in self._phase1_goals(depth1):
                    if h2 > depth2:
                        continue
                    self.path2 = []
                    last_face = path1[-1] // 3 if path1 else -1
                    if self._phase2(cperm, udperm, sperm, depth2, last_face):
                        return list(path1), self.path2
        raise SolverTimeoutError(
            f"No solution within max_depth={self.max_depth}",
            max_depth=self.max_depth,
            time_budget=self.time_budget,
        )

    def _phase1_goals(self, depth1: int) -> list[tuple[tuple[int, ...], int, int, int, int]]:
        goals = self._goals.get(depth1)
        if goals is None:
            goals = self._goals[depth1] = []
            self.path1 = []
            self._phase1(*self._start, depth1, -1, goals)
        return goals

    def _phase1(self, twist: int, flip: int, slc: int, togo: int, last_face: int, goals: list) -> None:
        self._tick()
        if togo == 0:
            if twist or flip or slc != SOLVED_SLICE:
                return
            # A phase-1 path ending in a phase-2 move repeats a shorter one.
            if self.path1 and self.path1[-1] in _PHASE2_SET:
                return
            self._add_goal(goals)
            return

        t = self.t
        twist_row, flip_row, slice_row = t.twist_move[twist], t.flip_move[flip], t.slice_move[slc]
        twist_prune, flip_prune = t.twist_slice_prune, t.flip_slice_prune
        for m in range(N_MOVES):
            face = m // 3
            if face == last_face or face + 3 == last_face:
                continue
            ntw, nfl, nsl = twist_row[m], flip_row[m], slice_row[m]
            if twist_prune[ntw * N_SLICE + nsl] >= togo or flip_prune[nfl * N_SLICE + nsl] >= togo:
                continue
            self.path1.append(m)
            self._phase1(ntw, nfl, nsl, togo - 1, face, goals)
            self.path1.pop()

    def _add_goal(self, goals: list) -> None:
        cube = self.cube
        for m in self.path1:
            cube = cube.multiply(MOVE_CUBES[m])
        cperm, udperm, sperm = phase2_coords(cube)
        h = self.t.phase2_bound(cperm, udperm, sperm)
        if h == UNVISITED:
            raise UnsolvableStateError("Phase 2 pruning tables do not reach this cube")
        if h <= PHASE2_DEPTH_CAP:
            goals.append((tuple(self.path1), cperm, udperm, sperm, h))

    def _phase2(self, cperm: int, udperm: int, sperm: int, togo: int, last_face: int) -> bool:
        self._tick()
        if togo == 0:
            return cperm == 0 and udperm == 0 and sperm == 0

        t = self.t
        cperm_row, udperm_row, sperm_row = t.cperm_move[cperm], t.udperm_move[udperm], t.sperm_move[sperm]
        cperm_prune, udperm_prune = t.cperm_sperm_prune, t.udperm_sperm_prune
        for k, m in enumerate(PHASE2_MOVES):
            face = _PHASE2_FACES[k]
            if face == last_face or face + 3 == last_face:
                continue
            ncp, nud, nsp = cperm_row[k], udperm_row[k], sperm_row[k]
            if cperm_prune[ncp * N_SPERM + nsp] >= togo or udperm_prune[nud * N_SPERM + nsp] >= togo:
                continue
            self.path2.append(m)
            if self._phase2(ncp, nud, nsp, togo - 1, face):
                return True
            self.path2.pop()
        return False


def describe_solution(tables: TwoPhaseTables, cube: CubieCube, phase1: list[int], phase2: list[int]) -> list[str]:
    """Human-readable purpose of each move, from the sub-goals it completes."""
    out: list[str] = []
    twist, flip, slc = phase1_coords(cube)
    for i, m in enumerate(phase1):
        before = (flip == 0, twist == 0, slc == SOLVED_SLICE)
        twist, flip, slc = tables.twist_move[twist][m], tables.flip_move[flip][m], tables.slice_move[slc][m]
        after = (flip == 0, twist == 0, slc == SOLVED_SLICE)
        if i == len(phase1) - 1 and not phase2:
            out.append(SOLVED_DESCRIPTION)
            continue
        if i == len(phase1) - 1 and all(after):
            out.append(f"phase 1 complete: {PHASE1_GOAL}")
            continue
        labels = ("orient all edges", "orient all corners", "bring the middle-layer edges into the middle layer")
        reached = [label for label, b, a in zip(labels, before, after) if a and not b]
        if reached:
            out.append("phase 1: " + " and ".join(reached))
        else:
            out.append(f"phase 1: orient edges and corners to {PHASE1_GOAL}")

    for m in phase1:
        cube = cube.multiply(MOVE_CUBES[m])
    cperm, udperm, sperm = phase2_coords(cube) if phase2 else (0, 0, 0)
    for i, m in enumerate(phase2):
        k = _PHASE2_COLUMN[m]
        before = (cperm == 0, sperm == 0, udperm == 0)
        cperm, udperm, sperm = tables.cperm_move[cperm][k], tables.udperm_move[udperm][k], tables.sperm_move[sperm][k]
        after = (cperm == 0, sperm == 0, udperm == 0)
        if i == len(phase2) - 1:
            out.append(SOLVED_DESCRIPTION)
            continue
        labels = ("place all corners", "place the middle-layer edges", "place the top and bottom layer edges")
        reached = [label for label, b, a in zip(labels, before, after) if a and not b]
        if reached:
            out.append("phase 2: " + " and ".join(reached))
        else:
            out.append("phase 2: permute corners and edges using U, D and half turns")
    return out


class TwoPhaseSolver:
    """Solver bound to a table set; safe to share between threads."""

    def __init__(self, tables: TwoPhaseTables | None = None, cache_dir: str | None = None):
        self._tables = tables
        self.cache_dir = cache_dir

    @property
    def tables(self) -> TwoPhaseTables:
        if self._tables is None:
            return get_tables(cache_dir=self.cache_dir)
        return self._tables

    def solve(self, cube: Any, options: SolverOptions | None = None) -> Solution:
        """Solve a validated cube, a ``CubieCube`` or a raw facelet assignment.

        Raises ``ValidationError`` before searching when the cube is not
        legal, ``SolverTimeoutError`` when the depth or time budget runs out,
        and ``InternalInvariantError`` when the result does not solve the cube.
        """
        options = options or SolverOptions()
        if isinstance(cube, CubieCube):
            cubie = check_cubie(cube)
        else:
            cubie = (cube if isinstance(cube, ValidatedCube) else validate(cube)).cubie

        tables = self.tables
        t0 = time.perf_counter()
        search = _Search(tables, cubie, options)
        phase1, phase2 = search.run()
        elapsed = time.perf_counter() - t0

        result = cubie
        for m in phase1 + phase2:
            result = result.multiply(MOVE_CUBES[m])
        if not result.is_identity():
            raise InternalInvariantError(
                "Search returned "
                + " ".join(MOVE_NAMES[m] for m in phase1 + phase2)
                + " which does not solve the cube"
            )

        return Solution(
            phase1=tuple(phase1),
            phase2=tuple(phase2),
            descriptions=tuple(describe_solution(tables, cubie, phase1, phase2)),
            nodes=search.nodes,
            elapsed=elapsed,
        )


_DEFAULT_SOLVER = TwoPhaseSolver()


def solve(cube: Any, options: SolverOptions | None = None) -> list[SolutionStep]:
    """Solve with the process-wide tables and return the ordered steps."""
    return _DEFAULT_SOLVER.solve(cube, options).to_steps()
