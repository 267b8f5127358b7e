"""In-process facade over validator, solver and optimizer."""

from __future__ import annotations

import threading
from typing import Any

import numpy as np

from .errors import SolverTimeoutError
from .moves import MOVE_NAMES, apply, parse_moves, scramble
from .optimizer import optimize
from .solver import Solution, SolverOptions, TwoPhaseSolver
from .state_codec import CubeState
from .tables import get_tables, tables_loaded
from .types import SolutionStep
from .validator import ValidatedCube, validate


class RubikEngine:
    """Thread-safe entry point used by the server, CLI and UI code.

    Calls share nothing but the read-only solver tables and a few counters.
    """

    def __init__(self, options: SolverOptions | None = None, cache_dir: str | None = None):
        self.options = options or SolverOptions()
        self.cache_dir = cache_dir
        self.solver = TwoPhaseSolver(cache_dir=cache_dir)
        self._lock = threading.Lock()
        self._rng = np.random.default_rng()
        self.solve_count = 0
        self.retry_count = 0

    def warm_up(self) -> None:
        """Build or load the solver tables now instead of on the first solve."""
        get_tables(cache_dir=self.cache_dir)

    @property
    def ready(self) -> bool:
        return tables_loaded()

    def validate(self, facelets: Any) -> ValidatedCube:
        return validate(facelets)

    def solve_once(self, cube: Any, options: SolverOptions | None = None) -> Solution:
        solution = self.solver.solve(cube, options or self.options)
        with self._lock:
            self.solve_count += 1
        return solution

    def solve(self, cube: Any, options: SolverOptions | None = None) -> list[SolutionStep]:
        return self.solve_once(cube, options).to_steps()

    def optimize(self, sequence: Any) -> Any:
        return optimize(sequence)

    def solve_facelets(
        self,
        facelets: Any,
        options: SolverOptions | None = None,
        optimize_result: bool = True,
    ) -> list[SolutionStep]:
        """Validate, solve and optimize.

        A ``SolverTimeoutError`` is retried once with ``options.escalated()``
        when ``retry_on_timeout`` is set; the second timeout propagates.
        """
        options = options or self.options
        cube = validate(facelets)
        try:
            steps = self.solve(cube, options)
        except SolverTimeoutError:
            if not options.retry_on_timeout:
                raise
            with self._lock:
                self.retry_count += 1
            steps = self.solve(cube, options.escalated())
        return optimize(steps) if optimize_result and steps else steps

    def replay(self, facelets: Any, steps: Any) -> list[CubeState]:
        """States for step-by-step playback: the start state, then one per move."""
        state = CubeState(facelets)
        states = [state]
        for m in parse_moves(steps):
            state = apply(state, m)
            states.append(state)
        return states

    def scramble(self, steps: int, seed: int | None = None) -> tuple[CubeState, list[str]]:
        with self._lock:
            rng = np.random.default_rng(seed) if seed is not None else self._rng
            moves = scramble(steps, rng=rng)
        return apply(CubeState.solved(), moves), [MOVE_NAMES[m] for m in moves]

    def health_payload(self) -> dict[str, Any]:
        with self._lock:
            return {
                "ready": True,
                "tables_loaded": self.ready,
                "max_depth": self.options.max_depth,
                "solves": self.solve_count,
                "retries": self.retry_count,
            }
