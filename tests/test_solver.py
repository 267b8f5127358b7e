import unittest
from unittest import mock

import numpy as np

from rubik_engine.cubie import CubieCube
from rubik_engine.errors import (
    InternalInvariantError,
    MalformedInputError,
    OrientationError,
    SolverTimeoutError,
    UnsolvableStateError,
)
from rubik_engine.moves import apply, parse_moves, scramble
from rubik_engine.optimizer import optimize
from rubik_engine.solver import SOLVED_DESCRIPTION, SolverOptions, TwoPhaseSolver, _Search, solve
from rubik_engine.state_codec import CubeState
from rubik_engine.tables import TwoPhaseTables, get_tables
from rubik_engine.validator import validate

SCRAMBLE = "R U R' U' R' F R2 U' R' U' R U R' F'"


class TestSolverOptions(unittest.TestCase):
    def test_defaults_and_escalation(self):
        options = SolverOptions(time_budget=1.5)
        self.assertEqual(options.max_depth, 24)
        retry = options.escalated()
        self.assertEqual(retry.max_depth, 26)
        self.assertEqual(retry.time_budget, 3.0)
        self.assertFalse(retry.retry_on_timeout)
        self.assertIsNone(SolverOptions().escalated().time_budget)

    def test_invalid_options_rejected(self):
        bad = (
            {"max_depth": -1},
            {"max_depth": 2.5},
            {"time_budget": 0},
            {"time_budget": "1"},
            {"retry_time_factor": "2"},
            {"retry_time_factor": 0.5},
            {"retry_depth_step": True},
            {"retry_on_timeout": "yes"},
        )
        for kwargs in bad:
            with self.assertRaises(MalformedInputError, msg=str(kwargs)):
                SolverOptions(**kwargs)


class TestTwoPhaseSolver(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.solver = TwoPhaseSolver(tables=get_tables())

    def _check_solves(self, state, moves):
        self.assertTrue(apply(state, moves).is_solved, msg=" ".join(moves))

    def test_solved_cube_gives_empty_solution(self):
        solution = self.solver.solve(CubeState.solved())
        self.assertEqual(len(solution), 0)
        self.assertEqual(solution.to_steps(), [])
        self.assertEqual(solve(CubeState.solved()), [])

    def test_single_move_scramble(self):
        for token in ("R", "U2", "F'"):
            state = apply(CubeState.solved(), token)
            steps = solve(state)
            self.assertGreaterEqual(len(steps), 1)
            self._check_solves(state, [s.move for s in steps])

    def test_reference_scramble_end_to_end(self):
        state = apply(CubeState.solved(), SCRAMBLE)
        steps = optimize(solve(validate(state)))
        self.assertLessEqual(len(steps), 24)
        self._check_solves(state, [s.move for s in steps])

    def test_solve_is_deterministic(self):
        state = apply(CubeState.solved(), "F R' D2 B L' U")
        first = self.solver.solve(state)
        second = self.solver.solve(state)
        self.assertEqual(first.moves, second.moves)
        self.assertEqual(first.to_steps(), second.to_steps())

    def test_random_scrambles(self):
        rng = np.random.default_rng(2024)
        for _ in range(3):
            state = apply(CubeState.solved(), scramble(12, rng=rng))
            solution = self.solver.solve(state)
            self.assertLessEqual(len(solution), 24)
            self._check_solves(state, solution.moves)

    def test_accepts_cubie_cube(self):
        cube = apply(CubieCube(), "L D' B2")
        solution = self.solver.solve(cube)
        self.assertTrue(apply(cube, solution.moves).is_identity())

    def test_solution_has_the_smallest_total_depth(self):
        state = apply(CubeState.solved(), "R U F")
        self.assertEqual(self.solver.solve(state).moves, parse_moves("F' U' R'"))

        rng = np.random.default_rng(7)
        for _ in range(2):
            state = apply(CubeState.solved(), scramble(10, rng=rng))
            first = self.solver.solve(state)
            self.assertEqual(self.solver.solve(state, SolverOptions(max_depth=30)).moves, first.moves)
            self.assertEqual(self.solver.solve(state, SolverOptions(max_depth=len(first))).moves, first.moves)
            with self.assertRaises(SolverTimeoutError):
                self.solver.solve(state, SolverOptions(max_depth=len(first) - 1))

    def test_steps_carry_descriptions(self):
        state = apply(CubeState.solved(), "R U F")
        solution = self.solver.solve(state)
        steps = solution.to_steps()
        self.assertEqual(len(steps), len(solution))
        self.assertTrue(all(s.description for s in steps))
        self.assertEqual(steps[-1].description, SOLVED_DESCRIPTION)
        for step in steps[: len(solution.phase1)]:
            self.assertTrue(step.description.startswith("phase 1") or step.description == SOLVED_DESCRIPTION)

    def test_invalid_state_fails_before_search(self):
        flipped = CubieCube(eo=[1] + [0] * 11)
        with mock.patch.object(_Search, "run") as run:
            with self.assertRaises(OrientationError):
                self.solver.solve(flipped.to_colors())
            with self.assertRaises(OrientationError):
                self.solver.solve(flipped)
        run.assert_not_called()

    def test_depth_budget_exceeded(self):
        state = apply(CubeState.solved(), "R U F")
        with self.assertRaises(SolverTimeoutError) as ctx:
            self.solver.solve(state, SolverOptions(max_depth=2))
        self.assertEqual(ctx.exception.max_depth, 2)
        self.assertIsInstance(ctx.exception, TimeoutError)

    def test_time_budget_exceeded(self):
        state = apply(CubeState.solved(), scramble(25, seed=11))
        with self.assertRaises(SolverTimeoutError) as ctx:
            self.solver.solve(state, SolverOptions(time_budget=1e-6))
        self.assertEqual(ctx.exception.time_budget, 1e-6)

    def test_wrong_search_result_is_internal_error(self):
        with mock.patch.object(_Search, "run", return_value=(parse_moves("U"), [])):
            with self.assertRaises(InternalInvariantError):
                self.solver.solve(CubeState.solved())

    def test_unreachable_pruning_entry_is_unsolvable(self):
        arrays = dict(get_tables().arrays)
        arrays["twist_slice_prune"] = np.full_like(arrays["twist_slice_prune"], 255)
        broken = TwoPhaseSolver(tables=TwoPhaseTables(arrays))
        with self.assertRaises(UnsolvableStateError):
            broken.solve(apply(CubeState.solved(), "R"))


if __name__ == "__main__":
    unittest.main()
