import unittest

import numpy as np

from rubik_engine.moves import N_MOVES, apply, parse_moves
from rubik_engine.optimizer import optimize, optimize_moves, optimize_steps
from rubik_engine.state_codec import CubeState
from rubik_engine.types import SolutionStep


class TestOptimizer(unittest.TestCase):
    def test_merge_rules(self):
        self.assertEqual(optimize("R R"), ["R2"])
        self.assertEqual(optimize("R R'"), [])
        self.assertEqual(optimize("R R R"), ["R'"])
        self.assertEqual(optimize("R2 R2"), [])
        self.assertEqual(optimize("R' R2"), ["R"])
        self.assertEqual(optimize("U R R' U"), ["U2"])
        self.assertEqual(optimize("F U R R' U' F'"), [])
        self.assertEqual(optimize(""), [])

    def test_opposite_faces_are_not_reordered(self):
        self.assertEqual(optimize("U D U'"), ["U", "D", "U'"])

    def test_random_sequences_keep_net_transform(self):
        rng = np.random.default_rng(5)
        solved = CubeState.solved()
        for _ in range(20):
            seq = rng.integers(0, N_MOVES, size=40).tolist()
            out = optimize_moves(seq)
            self.assertLessEqual(len(out), len(seq))
            self.assertEqual(apply(solved, out), apply(solved, seq))
            for a, b in zip(out[:-1], out[1:]):
                self.assertNotEqual(a // 3, b // 3)
            self.assertEqual(optimize_moves(out), out)

    def test_steps_keep_later_description(self):
        steps = [
            SolutionStep("F", "first"),
            SolutionStep("R", "a"),
            SolutionStep("R", "b"),
            SolutionStep("U", "x"),
            SolutionStep("U'", "y"),
        ]
        out = optimize_steps(steps)
        self.assertEqual(out, [SolutionStep("F", "first"), SolutionStep("R2", "b")])
        self.assertEqual(optimize(steps), out)
        self.assertEqual(parse_moves(out), [6, 4])


if __name__ == "__main__":
    unittest.main()
