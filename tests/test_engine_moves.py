import unittest

import numpy as np

from rubik_engine.cubie import CubieCube
from rubik_engine.errors import MalformedInputError
from rubik_engine.facelets import FACE_INDEX, STICKERS_PER_FACE, Color
from rubik_engine.moves import (
    MOVE_NAMES,
    MOVE_PERMUTATIONS,
    MOVE_TABLE,
    N_MOVES,
    PHASE2_MOVES,
    apply,
    compose,
    format_moves,
    invert,
    parse_move,
    parse_moves,
    scramble,
)
from rubik_engine.state_codec import CubeState


class TestMoveNotation(unittest.TestCase):
    def test_canonical_move_order(self):
        self.assertEqual(
            MOVE_NAMES,
            ["U", "U2", "U'", "R", "R2", "R'", "F", "F2", "F'", "D", "D2", "D'", "L", "L2", "L'", "B", "B2", "B'"],
        )
        self.assertEqual([MOVE_NAMES[m] for m in PHASE2_MOVES], ["U", "U2", "U'", "R2", "F2", "D", "D2", "D'", "L2", "B2"])

    def test_parse_variants(self):
        self.assertEqual(parse_moves("R U R' U'"), [3, 0, 5, 2])
        self.assertEqual(parse_move("R’"), 5)
        self.assertEqual(parse_move("Ri"), 5)
        self.assertEqual(parse_move("R2'"), 4)
        self.assertEqual(parse_moves("R,U2"), [3, 1])
        self.assertEqual(parse_moves(["F", 7]), [6, 7])
        self.assertEqual(parse_moves(None), [])
        self.assertEqual(format_moves([3, 1, 5]), "R U2 R'")

    def test_unknown_moves_are_malformed(self):
        for token in ("r", "M", "R3", "x", "", 18, -1):
            with self.assertRaises(MalformedInputError, msg=f"token={token!r}"):
                parse_move(token)

    def test_compose_and_invert(self):
        self.assertEqual(compose("R", ["U"], "F2"), [3, 0, 7])
        self.assertEqual(invert("R U F2"), [7, 2, 5])
        self.assertEqual(invert([]), [])


class TestMoveApplication(unittest.TestCase):
    def test_move_then_inverse_restores_state(self):
        start = apply(CubeState.solved(), "R U F' L2 D B")
        for m in range(N_MOVES):
            moved = apply(start, m)
            self.assertEqual(apply(moved, invert([m])), start, msg=MOVE_NAMES[m])

    def test_sequence_then_inverse_restores_state(self):
        rng = np.random.default_rng(3)
        start = CubeState.solved()
        for _ in range(5):
            seq = rng.integers(0, N_MOVES, size=25).tolist()
            self.assertEqual(apply(apply(start, seq), invert(seq)), start)

    def test_four_quarter_turns_restore_state(self):
        for m, (_, power) in enumerate(MOVE_TABLE):
            if power != 1:
                continue
            state = CubeState.solved()
            for _ in range(4):
                state = apply(state, m)
            self.assertEqual(state, CubeState.solved(), msg=MOVE_NAMES[m])

    def test_apply_does_not_modify_input(self):
        start = CubeState.solved()
        before = start.colors.copy()
        apply(start, "R U R' U'")
        self.assertTrue(np.array_equal(start.colors, before))

    def test_u_turn_moves_right_face_colors_to_front(self):
        state = apply(CubeState.solved(), "U")
        self.assertEqual([state.color_at("F", 0, c) for c in range(3)], [Color.RED] * 3)
        self.assertEqual([state.color_at("L", 0, c) for c in range(3)], [Color.GREEN] * 3)
        self.assertEqual(state.color_at("F", 1, 0), Color.GREEN)

    def test_facelet_and_cubie_models_agree(self):
        seq = "R U R' U' R' F R2 U' R' U' R U R' F' D L2 B'"
        via_facelets = apply(CubeState.solved(), seq)
        via_cubies = apply(CubieCube(), seq)
        self.assertTrue(np.array_equal(via_facelets.colors, via_cubies.to_colors()))

    def test_turn_moves_face_and_adjacent_strips(self):
        """Face turns must move side strips too (not face-only rotation)."""
        base = np.arange(STICKERS_PER_FACE * 6, dtype=np.int32)
        for m, (face, _) in enumerate(MOVE_TABLE):
            moved = base[MOVE_PERMUTATIONS[m]]
            changed = moved != base

            face_start = FACE_INDEX[face] * STICKERS_PER_FACE
            face_end = face_start + STICKERS_PER_FACE
            changed_on_face = int(changed[face_start:face_end].sum())
            changed_total = int(changed.sum())

            self.assertEqual(changed_on_face, 8, msg=f"{MOVE_NAMES[m]}: expected 8 moved on turning face")
            self.assertEqual(changed_total - changed_on_face, 12, msg=f"{MOVE_NAMES[m]}: expected 12 on strips")


class TestScramble(unittest.TestCase):
    def test_scramble_is_deterministic_for_fixed_seed(self):
        self.assertEqual(scramble(30, seed=123), scramble(30, seed=123))
        self.assertEqual(len(scramble(30, seed=123)), 30)

    def test_scramble_never_turns_same_face_twice_in_a_row(self):
        moves = scramble(200, seed=99)
        for prev, nxt in zip(moves[:-1], moves[1:]):
            self.assertNotEqual(prev // 3, nxt // 3)

    def test_negative_steps_rejected(self):
        with self.assertRaises(MalformedInputError):
            scramble(-1)
        self.assertEqual(scramble(0, seed=1), [])


if __name__ == "__main__":
    unittest.main()
