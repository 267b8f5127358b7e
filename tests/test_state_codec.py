import unittest

import numpy as np

from rubik_engine.errors import MalformedInputError
from rubik_engine.facelets import Color, facelet_index
from rubik_engine.state_codec import CubeState, from_face_string

SOLVED_STRING = "W" * 9 + "R" * 9 + "G" * 9 + "Y" * 9 + "O" * 9 + "B" * 9


class TestCubeState(unittest.TestCase):
    def test_solved_state_uses_canonical_scheme(self):
        state = CubeState.solved()
        self.assertTrue(state.is_solved)
        self.assertEqual(state.to_string(), SOLVED_STRING)
        self.assertEqual(state.color_at("top", 1, 1), Color.WHITE)
        self.assertEqual(state.color_at("F", 0, 2), Color.GREEN)
        self.assertEqual(state.color_at(5, 2, 2), Color.BLUE)

    def test_accepts_every_input_form(self):
        solved = CubeState.solved()
        names = ["white"] * 9 + ["red"] * 9 + ["green"] * 9 + ["yellow"] * 9 + ["orange"] * 9 + ["blue"] * 9
        self.assertEqual(CubeState(SOLVED_STRING), solved)
        self.assertEqual(CubeState(" ".join(SOLVED_STRING)), solved)
        self.assertEqual(CubeState(names), solved)
        self.assertEqual(CubeState([Color(i // 9) for i in range(54)]), solved)
        self.assertEqual(CubeState(np.repeat(np.arange(6), 9)), solved)
        self.assertEqual(CubeState(solved.to_faces()), solved)
        self.assertEqual(CubeState(solved), solved)
        self.assertEqual(from_face_string("U" * 9 + "R" * 9 + "F" * 9 + "D" * 9 + "L" * 9 + "B" * 9), solved)

    def test_faces_mapping_roundtrip_keeps_positions(self):
        colors = np.repeat(np.arange(6), 9)
        colors[facelet_index("F", 0, 0)], colors[facelet_index("R", 2, 1)] = 1, 2
        state = CubeState(colors)
        faces = state.to_faces()
        self.assertEqual(faces["front"][0][0], "red")
        self.assertEqual(faces["right"][2][1], "green")
        self.assertEqual(CubeState(faces), state)

    def test_wrong_facelet_count_is_malformed(self):
        with self.assertRaises(MalformedInputError):
            CubeState(SOLVED_STRING[:-1])
        with self.assertRaises(MalformedInputError):
            CubeState(list(range(6)) * 10)

    def test_unknown_color_is_malformed(self):
        with self.assertRaises(MalformedInputError):
            CubeState("X" + SOLVED_STRING[1:])
        with self.assertRaises(MalformedInputError):
            CubeState([6] + [0] * 53)
        with self.assertRaises(MalformedInputError):
            CubeState(["purple"] + ["white"] * 53)

    def test_missing_face_in_mapping_is_malformed(self):
        faces = CubeState.solved().to_faces()
        del faces["back"]
        with self.assertRaises(MalformedInputError):
            CubeState(faces)

    def test_malformed_input_is_a_value_error(self):
        with self.assertRaises(ValueError):
            CubeState(None)

    def test_state_is_immutable_and_hashable(self):
        state = CubeState.solved()
        with self.assertRaises(ValueError):
            state.colors[0] = 3
        self.assertEqual(len({state, CubeState.solved()}), 1)

    def test_color_counts_and_centers(self):
        state = CubeState.solved()
        self.assertEqual(set(state.color_counts().values()), {9})
        self.assertEqual(state.center_colors(), tuple(Color))


if __name__ == "__main__":
    unittest.main()
