import unittest

import numpy as np

from rubik_engine.cubie import CubieCube
from rubik_engine.errors import (
    ColorCountError,
    CubieError,
    DuplicateCenterError,
    MalformedInputError,
    OrientationError,
    ParityError,
    ValidationError,
)
from rubik_engine.facelets import Color
from rubik_engine.moves import apply
from rubik_engine.state_codec import CubeState
from rubik_engine.validator import ValidatedCube, check_cubie, validate

SCRAMBLE = "R U R' U' R' F R2 U' R' U' R U R' F'"


def _colors_of(cube: CubieCube) -> np.ndarray:
    return cube.to_colors()


class TestValidator(unittest.TestCase):
    def test_solved_and_scrambled_states_are_valid(self):
        solved = validate(CubeState.solved())
        self.assertIsInstance(solved, ValidatedCube)
        self.assertTrue(solved.cubie.is_identity())

        state = apply(CubeState.solved(), SCRAMBLE)
        out = validate(state)
        self.assertEqual(out.cubie, apply(CubieCube(), SCRAMBLE))
        self.assertIs(validate(out), out)

    def test_color_count_boundary(self):
        colors = CubeState.solved().colors.copy()
        colors[0] = Color.RED  # 10 red, 8 white
        with self.assertRaises(ColorCountError) as ctx:
            validate(colors)
        self.assertEqual(ctx.exception.counts["red"], 10)
        self.assertEqual(ctx.exception.counts["white"], 8)

    def test_duplicate_centers(self):
        colors = CubeState.solved().colors.copy()
        colors[4], colors[9] = Color.RED, Color.WHITE
        with self.assertRaises(DuplicateCenterError):
            validate(colors)

    def test_single_edge_flip_is_orientation_error(self):
        flipped = CubieCube(eo=[1] + [0] * 11)
        with self.assertRaises(OrientationError) as ctx:
            validate(_colors_of(flipped))
        self.assertEqual(ctx.exception.flip_sum, 1)

    def test_single_corner_twist_is_orientation_error(self):
        twisted = CubieCube(co=[1] + [0] * 7)
        with self.assertRaises(OrientationError):
            validate(_colors_of(twisted))

    def test_two_swapped_edges_is_parity_error(self):
        swapped = CubieCube(ep=[1, 0] + list(range(2, 12)))
        with self.assertRaises(ParityError):
            validate(_colors_of(swapped))

    def test_impossible_sticker_combination_is_cubie_error(self):
        colors = CubeState.solved().colors.copy()
        colors[0], colors[9] = colors[9], colors[0]
        with self.assertRaises(CubieError):
            validate(colors)

    def test_checks_run_in_order(self):
        # Wrong counts and duplicate centers together: counts are reported first.
        colors = CubeState.solved().colors.copy()
        colors[4] = Color.RED
        with self.assertRaises(ColorCountError):
            validate(colors)

    def test_center_defined_mapping_accepts_reoriented_cube(self):
        # Solved cube held upside down: yellow top, white bottom, left/right swapped.
        colors = np.repeat(np.array([3, 4, 2, 0, 1, 5]), 9)
        cube = validate(colors)
        self.assertTrue(cube.cubie.is_identity())
        self.assertEqual(cube.face_colors[0], Color.YELLOW)

    def test_malformed_input_rejected_before_checks(self):
        with self.assertRaises(MalformedInputError):
            validate("W" * 53)

    def test_errors_share_base_classes(self):
        self.assertTrue(issubclass(ParityError, ValidationError))
        self.assertTrue(issubclass(ValidationError, ValueError))

    def test_check_cubie_rejects_broken_permutation(self):
        with self.assertRaises(CubieError):
            check_cubie(CubieCube(cp=[0, 0, 2, 3, 4, 5, 6, 7]))


if __name__ == "__main__":
    unittest.main()
