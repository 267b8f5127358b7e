"""Rubik 3x3 two-phase solving engine."""

from .engine import RubikEngine
from .errors import (
    ColorCountError,
    CubieError,
    DuplicateCenterError,
    InternalInvariantError,
    MalformedInputError,
    OrientationError,
    ParityError,
    RubikEngineError,
    SolverTimeoutError,
    UnsolvableStateError,
    ValidationError,
)
from .moves import apply, compose, invert
from .optimizer import optimize
from .solved_check import is_solved, is_uniform
from .solver import Solution, SolverOptions, TwoPhaseSolver, solve
from .state_codec import CubeState
from .types import SolutionStep
from .validator import ValidatedCube, validate

__all__ = [
    "RubikEngine",
    "CubeState",
    "SolutionStep",
    "ValidatedCube",
    "Solution",
    "SolverOptions",
    "TwoPhaseSolver",
    "apply",
    "compose",
    "invert",
    "validate",
    "solve",
    "optimize",
    "is_solved",
    "is_uniform",
    "RubikEngineError",
    "MalformedInputError",
    "ValidationError",
    "ColorCountError",
    "DuplicateCenterError",
    "CubieError",
    "ParityError",
    "OrientationError",
    "SolverTimeoutError",
    "InternalInvariantError",
    "UnsolvableStateError",
]
