"""Error taxonomy for the cube engine."""

from __future__ import annotations


class RubikEngineError(Exception):
    """Base class of every error raised by the engine."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class MalformedInputError(RubikEngineError, ValueError):
    """Wrong facelet count, unknown color, or unparsable move notation."""


class ValidationError(RubikEngineError, ValueError):
    """The facelet assignment is not a cube reachable by legal moves."""


class ColorCountError(ValidationError):
    def __init__(self, counts: dict[str, int]):
        self.counts = dict(counts)
        wrong = ", ".join(f"{name}={n}" for name, n in self.counts.items() if n != 9)
        super().__init__(f"Each color must appear exactly 9 times; got {wrong}")


class DuplicateCenterError(ValidationError):
    def __init__(self, centers: dict[str, str]):
        self.centers = dict(centers)
        listing = ", ".join(f"{face}={color}" for face, color in self.centers.items())
        super().__init__(f"Center colors must be distinct across faces; got {listing}")


class CubieError(ValidationError):
    """Stickers that do not form a real cubie, or a cubie present twice."""


class ParityError(ValidationError):
    def __init__(self, corner_parity: int, edge_parity: int):
        self.corner_parity = corner_parity
        self.edge_parity = edge_parity
        super().__init__(
            "Cubie permutation has odd parity "
            f"(corner parity {corner_parity}, edge parity {edge_parity}); "
            "two pieces are swapped"
        )


class OrientationError(ValidationError):
    def __init__(self, twist_sum: int, flip_sum: int):
        self.twist_sum = twist_sum
        self.flip_sum = flip_sum
        problems = []
        if twist_sum % 3:
            problems.append(f"corner twist sum {twist_sum} is not divisible by 3")
        if flip_sum % 2:
            problems.append(f"edge flip sum {flip_sum} is odd")
        super().__init__("Invalid orientation: " + "; ".join(problems))


class SolverError(RubikEngineError):
    """Base class for failures during search."""


class SolverTimeoutError(SolverError, TimeoutError):
    """The depth or time budget ran out before a solution was found."""

    def __init__(self, message: str, max_depth: int | None = None, time_budget: float | None = None):
        self.max_depth = max_depth
        self.time_budget = time_budget
        super().__init__(message)


class InternalInvariantError(SolverError, RuntimeError):
    """A validated cube could not be solved correctly. Indicates a defect."""


class UnsolvableStateError(InternalInvariantError):
    """The search proved a validated cube has no solution."""
