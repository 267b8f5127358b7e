"""Benchmark and HTTP client tooling for the cube engine."""

from .client import SolverAPIClient, SolverAPIError

__all__ = [
    "SolverAPIClient",
    "SolverAPIError",
]
