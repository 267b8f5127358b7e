"""Solved-state checks."""

from __future__ import annotations

from typing import Any

import numpy as np

from .facelets import N_FACES, STICKERS_PER_FACE
from .state_codec import CubeState


def is_solved(state: Any) -> bool:
    """True when every face shows its canonical color."""
    return CubeState(state).is_solved


def is_uniform(state: Any) -> bool:
    """True when every face is a single color, whatever the face-color pairing."""
    faces = CubeState(state).colors.reshape(N_FACES, STICKERS_PER_FACE)
    if not np.all(faces == faces[:, :1]):
        return False
    return np.unique(faces[:, 0]).size == N_FACES
