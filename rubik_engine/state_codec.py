"""Facelet state parsing and codec helpers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import numpy as np

from .errors import MalformedInputError
from .facelets import (
    CANONICAL_FACE_COLORS,
    COLOR_BY_INITIAL,
    COLOR_BY_NAME,
    COLOR_INITIALS,
    FACE_ALIASES,
    FACE_INDEX,
    FACE_NAMES,
    FACE_ORDER,
    N_FACES,
    STATE_SIZE,
    STICKERS_PER_FACE,
    Color,
    facelet_index,
    solved_facelets,
)


def _coerce_token(token: Any, position: int) -> int:
    if isinstance(token, Color):
        return int(token)
    if isinstance(token, (int, np.integer)) and not isinstance(token, (bool, np.bool_)):
        if 0 <= int(token) < N_FACES:
            return int(token)
        raise MalformedInputError(f"Color id {int(token)} at facelet {position} is outside 0..5")
    if isinstance(token, str):
        key = token.strip()
        color = COLOR_BY_NAME.get(key.lower())
        if color is None and len(key) == 1:
            color = COLOR_BY_INITIAL.get(key.upper())
        if color is not None:
            return int(color)
    raise MalformedInputError(f"Unknown color {token!r} at facelet {position}")


def _parse_color_string(text: str) -> np.ndarray:
    compact = "".join(text.split())
    if len(compact) != STATE_SIZE:
        raise MalformedInputError(f"State must have {STATE_SIZE} facelets, got {len(compact)}")
    return np.array([_coerce_token(ch, i) for i, ch in enumerate(compact)], dtype=np.int8)


def _parse_faces_mapping(faces: Mapping[str, Any]) -> np.ndarray:
    by_face: dict[str, Any] = {}
    for key, grid in faces.items():
        if not isinstance(key, str):
            raise MalformedInputError(f"Face keys must be strings, got {key!r}")
        face = key if key in FACE_INDEX else FACE_ALIASES.get(key.lower())
        if face is None:
            raise MalformedInputError(f"Unknown face {key!r}")
        if face in by_face:
            raise MalformedInputError(f"Face {key!r} given twice")
        by_face[face] = grid

    missing = [FACE_NAMES[f] for f in FACE_ORDER if f not in by_face]
    if missing:
        raise MalformedInputError(f"Missing faces: {', '.join(missing)}")

    out = np.empty(STATE_SIZE, dtype=np.int8)
    for face in FACE_ORDER:
        grid = by_face[face]
        if isinstance(grid, Mapping) and "colors" in grid:
            grid = grid["colors"]
        cells = np.asarray(grid, dtype=object)
        if cells.size != STICKERS_PER_FACE:
            raise MalformedInputError(
                f"Face {FACE_NAMES[face]} must have {STICKERS_PER_FACE} facelets, got {cells.size}"
            )
        start = FACE_INDEX[face] * STICKERS_PER_FACE
        for i, token in enumerate(cells.reshape(-1)):
            out[start + i] = _coerce_token(token, start + i)
    return out


def parse_facelets(state: Any) -> np.ndarray:
    """Return canonical flat color ids (length 54) for any supported input form.

    Accepted forms: a ``CubeState``; a 54-character string of color initials
    (``WRGYOB``, whitespace ignored); a flat sequence or array of 54 colors
    given as ``Color``, color ids 0..5, names or initials; a mapping of the six
    faces (``top``/``U`` ...) to 3x3 grids.
    """
    if isinstance(state, CubeState):
        return state.colors.copy()
    if isinstance(state, str):
        return _parse_color_string(state)
    if isinstance(state, Mapping):
        return _parse_faces_mapping(state)

    try:
        arr = np.asarray(state, dtype=object)
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(f"Unsupported state value: {exc}") from exc
    if arr.ndim == 0:
        raise MalformedInputError(f"Unsupported state value of type {type(state).__name__}")

    flat = arr.reshape(-1)
    if flat.size != STATE_SIZE:
        raise MalformedInputError(f"State must have {STATE_SIZE} facelets, got {flat.size}")
    return np.array([_coerce_token(token, i) for i, token in enumerate(flat)], dtype=np.int8)


def from_face_string(text: str) -> CubeState:
    """Build a state from Kociemba notation (``UUUUUUUUURRR...``).

    Each letter names the face whose canonical color the facelet carries.
    """
    compact = "".join(text.split())
    if len(compact) != STATE_SIZE:
        raise MalformedInputError(f"State must have {STATE_SIZE} facelets, got {len(compact)}")
    colors = np.empty(STATE_SIZE, dtype=np.int8)
    for i, ch in enumerate(compact):
        face = FACE_INDEX.get(ch.upper())
        if face is None:
            raise MalformedInputError(f"Unknown face letter {ch!r} at facelet {i}")
        colors[i] = CANONICAL_FACE_COLORS[face]
    return CubeState(colors)


class CubeState:
    """Immutable assignment of colors to the 54 facelets."""

    __slots__ = ("_colors",)

    def __init__(self, colors: Any):
        arr = parse_facelets(colors)
        arr.setflags(write=False)
        self._colors = arr

    @classmethod
    def solved(cls) -> CubeState:
        return cls(solved_facelets())

    @property
    def colors(self) -> np.ndarray:
        """Read-only flat color ids."""
        return self._colors

    def color_at(self, face: str | int, row: int, col: int) -> Color:
        return Color(int(self._colors[facelet_index(face, row, col)]))

    def face_grid(self, face: str | int) -> list[list[Color]]:
        return [[self.color_at(face, r, c) for c in range(3)] for r in range(3)]

    def color_counts(self) -> dict[Color, int]:
        counts = np.bincount(self._colors.astype(np.int64), minlength=N_FACES)
        return {Color(i): int(n) for i, n in enumerate(counts)}

    def center_colors(self) -> tuple[Color, ...]:
        return tuple(Color(int(self._colors[i * STICKERS_PER_FACE + 4])) for i in range(N_FACES))

    @property
    def is_solved(self) -> bool:
        return bool(np.array_equal(self._colors, solved_facelets()))

    def to_string(self) -> str:
        return "".join(COLOR_INITIALS[c] for c in self._colors)

    def to_list(self) -> list[str]:
        return [Color(int(c)).label for c in self._colors]

    def to_faces(self) -> dict[str, list[list[str]]]:
        return {
            FACE_NAMES[face]: [[c.label for c in row] for row in self.face_grid(face)]
            for face in FACE_ORDER
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CubeState):
            return NotImplemented
        return bool(np.array_equal(self._colors, other._colors))

    def __hash__(self) -> int:
        return hash(self._colors.tobytes())

    def __repr__(self) -> str:
        return f"CubeState('{self.to_string()}')"
