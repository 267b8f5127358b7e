"""Facelet geometry and colors for the 3x3 engine.

Facelets are stored as a flat array of 54 color ids, face by face in
``FACE_ORDER``, each face row-major as seen from outside:

                  U1 U2 U3
                  U4 U5 U6
                  U7 U8 U9
        L1 L2 L3  F1 F2 F3  R1 R2 R3  B1 B2 B3
        L4 L5 L6  F4 F5 F6  R4 R5 R6  B4 B5 B6
        L7 L8 L9  F7 F8 F9  R7 R8 R9  B7 B8 B9
                  D1 D2 D3
                  D4 D5 D6
                  D7 D8 D9

The flat index of ``X<n>`` is ``9 * FACE_INDEX[X] + n - 1``.
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np

FACE_ORDER = ("U", "R", "F", "D", "L", "B")
FACE_INDEX = {face: i for i, face in enumerate(FACE_ORDER)}
N_FACES = 6
STICKERS_PER_FACE = 9
STATE_SIZE = N_FACES * STICKERS_PER_FACE

# Names used by the capture UI for the six faces.
FACE_ALIASES = {
    "top": "U",
    "right": "R",
    "front": "F",
    "bottom": "D",
    "left": "L",
    "back": "B",
}
FACE_NAMES = {face: name for name, face in FACE_ALIASES.items()}

U, R, F, D, L, B = range(N_FACES)


class Color(IntEnum):
    """The six sticker colors. Values equal the face each color solves to."""

    WHITE = 0
    RED = 1
    GREEN = 2
    YELLOW = 3
    ORANGE = 4
    BLUE = 5

    @property
    def initial(self) -> str:
        return COLOR_INITIALS[self.value]

    @property
    def label(self) -> str:
        return self.name.lower()


COLOR_INITIALS = "WRGYOB"
COLOR_BY_NAME = {color.name.lower(): color for color in Color}
COLOR_BY_INITIAL = {initial: Color(i) for i, initial in enumerate(COLOR_INITIALS)}

# Canonical solved scheme: top white, right red, front green,
# bottom yellow, left orange, back blue.
CANONICAL_FACE_COLORS = tuple(Color(i) for i in range(N_FACES))

CENTER_INDICES = tuple(FACE_INDEX[face] * STICKERS_PER_FACE + 4 for face in FACE_ORDER)


def facelet_index(face: str | int, row: int, col: int) -> int:
    """Flat index of the facelet at (face, row, col)."""
    f = resolve_face(face)
    if not (0 <= row < 3 and 0 <= col < 3):
        raise ValueError(f"row and col must be in 0..2, got ({row}, {col})")
    return f * STICKERS_PER_FACE + row * 3 + col


def resolve_face(face: str | int) -> int:
    """Accept ``"U"``, ``"top"`` or a face index and return the face index."""
    if isinstance(face, str):
        key = face.strip()
        if key in FACE_INDEX:
            return FACE_INDEX[key]
        alias = FACE_ALIASES.get(key.lower())
        if alias is not None:
            return FACE_INDEX[alias]
        raise ValueError(f"Unknown face: {face!r}")
    if isinstance(face, (int, np.integer)) and not isinstance(face, bool) and 0 <= face < N_FACES:
        return int(face)
    raise ValueError(f"Unknown face: {face!r}")


def _idx(name: str) -> int:
    return FACE_INDEX[name[0]] * STICKERS_PER_FACE + int(name[1]) - 1


# Facelets of each corner position, starting with the U/D facelet and going
# clockwise. Corner order: URF, UFL, ULB, UBR, DFR, DLF, DBL, DRB.
CORNER_FACELETS = tuple(
    tuple(_idx(n) for n in names)
    for names in (
        ("U9", "R1", "F3"),
        ("U7", "F1", "L3"),
        ("U1", "L1", "B3"),
        ("U3", "B1", "R3"),
        ("D3", "F9", "R7"),
        ("D1", "L9", "F7"),
        ("D7", "B9", "L7"),
        ("D9", "R9", "B7"),
    )
)

# Facelets of each edge position; the first one defines the orientation.
# Edge order: UR, UF, UL, UB, DR, DF, DL, DB, FR, FL, BL, BR.
EDGE_FACELETS = tuple(
    tuple(_idx(n) for n in names)
    for names in (
        ("U6", "R2"),
        ("U8", "F2"),
        ("U4", "L2"),
        ("U2", "B2"),
        ("D6", "R8"),
        ("D2", "F8"),
        ("D4", "L8"),
        ("D8", "B8"),
        ("F6", "R4"),
        ("F4", "L6"),
        ("B6", "L4"),
        ("B4", "R6"),
    )
)

# Faces a solved corner/edge cubie shows, in the same facelet order.
CORNER_FACES = (
    (U, R, F),
    (U, F, L),
    (U, L, B),
    (U, B, R),
    (D, F, R),
    (D, L, F),
    (D, B, L),
    (D, R, B),
)
EDGE_FACES = (
    (U, R),
    (U, F),
    (U, L),
    (U, B),
    (D, R),
    (D, F),
    (D, L),
    (D, B),
    (F, R),
    (F, L),
    (B, L),
    (B, R),
)


def solved_facelets(face_colors: tuple[int, ...] = CANONICAL_FACE_COLORS) -> np.ndarray:
    """Return the solved flat color array of length 54."""
    colors = np.asarray(face_colors, dtype=np.int8)
    return np.repeat(colors, STICKERS_PER_FACE)
