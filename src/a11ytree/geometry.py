"""
Immutable 2D geometry used by the semantics tree:
points (Offset), axis-aligned boxes (Rect), and 3D affine transforms (Matrix4).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import math
from typing import NamedTuple


# ------------------------------------------------------------------------------
# Offset

class Offset(NamedTuple):
    dx: float
    dy: float

    def __add__(self, other: object) -> Offset:  # type: ignore[override]
        if not isinstance(other, Offset):
            return NotImplemented
        return Offset(self.dx + other.dx, self.dy + other.dy)

    def __sub__(self, other: Offset) -> Offset:
        return Offset(self.dx - other.dx, self.dy - other.dy)

    def __repr__(self) -> str:
        return f'Offset({self.dx:.1f}, {self.dy:.1f})'

Offset.ZERO = Offset(0.0, 0.0)  # type: ignore[attr-defined]


# ------------------------------------------------------------------------------
# Rect

class Rect(NamedTuple):
    """
    An axis-aligned rectangle, given by its left, top, right and bottom edges.
    """
    left: float
    top: float
    right: float
    bottom: float

    @staticmethod
    def from_ltwh(left: float, top: float, width: float, height: float) -> Rect:
        return Rect(left, top, left + width, top + height)

    @staticmethod
    def bounding(points: Iterable[Offset]) -> Rect:
        xs = []
        ys = []
        for p in points:
            xs.append(p.dx)
            ys.append(p.dy)
        if len(xs) == 0:
            raise ValueError('Cannot bound an empty collection of points')
        return Rect(min(xs), min(ys), max(xs), max(ys))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def is_empty(self) -> bool:
        return self.left >= self.right or self.top >= self.bottom

    def corners(self) -> tuple[Offset, Offset, Offset, Offset]:
        return (
            Offset(self.left, self.top),
            Offset(self.right, self.top),
            Offset(self.left, self.bottom),
            Offset(self.right, self.bottom),
        )

    def contains(self, point: Offset) -> bool:
        """
        Whether the point is inside this rectangle.

        Points on the left and top edges are inside.
        Points on the right and bottom edges are outside.
        """
        return (
            self.left <= point.dx < self.right and
            self.top <= point.dy < self.bottom
        )

    def shift(self, offset: Offset) -> Rect:
        return Rect(
            self.left + offset.dx,
            self.top + offset.dy,
            self.right + offset.dx,
            self.bottom + offset.dy)

    def __repr__(self) -> str:
        return (
            f'Rect.from_ltrb({self.left:.1f}, {self.top:.1f}, '
            f'{self.right:.1f}, {self.bottom:.1f})'
        )

Rect.ZERO = Rect(0.0, 0.0, 0.0, 0.0)  # type: ignore[attr-defined]


# ------------------------------------------------------------------------------
# Matrix4

class Matrix4:
    """
    A 4x4 transformation matrix.

    Values are stored in column-major order, so `storage[12]` and
    `storage[13]` hold the x and y translation.
    """

    __slots__ = ('_storage',)

    def __init__(self, storage: Sequence[float]) -> None:
        if len(storage) != 16:
            raise ValueError(f'Expected 16 values but got {len(storage)}')
        self._storage = tuple(float(v) for v in storage)  # type: tuple[float, ...]

    # === Factories ===

    @staticmethod
    def identity() -> Matrix4:
        return _IDENTITY

    @staticmethod
    def translation_values(x: float, y: float, z: float=0.0) -> Matrix4:
        return Matrix4((
            1.0, 0.0, 0.0, 0.0,
            0.0, 1.0, 0.0, 0.0,
            0.0, 0.0, 1.0, 0.0,
            x,   y,   z,   1.0,
        ))

    @staticmethod
    def diagonal3_values(x: float, y: float, z: float=1.0) -> Matrix4:
        return Matrix4((
            x,   0.0, 0.0, 0.0,
            0.0, y,   0.0, 0.0,
            0.0, 0.0, z,   0.0,
            0.0, 0.0, 0.0, 1.0,
        ))

    @staticmethod
    def rotation_z(radians: float) -> Matrix4:
        (c, s) = (math.cos(radians), math.sin(radians))
        return Matrix4((
            c,   s,   0.0, 0.0,
            -s,  c,   0.0, 0.0,
            0.0, 0.0, 1.0, 0.0,
            0.0, 0.0, 0.0, 1.0,
        ))

    # === Properties ===

    @property
    def storage(self) -> tuple[float, ...]:
        return self._storage

    def entry(self, row: int, col: int) -> float:
        return self._storage[col * 4 + row]

    def row(self, row: int) -> tuple[float, float, float, float]:
        s = self._storage
        return (s[row], s[4 + row], s[8 + row], s[12 + row])

    def is_identity(self) -> bool:
        return self._storage == _IDENTITY_STORAGE

    def get_as_translation(self) -> Offset | None:
        """
        Returns the translation if this matrix is a pure 2D translation,
        or None otherwise.
        """
        s = self._storage
        if (s[0] == 1.0 and s[1] == 0.0 and s[2] == 0.0 and s[3] == 0.0 and
                s[4] == 0.0 and s[5] == 1.0 and s[6] == 0.0 and s[7] == 0.0 and
                s[8] == 0.0 and s[9] == 0.0 and s[10] == 1.0 and s[11] == 0.0 and
                s[14] == 0.0 and s[15] == 1.0):
            return Offset(s[12], s[13])
        return None

    def get_as_scale(self) -> float | None:
        """
        Returns the scale factor if this matrix is a uniform 2D scale,
        or None otherwise.
        """
        s = self._storage
        if (s[1] == 0.0 and s[2] == 0.0 and s[3] == 0.0 and
                s[4] == 0.0 and s[0] == s[5] and s[6] == 0.0 and s[7] == 0.0 and
                s[8] == 0.0 and s[9] == 0.0 and s[10] == 1.0 and s[11] == 0.0 and
                s[12] == 0.0 and s[13] == 0.0 and s[14] == 0.0 and s[15] == 1.0):
            return s[0]
        return None

    # === Operations ===

    def multiply(self, other: Matrix4) -> Matrix4:
        """Returns `self * other`."""
        (a, b) = (self._storage, other._storage)
        result = [0.0] * 16
        for col in range(4):
            for row in range(4):
                result[col * 4 + row] = (
                    a[row] * b[col * 4] +
                    a[4 + row] * b[col * 4 + 1] +
                    a[8 + row] * b[col * 4 + 2] +
                    a[12 + row] * b[col * 4 + 3]
                )
        return Matrix4(result)

    def determinant(self) -> float:
        inv = _adjugate(self._storage)
        m = self._storage
        return m[0] * inv[0] + m[1] * inv[4] + m[2] * inv[8] + m[3] * inv[12]

    def inverted(self) -> Matrix4 | None:
        """
        Returns the inverse of this matrix, or None if it is not invertible.
        """
        m = self._storage
        inv = _adjugate(m)
        det = m[0] * inv[0] + m[1] * inv[4] + m[2] * inv[8] + m[3] * inv[12]
        if det == 0.0:
            return None
        inv_det = 1.0 / det
        return Matrix4([v * inv_det for v in inv])

    def transform_point(self, point: Offset) -> Offset:
        s = self._storage
        (x, y) = point
        rx = s[0] * x + s[4] * y + s[12]
        ry = s[1] * x + s[5] * y + s[13]
        rw = s[3] * x + s[7] * y + s[15]
        if rw == 1.0:
            return Offset(rx, ry)
        return Offset(rx / rw, ry / rw)

    def transform_rect(self, rect: Rect) -> Rect:
        return Rect.bounding(self.transform_point(p) for p in rect.corners())

    # === Utility ===

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix4):
            return NotImplemented
        return self._storage == other._storage

    def __hash__(self) -> int:
        return hash(self._storage)

    def __repr__(self) -> str:
        return 'Matrix4(' + '; '.join(
            ','.join(f'{v:.1f}' for v in self.row(r))
            for r in range(4)
        ) + ')'


def matrix_equals(a: Matrix4 | None, b: Matrix4 | None) -> bool:
    """
    Whether two optional transforms are equal,
    treating None as the identity transform.
    """
    if a is None and b is None:
        return True
    if a is None:
        return b is not None and b.is_identity()
    if b is None:
        return a.is_identity()
    return a == b


def _adjugate(m: Sequence[float]) -> list[float]:
    inv = [0.0] * 16
    inv[0] = (m[5]*m[10]*m[15] - m[5]*m[11]*m[14] - m[9]*m[6]*m[15] +
              m[9]*m[7]*m[14] + m[13]*m[6]*m[11] - m[13]*m[7]*m[10])
    inv[4] = (-m[4]*m[10]*m[15] + m[4]*m[11]*m[14] + m[8]*m[6]*m[15] -
              m[8]*m[7]*m[14] - m[12]*m[6]*m[11] + m[12]*m[7]*m[10])
    inv[8] = (m[4]*m[9]*m[15] - m[4]*m[11]*m[13] - m[8]*m[5]*m[15] +
              m[8]*m[7]*m[13] + m[12]*m[5]*m[11] - m[12]*m[7]*m[9])
    inv[12] = (-m[4]*m[9]*m[14] + m[4]*m[10]*m[13] + m[8]*m[5]*m[14] -
               m[8]*m[6]*m[13] - m[12]*m[5]*m[10] + m[12]*m[6]*m[9])
    inv[1] = (-m[1]*m[10]*m[15] + m[1]*m[11]*m[14] + m[9]*m[2]*m[15] -
              m[9]*m[3]*m[14] - m[13]*m[2]*m[11] + m[13]*m[3]*m[10])
    inv[5] = (m[0]*m[10]*m[15] - m[0]*m[11]*m[14] - m[8]*m[2]*m[15] +
              m[8]*m[3]*m[14] + m[12]*m[2]*m[11] - m[12]*m[3]*m[10])
    inv[9] = (-m[0]*m[9]*m[15] + m[0]*m[11]*m[13] + m[8]*m[1]*m[15] -
              m[8]*m[3]*m[13] - m[12]*m[1]*m[11] + m[12]*m[3]*m[9])
    inv[13] = (m[0]*m[9]*m[14] - m[0]*m[10]*m[13] - m[8]*m[1]*m[14] +
               m[8]*m[2]*m[13] + m[12]*m[1]*m[10] - m[12]*m[2]*m[9])
    inv[2] = (m[1]*m[6]*m[15] - m[1]*m[7]*m[14] - m[5]*m[2]*m[15] +
              m[5]*m[3]*m[14] + m[13]*m[2]*m[7] - m[13]*m[3]*m[6])
    inv[6] = (-m[0]*m[6]*m[15] + m[0]*m[7]*m[14] + m[4]*m[2]*m[15] -
              m[4]*m[3]*m[14] - m[12]*m[2]*m[7] + m[12]*m[3]*m[6])
    inv[10] = (m[0]*m[5]*m[15] - m[0]*m[7]*m[13] - m[4]*m[1]*m[15] +
               m[4]*m[3]*m[13] + m[12]*m[1]*m[7] - m[12]*m[3]*m[5])
    inv[14] = (-m[0]*m[5]*m[14] + m[0]*m[6]*m[13] + m[4]*m[1]*m[14] -
               m[4]*m[2]*m[13] - m[12]*m[1]*m[6] + m[12]*m[2]*m[5])
    inv[3] = (-m[1]*m[6]*m[11] + m[1]*m[7]*m[10] + m[5]*m[2]*m[11] -
              m[5]*m[3]*m[10] - m[9]*m[2]*m[7] + m[9]*m[3]*m[6])
    inv[7] = (m[0]*m[6]*m[11] - m[0]*m[7]*m[10] - m[4]*m[2]*m[11] +
              m[4]*m[3]*m[10] + m[8]*m[2]*m[7] - m[8]*m[3]*m[6])
    inv[11] = (-m[0]*m[5]*m[11] + m[0]*m[7]*m[9] + m[4]*m[1]*m[11] -
               m[4]*m[3]*m[9] - m[8]*m[1]*m[7] + m[8]*m[3]*m[5])
    inv[15] = (m[0]*m[5]*m[10] - m[0]*m[6]*m[9] - m[4]*m[1]*m[10] +
               m[4]*m[2]*m[9] + m[8]*m[1]*m[6] - m[8]*m[2]*m[5])
    return inv


_IDENTITY_STORAGE = (
    1.0, 0.0, 0.0, 0.0,
    0.0, 1.0, 0.0, 0.0,
    0.0, 0.0, 1.0, 0.0,
    0.0, 0.0, 0.0, 1.0,
)
_IDENTITY = Matrix4(_IDENTITY_STORAGE)
