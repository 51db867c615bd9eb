"""Unit cell representation."""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

# Tolerance (in degrees) used to decide that an angle is a right angle
RIGHT_ANGLE_TOLERANCE = 1e-6


class CellShape(enum.Enum):
    """Possible shapes of a unit cell."""

    INFINITE = "infinite"
    ORTHORHOMBIC = "orthorhombic"
    TRICLINIC = "triclinic"


def _angle(u: NDArray[np.floating], v: NDArray[np.floating]) -> float:
    """Angle between two vectors in degrees, 90 if one of them is zero."""
    norms = np.linalg.norm(u) * np.linalg.norm(v)
    if norms == 0.0:
        return 90.0
    cos = np.clip(np.dot(u, v) / norms, -1.0, 1.0)
    return float(np.degrees(np.arccos(cos)))


@dataclass(frozen=True, eq=False)
class UnitCell:
    """
    Unit cell of a simulation frame.

    The cell is stored as a 3x3 matrix where rows are the basis vectors
    [a, b, c]. Cells read from LAMMPS files are always in the restricted
    orientation: a along x, b in the xy plane.

    Attributes:
        vectors: 3x3 array where rows are cell vectors [a, b, c].
        shape: Cell shape. Deduced from the vectors when not given.
    """

    vectors: NDArray[np.floating]
    shape: CellShape | None = None

    def __post_init__(self) -> None:
        """Validate vectors and deduce the cell shape."""
        vectors = np.asarray(self.vectors, dtype=np.float64)
        if vectors.shape == (3,):
            vectors = np.diag(vectors)
        if vectors.shape != (3, 3):
            raise ValueError(f"Cell vectors must be (3,) or (3, 3), got {vectors.shape}")
        vectors = vectors.copy()
        vectors.flags.writeable = False
        object.__setattr__(self, "vectors", vectors)

        lengths = self.lengths

        if self.shape is None:
            if np.all(lengths == 0.0):
                shape = CellShape.INFINITE
            elif np.allclose(self.angles, 90.0, rtol=0.0, atol=RIGHT_ANGLE_TOLERANCE):
                shape = CellShape.ORTHORHOMBIC
            else:
                shape = CellShape.TRICLINIC
            object.__setattr__(self, "shape", shape)
        elif self.shape is CellShape.ORTHORHOMBIC and not np.allclose(
            self.angles, 90.0, rtol=0.0, atol=RIGHT_ANGLE_TOLERANCE
        ):
            raise ValueError(f"Orthorhombic cell can not have angles {self.angles}")
        elif self.shape is CellShape.INFINITE and not np.all(lengths == 0.0):
            raise ValueError(f"Infinite cell can not have lengths {lengths}")

    @classmethod
    def infinite(cls) -> UnitCell:
        """Create an infinite cell, used for systems without periodicity."""
        return cls(np.zeros((3, 3)), shape=CellShape.INFINITE)

    @classmethod
    def orthorhombic(cls, lx: float, ly: float, lz: float) -> UnitCell:
        """Create an orthorhombic cell with given side lengths."""
        for length in (lx, ly, lz):
            if length < 0.0:
                raise ValueError(f"Cell lengths must be positive, got {length}")
        return cls(np.array([lx, ly, lz]))

    @classmethod
    def from_tilts(
        cls,
        lx: float,
        ly: float,
        lz: float,
        xy: float = 0.0,
        xz: float = 0.0,
        yz: float = 0.0,
        triclinic: bool = False,
    ) -> UnitCell:
        """
        Create a cell from the LAMMPS encoding of a restricted triclinic box.

        The basis vectors are a = (lx, 0, 0), b = (xy, ly, 0) and
        c = (xz, yz, lz).

        Args:
            lx, ly, lz: Extent of the box along each axis.
            xy, xz, yz: Tilt factors.
            triclinic: Force a triclinic shape even when all tilts are zero.
        """
        vectors = np.array(
            [
                [lx, 0.0, 0.0],
                [xy, ly, 0.0],
                [xz, yz, lz],
            ]
        )
        shape = CellShape.TRICLINIC if triclinic else None
        return cls(vectors, shape=shape)

    @classmethod
    def from_lengths_angles(
        cls, lengths: ArrayLike, angles: ArrayLike = (90.0, 90.0, 90.0)
    ) -> UnitCell:
        """
        Create a cell from lengths [a, b, c] and angles [alpha, beta, gamma].

        Angles are in degrees, alpha is the angle between b and c, beta between
        a and c and gamma between a and b.
        """
        a, b, c = (float(x) for x in lengths)
        alpha, beta, gamma = (float(x) for x in angles)
        for length in (a, b, c):
            if length < 0.0:
                raise ValueError(f"Cell lengths must be positive, got {length}")
        for angle in (alpha, beta, gamma):
            if not 0.0 < angle < 180.0:
                raise ValueError(f"Cell angles must be in (0, 180), got {angle}")

        cos_alpha = np.cos(np.radians(alpha))
        cos_beta = np.cos(np.radians(beta))
        cos_gamma = np.cos(np.radians(gamma))
        sin_gamma = np.sin(np.radians(gamma))

        lx = a
        xy = b * cos_gamma
        xz = c * cos_beta
        ly = b * sin_gamma
        yz = (b * c * cos_alpha - xy * xz) / ly if ly != 0.0 else 0.0
        lz = np.sqrt(max(c * c - xz * xz - yz * yz, 0.0))

        triclinic = not np.allclose(
            [alpha, beta, gamma], 90.0, rtol=0.0, atol=RIGHT_ANGLE_TOLERANCE
        )
        return cls.from_tilts(lx, ly, lz, xy, xz, yz, triclinic=triclinic)

    @property
    def lengths(self) -> NDArray[np.floating]:
        """Return cell vector lengths [|a|, |b|, |c|]."""
        return np.linalg.norm(self.vectors, axis=1)

    @property
    def angles(self) -> NDArray[np.floating]:
        """Return cell angles [alpha, beta, gamma] in degrees."""
        a, b, c = self.vectors
        return np.array([_angle(b, c), _angle(a, c), _angle(a, b)])

    @property
    def volume(self) -> float:
        """Return cell volume."""
        return float(np.abs(np.linalg.det(self.vectors)))

    @property
    def tilts(self) -> tuple[float, float, float, float, float, float]:
        """
        Return the LAMMPS encoding (lx, ly, lz, xy, xz, yz) of this cell.

        The cell is rotated to the restricted orientation first, so this works
        for any set of basis vectors.
        """
        if self._is_restricted():
            v = self.vectors
            return (
                float(v[0, 0]),
                float(v[1, 1]),
                float(v[2, 2]),
                float(v[1, 0]),
                float(v[2, 0]),
                float(v[2, 1]),
            )
        restricted = UnitCell.from_lengths_angles(self.lengths, self.angles)
        return restricted.tilts

    def _is_restricted(self) -> bool:
        v = self.vectors
        upper = np.array([v[0, 1], v[0, 2], v[1, 2]])
        return bool(np.all(upper == 0.0) and np.all(np.diag(v) >= 0.0))

    def fractional_to_cartesian(
        self, fractional: ArrayLike, origin: ArrayLike | None = None
    ) -> NDArray[np.floating]:
        """
        Convert fractional (scaled) coordinates to cartesian coordinates.

        Args:
            fractional: Scaled coordinates, shape (3,) or (N, 3).
            origin: Position of the cell origin, added to the result.

        Returns:
            Cartesian coordinates with the same shape as the input.
        """
        cartesian = np.asarray(fractional, dtype=np.float64) @ self.vectors
        if origin is not None:
            cartesian = cartesian + np.asarray(origin, dtype=np.float64)
        return cartesian
