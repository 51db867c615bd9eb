"""BOX BOUNDS section of LAMMPS dump files."""

from __future__ import annotations

import re
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ...errors import FormatError, parse_float
from ...system import UnitCell

TILT_FLAGS = ("xy", "xz", "yz")

# Boundary style for the low and high side of one axis
_BOUNDARY_FLAG = re.compile(r"^[pfsme]{1,2}$")


@dataclass(frozen=True, eq=False)
class BoxBounds:
    """
    Geometry of a LAMMPS box.

    Attributes:
        cell: Unit cell built from the box.
        origin: Position of the (xlo, ylo, zlo) corner, used to convert
            scaled coordinates.
        periodicity: Boundary flags for each axis, as written in the header.
    """

    cell: UnitCell
    origin: NDArray[np.floating]
    periodicity: tuple[str, ...] = ()


def is_triclinic(flags: list[str]) -> bool:
    """
    Check the BOX BOUNDS header flags for a triclinic box.

    The tilt flags can come before or after the boundary flags, older LAMMPS
    versions wrote `xy xz yz pp pp pp`.
    """
    tilts = [flag for flag in flags if flag in TILT_FLAGS]
    others = [flag for flag in flags if flag not in TILT_FLAGS]
    for flag in others:
        if not _BOUNDARY_FLAG.match(flag):
            raise FormatError(f"unknown box flag '{flag}' in LAMMPS format")
    if not tilts:
        return False
    if tuple(tilts) != TILT_FLAGS:
        raise FormatError(
            f"invalid tilt flags in LAMMPS format, expected 'xy xz yz' "
            f"but got '{' '.join(tilts)}'"
        )
    return True


def depad_bounds(
    lo: NDArray[np.floating],
    hi: NDArray[np.floating],
    xy: float,
    xz: float,
    yz: float,
) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
    """
    Remove the tilt padding from triclinic box bounds.

    LAMMPS writes the bounding box of the tilted cell, which is larger than
    the cell itself as soon as a tilt factor is non zero.

    Args:
        lo: (xlo_bound, ylo_bound, zlo_bound).
        hi: (xhi_bound, yhi_bound, zhi_bound).
        xy, xz, yz: Tilt factors.

    Returns:
        (lo, hi) of the cell, without padding.
    """
    lo = np.array(lo, dtype=np.float64)
    hi = np.array(hi, dtype=np.float64)
    lo[0] -= min(0.0, xy, xz, xy + xz)
    hi[0] -= max(0.0, xy, xz, xy + xz)
    lo[1] -= min(0.0, yz)
    hi[1] -= max(0.0, yz)
    return lo, hi


def pad_bounds(
    lo: NDArray[np.floating],
    hi: NDArray[np.floating],
    xy: float,
    xz: float,
    yz: float,
) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
    """Inverse of depad_bounds, used when writing triclinic boxes."""
    lo = np.array(lo, dtype=np.float64)
    hi = np.array(hi, dtype=np.float64)
    lo[0] += min(0.0, xy, xz, xy + xz)
    hi[0] += max(0.0, xy, xz, xy + xz)
    lo[1] += min(0.0, yz)
    hi[1] += max(0.0, yz)
    return lo, hi


def parse_box_bounds(
    flags: list[str], lines: list[str | None], depad: bool = True
) -> BoxBounds:
    """
    Parse the body of a BOX BOUNDS section.

    Args:
        flags: Tokens following `ITEM: BOX BOUNDS`.
        lines: The three lines following the header. None marks a line that
            could not be read.
        depad: Remove the tilt padding from triclinic bounds.

    Returns:
        The box geometry.

    Raises:
        FormatError: For any malformed header or bound line.
    """
    triclinic = is_triclinic(flags)
    expected = 3 if triclinic else 2

    present: list[str] = []
    for line in lines:
        if line is None or line.startswith("ITEM:"):
            break
        present.append(line)
    if len(present) != 3:
        raise FormatError(
            f"missing box dimensions in LAMMPS format, "
            f"expected 3 lines but got {len(present)}"
        )

    lo = np.zeros(3)
    hi = np.zeros(3)
    tilt = np.zeros(3)
    for axis, line in enumerate(present):
        fields = line.split()
        if len(fields) < expected:
            raise FormatError(
                f"incomplete box dimensions in LAMMPS format, "
                f"expected {expected} but got {len(fields)}"
            )
        if len(fields) > expected:
            raise FormatError(
                f"too many box dimensions in LAMMPS format, "
                f"expected {expected} but got {len(fields)}"
            )
        values = [parse_float(field, "a box dimension") for field in fields]
        lo[axis] = values[0]
        hi[axis] = values[1]
        if triclinic:
            tilt[axis] = values[2]

    periodicity = tuple(flag for flag in flags if flag not in TILT_FLAGS)
    if not triclinic:
        lengths = hi - lo
        return BoxBounds(
            cell=UnitCell.orthorhombic(*(max(x, 0.0) for x in lengths)),
            origin=lo,
            periodicity=periodicity,
        )

    xy, xz, yz = (float(x) for x in tilt)
    if depad:
        lo, hi = depad_bounds(lo, hi, xy, xz, yz)
    lx, ly, lz = (max(float(x), 0.0) for x in hi - lo)
    cell = UnitCell.from_tilts(lx, ly, lz, xy, xz, yz, triclinic=True)
    return BoxBounds(cell=cell, origin=lo, periodicity=periodicity)
