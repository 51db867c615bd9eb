"""
chemtraj - reading and writing of chemistry trajectory files.

Frames hold positions, velocities, atoms, unit cell and metadata of one
simulation step. Trajectories give sequential and random access to the
steps of a file or of an in-memory buffer.

Quick Start:
    >>> import chemtraj
    >>> with chemtraj.open("dump.lammpstrj") as trajectory:
    ...     frame = trajectory.read_step(trajectory.nsteps - 1)
    >>> print(frame.cell.lengths)
"""

__version__ = "0.1.0"

from .config import ReaderOptions
from .errors import ChemtrajError, FileError, FormatError
from .system import Atom, CellShape, Frame, UnitCell
from .trajectory import Trajectory, open

__all__ = [
    "open",
    "Trajectory",
    "ReaderOptions",
    # Value types
    "Atom",
    "CellShape",
    "Frame",
    "UnitCell",
    # Errors
    "ChemtrajError",
    "FileError",
    "FormatError",
]
