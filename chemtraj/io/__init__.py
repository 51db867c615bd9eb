"""I/O layer for trajectory reading and writing."""

from .base import TrajectoryReader, TrajectoryWriter
from .formats.lammps import LAMMPSReader, LAMMPSWriter
from .step_index import StepEntry, StepIndex

__all__ = [
    # Base classes
    "TrajectoryReader",
    "TrajectoryWriter",
    # Step indexing
    "StepEntry",
    "StepIndex",
    # Formats
    "LAMMPSReader",
    "LAMMPSWriter",
]
