"""Trajectory format implementations."""

from .lammps import LAMMPSReader, LAMMPSWriter

__all__ = [
    "LAMMPSReader",
    "LAMMPSWriter",
]
