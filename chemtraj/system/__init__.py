"""Frame, atom and unit cell value types."""

from .cell import CellShape, UnitCell
from .frame import Atom, Frame

__all__ = ["Atom", "CellShape", "Frame", "UnitCell"]
