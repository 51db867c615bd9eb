"""Simulation frame representation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .cell import UnitCell

Property = Union[str, float, bool]


def _check_property(name: str, value: object) -> Property:
    # bool is an int subclass, keep it as is
    if isinstance(value, bool) or isinstance(value, str):
        return value
    if isinstance(value, (int, float, np.integer, np.floating)):
        return float(value)
    raise TypeError(
        f"property '{name}' must be a string, a number or a boolean, "
        f"got {type(value).__name__}"
    )


@dataclass
class Atom:
    """
    A single atom in a frame.

    Attributes:
        name: Atom name, usually the element symbol. Empty if unknown.
        type: Atom type, a short label such as a numeric LAMMPS type.
        mass: Atomic mass, None when not known.
        charge: Atomic charge, None when not known.
        properties: Additional per-atom scalar properties.
    """

    name: str = ""
    type: str = ""
    mass: float | None = None
    charge: float | None = None
    properties: dict[str, Property] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.type:
            self.type = self.name

    def get(self, name: str) -> Property | None:
        """Get an atomic property, or None if it is not set."""
        return self.properties.get(name)

    def set(self, name: str, value: Property) -> None:
        """Set an atomic property."""
        self.properties[name] = _check_property(name, value)


@dataclass
class Frame:
    """
    One snapshot of a simulation.

    Positions are always present. Velocities are only present when the
    source provided at least one velocity component.

    Attributes:
        step: Simulation step number.
        cell: Unit cell of the frame.
        atoms: Atoms in the frame, in reading order.
        positions: Atomic positions, shape (N, 3).
        velocities: Atomic velocities, shape (N, 3), or None.
        properties: Frame level metadata such as "time".
    """

    step: int = 0
    cell: UnitCell = field(default_factory=UnitCell.infinite)
    atoms: list[Atom] = field(default_factory=list)
    positions: NDArray[np.floating] | None = None
    velocities: NDArray[np.floating] | None = None
    properties: dict[str, Property] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate and convert arrays."""
        if self.step < 0:
            raise ValueError(f"step must be positive, got {self.step}")

        n_atoms = len(self.atoms)
        if self.positions is None:
            self.positions = np.zeros((n_atoms, 3), dtype=np.float64)
        else:
            self.positions = np.asarray(self.positions, dtype=np.float64)
        if self.positions.shape != (n_atoms, 3):
            raise ValueError(
                f"positions shape {self.positions.shape} incompatible with "
                f"{n_atoms} atoms"
            )
        if self.velocities is not None:
            self.velocities = np.asarray(self.velocities, dtype=np.float64)
            if self.velocities.shape != (n_atoms, 3):
                raise ValueError(
                    f"velocities shape {self.velocities.shape} incompatible with "
                    f"{n_atoms} atoms"
                )
        for name, value in self.properties.items():
            self.properties[name] = _check_property(name, value)

    @classmethod
    def create(
        cls,
        atoms: list[Atom],
        positions: ArrayLike | None = None,
        cell: UnitCell | None = None,
        velocities: ArrayLike | None = None,
        step: int = 0,
        **properties: Property,
    ) -> Frame:
        """
        Create a Frame, converting array-likes and collecting properties.

        Args:
            atoms: Atoms in the frame.
            positions: Atomic positions, shape (N, 3). Defaults to zeros.
            cell: Unit cell. Defaults to an infinite cell.
            velocities: Atomic velocities, shape (N, 3).
            step: Simulation step number.
            **properties: Frame properties.

        Returns:
            New Frame instance.
        """
        return cls(
            step=step,
            cell=cell if cell is not None else UnitCell.infinite(),
            atoms=list(atoms),
            positions=None if positions is None else np.asarray(positions),
            velocities=None if velocities is None else np.asarray(velocities),
            properties=dict(properties),
        )

    @property
    def size(self) -> int:
        """Return number of atoms."""
        return len(self.atoms)

    def __len__(self) -> int:
        return len(self.atoms)

    def __getitem__(self, index: int) -> Atom:
        if not -len(self.atoms) <= index < len(self.atoms):
            raise IndexError(f"Atom index {index} out of range [0, {len(self.atoms)})")
        return self.atoms[index]

    def get(self, name: str) -> Property | None:
        """Get a frame property, or None if it is not set."""
        return self.properties.get(name)

    def set(self, name: str, value: Property) -> None:
        """Set a frame property."""
        self.properties[name] = _check_property(name, value)

    def add_velocities(self) -> None:
        """Add zero-initialized velocities if the frame has none."""
        if self.velocities is None:
            self.velocities = np.zeros((self.size, 3), dtype=np.float64)

    @property
    def has_velocities(self) -> bool:
        return self.velocities is not None

    def copy(self) -> Frame:
        """Create a deep copy of this frame."""
        return Frame(
            step=self.step,
            cell=self.cell,  # UnitCell is immutable
            atoms=[
                Atom(a.name, a.type, a.mass, a.charge, dict(a.properties))
                for a in self.atoms
            ],
            positions=self.positions.copy(),
            velocities=None if self.velocities is None else self.velocities.copy(),
            properties=dict(self.properties),
        )
