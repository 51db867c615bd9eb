"""ATOMS section of LAMMPS dump files."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from ...errors import FormatError, is_float, is_integer
from ...system import Atom
from .lammps_box import BoxBounds

logger = logging.getLogger(__name__)

IMAGE_COLUMNS = ("ix", "iy", "iz")
VELOCITY_COLUMNS = ("vx", "vy", "vz")
CHARGE_COLUMNS = ("q", "charge")


@dataclass(frozen=True)
class PositionRepresentation:
    """
    One way of storing positions in the ATOMS section.

    Attributes:
        name: Short name of the representation.
        columns: Column names for the x, y and z components.
        scaled: Values are fractions of the cell vectors.
        wrapped: Values are folded in the cell, image flags can unwrap them.
    """

    name: str
    columns: tuple[str, str, str]
    scaled: bool
    wrapped: bool

    def available(self, index: dict[str, int]) -> bool:
        """All three components are present in the column map."""
        return all(column in index for column in self.columns)


# Ordered by priority, the first available representation is used
POSITION_REPRESENTATIONS = (
    PositionRepresentation("unwrapped", ("xu", "yu", "zu"), scaled=False, wrapped=False),
    PositionRepresentation(
        "scaled unwrapped", ("xsu", "ysu", "zsu"), scaled=True, wrapped=False
    ),
    PositionRepresentation("wrapped", ("x", "y", "z"), scaled=False, wrapped=True),
    PositionRepresentation("scaled", ("xs", "ys", "zs"), scaled=True, wrapped=True),
)

_ROLE_COLUMNS = frozenset(
    ["id", "type", "element", "mass", *CHARGE_COLUMNS, *IMAGE_COLUMNS, *VELOCITY_COLUMNS]
    + [column for repr_ in POSITION_REPRESENTATIONS for column in repr_.columns]
)


def select_position_representation(
    index: dict[str, int],
) -> PositionRepresentation | None:
    """Pick the highest priority position representation fully present."""
    for representation in POSITION_REPRESENTATIONS:
        if representation.available(index):
            return representation
    return None


@dataclass
class AtomSchema:
    """
    Column layout of one ATOMS section.

    Attributes:
        columns: Column names, in file order.
        index: Map from column name to position in a row.
        position: Selected position representation, None if positions are
            not stored.
        has_velocities: At least one velocity column is present.
        extra: Columns without a dedicated role, stored as atomic properties.
    """

    columns: list[str]
    index: dict[str, int] = field(default_factory=dict)
    position: PositionRepresentation | None = None
    has_velocities: bool = False
    extra: list[str] = field(default_factory=list)

    @classmethod
    def from_columns(cls, columns: Sequence[str]) -> AtomSchema:
        """Build the schema from the names following `ITEM: ATOMS`."""
        index: dict[str, int] = {}
        for i, name in enumerate(columns):
            if name in index:
                raise FormatError(f"duplicated column '{name}' in LAMMPS format")
            index[name] = i

        position = select_position_representation(index)
        if position is None:
            logger.debug("no position columns in %s, using the origin", list(columns))
        else:
            logger.debug("using %s positions", position.name)

        return cls(
            columns=list(columns),
            index=index,
            position=position,
            has_velocities=any(column in index for column in VELOCITY_COLUMNS),
            extra=[name for name in columns if name not in _ROLE_COLUMNS],
        )

    def __len__(self) -> int:
        return len(self.columns)

    def charge_column(self) -> str | None:
        for column in CHARGE_COLUMNS:
            if column in self.index:
                return column
        return None


@dataclass
class AtomBlock:
    """Atoms parsed from one ATOMS section, in file order."""

    atoms: list[Atom]
    ids: list[int] | None
    positions: NDArray[np.floating]
    velocities: NDArray[np.floating] | None

    def sorted_by_id(self) -> AtomBlock:
        """Return a copy with atoms sorted by increasing id."""
        if self.ids is None:
            return self
        order = np.argsort(np.asarray(self.ids), kind="stable")
        return AtomBlock(
            atoms=[self.atoms[i] for i in order],
            ids=[self.ids[i] for i in order],
            positions=self.positions[order],
            velocities=None if self.velocities is None else self.velocities[order],
        )


def _number(token: str, column: str) -> float:
    if not is_float(token):
        raise FormatError(f"invalid value '{token}' for '{column}' in LAMMPS format")
    return float(token)


def _integer(token: str, column: str) -> int:
    if not is_integer(token):
        raise FormatError(f"invalid value '{token}' for '{column}' in LAMMPS format")
    return int(token)


def _property(token: str) -> float | str:
    if is_float(token):
        return float(token)
    return token


def parse_atoms(
    schema: AtomSchema,
    lines: Sequence[str],
    box: BoxBounds,
    extra_properties: bool = True,
) -> AtomBlock:
    """
    Parse the rows of an ATOMS section.

    Args:
        schema: Column layout from the section header.
        lines: Exactly one line per atom.
        box: Box of the same step, used for scaled and image-flag positions.
        extra_properties: Store unknown columns as atomic properties.

    Returns:
        Atoms, positions and velocities in file order.

    Raises:
        FormatError: On wrong field counts, invalid values or duplicated ids.
    """
    n_atoms = len(lines)
    n_columns = len(schema)
    index = schema.index

    id_column = index.get("id")
    type_column = index.get("type")
    element_column = index.get("element")
    mass_column = index.get("mass")
    charge_name = schema.charge_column()
    charge_column = index.get(charge_name) if charge_name else None

    representation = schema.position
    position_columns = (
        [index[name] for name in representation.columns] if representation else []
    )
    image_columns = [index.get(name) for name in IMAGE_COLUMNS]
    use_images = (
        representation is not None
        and representation.wrapped
        and any(column is not None for column in image_columns)
    )
    velocity_columns = [index.get(name) for name in VELOCITY_COLUMNS]
    extra = [(name, index[name]) for name in schema.extra] if extra_properties else []

    atoms: list[Atom] = []
    ids: list[int] | None = [] if id_column is not None else None
    seen: set[int] = set()
    raw = np.zeros((n_atoms, 3), dtype=np.float64)
    images = np.zeros((n_atoms, 3), dtype=np.float64)
    velocities = np.zeros((n_atoms, 3), dtype=np.float64) if schema.has_velocities else None

    for i, line in enumerate(lines):
        fields = line.split()
        if len(fields) != n_columns:
            raise FormatError(
                f"LAMMPS line has wrong number of fields: "
                f"expected {n_columns} got {len(fields)}"
            )

        if id_column is not None:
            atom_id = _integer(fields[id_column], "id")
            if atom_id in seen:
                raise FormatError(
                    f"found atoms with the same ID in LAMMPS format: "
                    f"{atom_id} is already present"
                )
            seen.add(atom_id)
            ids.append(atom_id)

        name = fields[element_column] if element_column is not None else ""
        atom = Atom(
            name=name,
            type=fields[type_column] if type_column is not None else name,
        )
        if mass_column is not None:
            atom.mass = _number(fields[mass_column], "mass")
        if charge_column is not None:
            atom.charge = _number(fields[charge_column], charge_name)
        for column_name, column in extra:
            atom.properties[column_name] = _property(fields[column])
        atoms.append(atom)

        for axis, column in enumerate(position_columns):
            raw[i, axis] = _number(fields[column], representation.columns[axis])
        if use_images:
            for axis, column in enumerate(image_columns):
                if column is not None:
                    images[i, axis] = _integer(fields[column], IMAGE_COLUMNS[axis])
        if velocities is not None:
            for axis, column in enumerate(velocity_columns):
                if column is not None:
                    velocities[i, axis] = _number(fields[column], VELOCITY_COLUMNS[axis])

    return AtomBlock(
        atoms=atoms,
        ids=ids,
        positions=resolve_positions(representation, raw, images, box),
        velocities=velocities,
    )


def resolve_positions(
    representation: PositionRepresentation | None,
    raw: NDArray[np.floating],
    images: NDArray[np.floating],
    box: BoxBounds,
) -> NDArray[np.floating]:
    """
    Convert raw column values to absolute cartesian positions.

    Args:
        representation: How the raw values are stored, None for no positions.
        raw: Values read from the position columns, shape (N, 3).
        images: Periodic image flags, shape (N, 3). Zero when absent.
        box: Box of the step.

    Returns:
        Unwrapped cartesian positions, shape (N, 3).
    """
    if representation is None:
        return np.zeros_like(raw)

    if representation.scaled:
        # unwrapping in scaled space is adding the image flags
        return box.cell.fractional_to_cartesian(raw + images, origin=box.origin)
    return raw + images @ box.cell.vectors
