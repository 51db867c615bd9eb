"""LAMMPS dump ("atom" style) trajectory format implementation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO

import numpy as np

from ...config import ReaderOptions
from ...errors import (
    BOX_HEADER_PHASE,
    NEXT_STEP_PHASE,
    FileError,
    FormatError,
    parse_float,
    parse_int,
)
from ...system import CellShape, Frame
from ..base import TrajectoryReader, TrajectoryWriter
from ..step_index import StepIndex
from .lammps_atoms import AtomSchema, parse_atoms
from .lammps_box import BoxBounds, pad_bounds, parse_box_bounds

logger = logging.getLogger(__name__)

ITEM_PREFIX = "ITEM: "

# Longest names first, "TIME" is a prefix of "TIMESTEP"
ITEM_NAMES = (
    "NUMBER OF ATOMS",
    "BOX BOUNDS",
    "TIMESTEP",
    "ATOMS",
    "TIME",
    "UNITS",
)

UNITS_PROPERTY = "lammps_units"
TIME_PROPERTY = "time"


def split_item(line: str) -> tuple[str, list[str]] | None:
    """
    Split an `ITEM: <NAME> [<args>...]` line.

    Args:
        line: A line of the file, without the line terminator.

    Returns:
        The item name and the remaining tokens, or None if the line is not an
        item marker. Unknown items are returned with their full text as name.
    """
    if not line.startswith(ITEM_PREFIX):
        return None
    words = line[len(ITEM_PREFIX) :].split()
    for name in ITEM_NAMES:
        parts = name.split()
        if words[: len(parts)] == parts:
            return name, words[len(parts) :]
    return " ".join(words), []


def _decode(raw: bytes, encoding: str) -> str:
    return raw.decode(encoding, errors="replace").rstrip("\r\n")


def _skip_atom_lines(source: BinaryIO, n_atoms: int) -> int:
    """Skip up to `n_atoms` lines, stopping before the next TIMESTEP item."""
    for _ in range(n_atoms):
        position = source.tell()
        line = source.readline()
        if not line:
            break
        if line.startswith(b"ITEM: TIMESTEP"):
            source.seek(position)
            break
    return source.tell()


def scan_step(source: BinaryIO, offset: int) -> tuple[int, int] | None:
    """
    Skip over one step, without validating its content.

    A step is every line up to the end of its ATOMS section, and must contain
    a TIMESTEP item. A step that is cut short by the end of the file or by the
    next TIMESTEP item still counts, reading it reports the error. Chunks
    without any TIMESTEP item are skipped.

    Returns:
        (start, end) offsets of the step, or None if no step remains.
    """
    source.seek(offset)
    start = None
    n_atoms = 0
    seen_timestep = False
    while True:
        position = source.tell()
        line = source.readline()
        if not line:
            break
        if start is None:
            if not line.strip():
                continue
            start = position

        if line.startswith(b"ITEM: TIMESTEP"):
            if seen_timestep:
                return start, position
            seen_timestep = True
        elif line.startswith(b"ITEM: NUMBER OF ATOMS"):
            value_position = source.tell()
            value = source.readline()
            if value.startswith(b"ITEM:"):
                source.seek(value_position)
                n_atoms = 0
            else:
                try:
                    n_atoms = max(int(value), 0)
                except ValueError:
                    n_atoms = 0
        elif line.startswith(b"ITEM: ATOMS"):
            end = _skip_atom_lines(source, n_atoms)
            if seen_timestep:
                return start, end
            # not a step, look for one after it
            start = None
            n_atoms = 0

    if not seen_timestep:
        return None
    return start, source.tell()


class LAMMPSReader(TrajectoryReader):
    """
    LAMMPS dump trajectory reader.

    Reads text dumps written with `dump atom` or `dump custom`. Each step is a
    sequence of items:

        ITEM: TIMESTEP
        100
        ITEM: NUMBER OF ATOMS
        2
        ITEM: BOX BOUNDS pp pp pp
        0.0 20.0
        0.0 30.0
        0.0 40.0
        ITEM: ATOMS id type x y z
        1 1 5.0 5.0 5.0
        2 1 6.5 6.5 6.5

    The ATOMS columns are discovered for every step. Positions are taken from
    the best available representation: unwrapped (xu), scaled unwrapped (xsu),
    wrapped (x, unwrapped with ix when present) then scaled (xs).
    """

    def __init__(
        self,
        filename: str | Path | None = None,
        options: ReaderOptions | None = None,
        data: bytes | None = None,
    ) -> None:
        """
        Initialize LAMMPS reader.

        Args:
            filename: Input file path.
            options: Reading options.
            data: File content, used instead of a file when given.
        """
        super().__init__(filename, data=data)
        self.options = options if options is not None else ReaderOptions()
        self._index: StepIndex | None = None
        self._next_step = 0

    def open(self) -> None:
        """Open the source, steps are indexed on demand."""
        super().open()
        self._index = StepIndex(self._file, scan_step)
        self._next_step = 0

    def close(self) -> None:
        super().close()
        self._index = None

    def __len__(self) -> int:
        """Return number of steps, scanning the whole file the first time."""
        self._require_open()
        return self._index.count()

    def read(self) -> Frame:
        """
        Read the next step.

        Raises:
            FormatError: At the end of the file, or if the step is malformed.
        """
        self._require_open()
        offset = self._index.locate(self._next_step)
        if offset is None:
            raise FormatError("expected an ITEM entry", phase=NEXT_STEP_PHASE)
        try:
            return self._read_step(offset)
        finally:
            self._next_step += 1

    def read_frame(self, index: int) -> Frame:
        """
        Read the step with the given ordinal.

        Args:
            index: Step ordinal (0-based).

        Raises:
            FileError: If the file contains fewer steps.
            FormatError: If the step is malformed.
        """
        self._require_open()
        offset = self._index.locate(index)
        if offset is None:
            raise FileError(
                f"can not read step {index} in LAMMPS file: "
                f"the file only contains {self._index.count()} steps"
            )
        try:
            return self._read_step(offset)
        finally:
            self._next_step = index + 1

    def _readline(self) -> str | None:
        raw = self._file.readline()
        if not raw:
            return None
        return _decode(raw, self.options.encoding)

    def _read_value(self, item: str) -> str:
        line = self._readline()
        if line is None or line.startswith(ITEM_PREFIX):
            raise FormatError(f"missing value for '{item}' item in LAMMPS format")
        return line.strip()

    def _read_frame_property(self, name: str, properties: dict) -> None:
        if name == UNITS_PROPERTY:
            properties[UNITS_PROPERTY] = self._read_value("UNITS")
        else:
            properties[TIME_PROPERTY] = parse_float(self._read_value("TIME"))

    def _read_step(self, offset: int) -> Frame:
        self._file.seek(offset)
        properties: dict = {}

        try:
            step = self._read_timestep(properties)
        except FormatError as e:
            raise e.within(NEXT_STEP_PHASE) from None

        try:
            n_atoms, box = self._read_box_header(properties)
        except FormatError as e:
            raise e.within(BOX_HEADER_PHASE) from None

        try:
            n_atoms, schema = self._read_atoms_header(properties, n_atoms)
        except FormatError as e:
            raise e.within(NEXT_STEP_PHASE) from None

        lines = self._read_atom_lines(n_atoms)
        block = parse_atoms(
            schema, lines, box, extra_properties=self.options.extra_properties
        )
        if self.options.atom_order == "id":
            block = block.sorted_by_id()

        return Frame(
            step=step,
            cell=box.cell,
            atoms=block.atoms,
            positions=block.positions,
            velocities=block.velocities,
            properties=properties,
        )

    def _next_item(self) -> tuple[str, list[str]]:
        line = self._readline()
        item = split_item(line) if line is not None else None
        if item is None:
            raise FormatError("expected an ITEM entry")
        return item

    def _read_timestep(self, properties: dict) -> int:
        while True:
            name, _ = self._next_item()
            if name == "UNITS":
                self._read_frame_property(UNITS_PROPERTY, properties)
            elif name == "TIME":
                self._read_frame_property(TIME_PROPERTY, properties)
            elif name == "TIMESTEP":
                break
            else:
                raise FormatError(f"expected 'TIMESTEP' got '{name}'")

        value = self._read_value("TIMESTEP")
        step = parse_int(value, "a step number")
        if step < 0:
            raise FormatError(f"invalid step number '{value}' in LAMMPS format")
        return step

    def _read_box_header(self, properties: dict) -> tuple[int | None, BoxBounds]:
        n_atoms = None
        while True:
            line = self._readline()
            item = split_item(line) if line is not None else None
            if item is None:
                got = "end of file" if line is None else f"'{line.strip()}'"
                raise FormatError(f"expected an ITEM entry in LAMMPS format, got {got}")

            name, args = item
            if name == "NUMBER OF ATOMS":
                n_atoms = self._read_atom_count()
            elif name == "BOX BOUNDS":
                lines = [self._readline() for _ in range(3)]
                box = parse_box_bounds(args, lines, depad=self.options.depad_triclinic)
                return n_atoms, box
            elif name == "UNITS":
                self._read_frame_property(UNITS_PROPERTY, properties)
            elif name == "TIME":
                self._read_frame_property(TIME_PROPERTY, properties)
            elif name == "ATOMS":
                raise FormatError("missing 'BOX BOUNDS' item in LAMMPS format")
            else:
                raise FormatError(f"unexpected item '{name}' in LAMMPS format")

    def _read_atom_count(self) -> int:
        value = self._read_value("NUMBER OF ATOMS")
        n_atoms = parse_int(value, "a number of atoms")
        if n_atoms < 0:
            raise FormatError(f"invalid number of atoms '{value}' in LAMMPS format")
        return n_atoms

    def _read_atoms_header(
        self, properties: dict, n_atoms: int | None
    ) -> tuple[int, AtomSchema]:
        while True:
            name, args = self._next_item()
            if name == "ATOMS":
                break
            elif name == "UNITS":
                self._read_frame_property(UNITS_PROPERTY, properties)
            elif name == "TIME":
                self._read_frame_property(TIME_PROPERTY, properties)
            elif name == "NUMBER OF ATOMS" and n_atoms is None:
                n_atoms = self._read_atom_count()
            else:
                raise FormatError(f"expected 'ATOMS' got '{name}'")

        if n_atoms is None:
            raise FormatError("missing 'NUMBER OF ATOMS' item in LAMMPS format")
        return n_atoms, AtomSchema.from_columns(args)

    def _read_atom_lines(self, n_atoms: int) -> list[str]:
        lines = []
        for _ in range(n_atoms):
            line = self._readline()
            if line is None:
                raise FormatError(
                    f"unexpected end of file in LAMMPS format: "
                    f"expected {n_atoms} atoms but got {len(lines)}"
                )
            lines.append(line)
        return lines


DEFAULT_COLUMNS = ("id", "type", "x", "y", "z")

_POSITION_COLUMNS = {
    "x": (0, False),
    "y": (1, False),
    "z": (2, False),
    "xu": (0, False),
    "yu": (1, False),
    "zu": (2, False),
    "xs": (0, True),
    "ys": (1, True),
    "zs": (2, True),
    "xsu": (0, True),
    "ysu": (1, True),
    "zsu": (2, True),
}
_VELOCITY_COLUMNS = {"vx": 0, "vy": 1, "vz": 2}


def _format_number(value: float) -> str:
    return repr(float(value))


class LAMMPSWriter(TrajectoryWriter):
    """
    LAMMPS dump trajectory writer.

    Frames are appended one at a time. The ATOMS columns are either given
    explicitly or chosen from the content of each frame.
    """

    def __init__(
        self,
        filename: str | Path,
        columns: Sequence[str] | None = None,
        units: str | None = None,
        mode: str = "w",
    ) -> None:
        """
        Initialize LAMMPS writer.

        Args:
            filename: Output file path.
            columns: ATOMS columns to write. Names without a dedicated meaning
                are taken from atomic properties.
            units: Value for the UNITS item, used when a frame does not carry
                a "lammps_units" property.
            mode: "w" to overwrite an existing file, "a" to append to it.
        """
        super().__init__(filename, mode=mode)
        if columns is not None:
            columns = list(columns)
            duplicated = {name for name in columns if columns.count(name) > 1}
            if duplicated:
                raise ValueError(f"Duplicated LAMMPS columns: {sorted(duplicated)}")
            if not columns:
                raise ValueError("LAMMPS columns can not be empty")
        self.columns = columns
        self.units = units

    @staticmethod
    def default_columns(frame: Frame) -> list[str]:
        """Columns needed to store everything known about the frame."""
        columns = list(DEFAULT_COLUMNS)
        if any(atom.name for atom in frame.atoms):
            columns.insert(2, "element")
        if any(atom.mass is not None for atom in frame.atoms):
            columns.append("mass")
        if any(atom.charge is not None for atom in frame.atoms):
            columns.append("q")
        if frame.velocities is not None:
            columns.extend(_VELOCITY_COLUMNS)
        return columns

    def write(self, frame: Frame, **kwargs) -> None:
        """
        Write a single frame in LAMMPS dump format.

        Args:
            frame: Frame to write.
        """
        if self._file is None:
            raise FileError("File not open. Use context manager or call open().")

        columns = self.columns if self.columns is not None else self.default_columns(frame)
        units = frame.get(UNITS_PROPERTY)
        if units is None:
            units = self.units
        time = frame.get(TIME_PROPERTY)

        out = []
        if units is not None:
            out.append(f"{ITEM_PREFIX}UNITS\n{units}\n")
        if time is not None:
            out.append(f"{ITEM_PREFIX}TIME\n{_format_number(time)}\n")
        out.append(f"{ITEM_PREFIX}TIMESTEP\n{frame.step}\n")
        out.append(f"{ITEM_PREFIX}NUMBER OF ATOMS\n{frame.size}\n")
        out.append(self._box_section(frame))
        out.append(f"{ITEM_PREFIX}ATOMS {' '.join(columns)}\n")
        for row in self._atom_rows(frame, columns):
            out.append(" ".join(row) + "\n")

        self._file.write("".join(out))
        self._n_frames += 1

    @staticmethod
    def _box_section(frame: Frame) -> str:
        cell = frame.cell
        lx, ly, lz, xy, xz, yz = cell.tilts
        if cell.shape is CellShape.TRICLINIC:
            lo, hi = pad_bounds(np.zeros(3), np.array([lx, ly, lz]), xy, xz, yz)
            tilts = (xy, xz, yz)
            lines = [f"{ITEM_PREFIX}BOX BOUNDS xy xz yz pp pp pp\n"]
            for axis in range(3):
                lines.append(
                    f"{_format_number(lo[axis])} {_format_number(hi[axis])} "
                    f"{_format_number(tilts[axis])}\n"
                )
            return "".join(lines)

        flags = "ff ff ff" if cell.shape is CellShape.INFINITE else "pp pp pp"
        lines = [f"{ITEM_PREFIX}BOX BOUNDS {flags}\n"]
        for length in (lx, ly, lz):
            lines.append(f"{_format_number(0.0)} {_format_number(length)}\n")
        return "".join(lines)

    @staticmethod
    def _atom_rows(frame: Frame, columns: Sequence[str]) -> list[list[str]]:
        scaled = None
        if any(_POSITION_COLUMNS.get(name, (0, False))[1] for name in columns):
            if frame.cell.shape is CellShape.INFINITE:
                raise ValueError("Can not write scaled positions for an infinite cell")
            scaled = frame.positions @ np.linalg.inv(frame.cell.vectors)

        rows = []
        for i, atom in enumerate(frame.atoms):
            row = []
            for name in columns:
                if name == "id":
                    row.append(str(i + 1))
                elif name == "type":
                    row.append(atom.type or atom.name or "1")
                elif name == "element":
                    row.append(atom.name or atom.type or "X")
                elif name == "mass":
                    row.append(_format_number(atom.mass or 0.0))
                elif name in ("q", "charge"):
                    row.append(_format_number(atom.charge or 0.0))
                elif name in _POSITION_COLUMNS:
                    axis, is_scaled = _POSITION_COLUMNS[name]
                    source = scaled if is_scaled else frame.positions
                    row.append(_format_number(source[i, axis]))
                elif name in _VELOCITY_COLUMNS:
                    value = 0.0
                    if frame.velocities is not None:
                        value = frame.velocities[i, _VELOCITY_COLUMNS[name]]
                    row.append(_format_number(value))
                elif name in ("ix", "iy", "iz"):
                    row.append("0")
                else:
                    value = atom.properties.get(name, 0.0)
                    if isinstance(value, str):
                        if not value or any(c.isspace() for c in value):
                            raise ValueError(
                                f"Property '{name}' of atom {i} can not be "
                                f"written in a LAMMPS column: '{value}'"
                            )
                        row.append(value)
                    else:
                        row.append(_format_number(value))
            rows.append(row)
        return rows
