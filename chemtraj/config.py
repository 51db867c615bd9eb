"""Reader configuration."""

from __future__ import annotations

from dataclasses import dataclass

ATOM_ORDERS = ("file", "id")


@dataclass(frozen=True)
class ReaderOptions:
    """
    Options controlling how trajectories are read.

    Attributes:
        atom_order: "file" keeps atoms in the order of the ATOMS section,
            "id" sorts them by increasing atom id.
        depad_triclinic: Remove the tilt padding from triclinic box bounds.
            Disable for files storing the cell bounds instead of the bounding
            box.
        extra_properties: Store columns without a dedicated meaning as atomic
            properties.
        encoding: Text encoding of the file.
    """

    atom_order: str = "file"
    depad_triclinic: bool = True
    extra_properties: bool = True
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if self.atom_order not in ATOM_ORDERS:
            raise ValueError(
                f"atom_order must be one of {ATOM_ORDERS}, got '{self.atom_order}'"
            )
