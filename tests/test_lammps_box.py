"""Tests for LAMMPS BOX BOUNDS parsing."""

import numpy as np
import pytest

from chemtraj.errors import FormatError
from chemtraj.io.formats.lammps_box import (
    depad_bounds,
    is_triclinic,
    pad_bounds,
    parse_box_bounds,
)
from chemtraj.system import CellShape

# Cell with lx=10, ly=20, lz=11, xy=5, xz=4, yz=3.5 and origin (-4, 0, -1),
# written as a bounding box
TRICLINIC_LINES = [
    "-4.0000000000000000e+00 1.5000000000000000e+01 5.0000000000000000e+00",
    "0.0000000000000000e+00 2.3500000000000000e+01 4.0000000000000000e+00",
    "-1.0000000000000000e+00 1.0000000000000000e+01 3.5000000000000000e+00",
]


class TestBoxFlags:
    """Test BOX BOUNDS header flags."""

    def test_orthorhombic_flags(self):
        assert not is_triclinic(["pp", "pp", "pp"])
        assert not is_triclinic(["pp", "ff", "fs"])
        assert not is_triclinic(["fm", "fe", "pp"])
        assert not is_triclinic([])

    def test_tilt_flags_after_boundaries(self):
        assert is_triclinic(["pp", "pp", "pp", "xy", "xz", "yz"])

    def test_tilt_flags_before_boundaries(self):
        assert is_triclinic(["xy", "xz", "yz", "pp", "pp", "pp"])

    def test_unknown_flag(self):
        with pytest.raises(FormatError, match="unknown box flag 'abc' in LAMMPS format"):
            is_triclinic(["abc", "pp", "pp"])

    def test_partial_tilt_flags(self):
        with pytest.raises(FormatError, match="invalid tilt flags"):
            is_triclinic(["pp", "pp", "pp", "xy", "yz"])


class TestDepadding:
    """Test removal of the triclinic bounding box padding."""

    def test_positive_tilts(self):
        lo, hi = depad_bounds([-4.0, 0.0, -1.0], [15.0, 23.5, 10.0], 5.0, 4.0, 3.5)
        np.testing.assert_allclose(lo, [-4.0, 0.0, -1.0])
        np.testing.assert_allclose(hi, [6.0, 20.0, 10.0])

    def test_negative_tilts(self):
        lo, hi = depad_bounds([-2.0, -1.0, 0.0], [13.0, 10.0, 10.0], -2.0, 3.0, -1.0)
        np.testing.assert_allclose(lo, [0.0, 0.0, 0.0])
        np.testing.assert_allclose(hi, [10.0, 10.0, 10.0])

    def test_zero_tilts(self):
        lo, hi = depad_bounds([1.0, 2.0, 3.0], [4.0, 5.0, 6.0], 0.0, 0.0, 0.0)
        np.testing.assert_allclose(lo, [1.0, 2.0, 3.0])
        np.testing.assert_allclose(hi, [4.0, 5.0, 6.0])

    def test_pad_inverts_depad(self):
        lo, hi = pad_bounds([0.0, 0.0, 0.0], [10.0, 10.0, 10.0], -2.0, 3.0, -1.0)
        np.testing.assert_allclose(lo, [-2.0, -1.0, 0.0])
        np.testing.assert_allclose(hi, [13.0, 10.0, 10.0])
        lo, hi = depad_bounds(lo, hi, -2.0, 3.0, -1.0)
        np.testing.assert_allclose(lo, 0.0)
        np.testing.assert_allclose(hi, 10.0)

    def test_inputs_are_not_modified(self):
        lo = np.array([-2.0, -1.0, 0.0])
        hi = np.array([13.0, 10.0, 10.0])
        depad_bounds(lo, hi, -2.0, 3.0, -1.0)
        np.testing.assert_array_equal(lo, [-2.0, -1.0, 0.0])


class TestParseBoxBounds:
    """Test conversion of BOX BOUNDS sections to cells."""

    def test_orthorhombic(self):
        box = parse_box_bounds(
            ["pp", "pp", "pp"], ["-1.5 20", "-2.6 30.0", "-3.7 4.0e+01"]
        )
        assert box.cell.shape is CellShape.ORTHORHOMBIC
        np.testing.assert_allclose(box.cell.lengths, [21.5, 32.6, 43.7])
        np.testing.assert_allclose(box.cell.angles, [90.0, 90.0, 90.0])
        np.testing.assert_allclose(box.origin, [-1.5, -2.6, -3.7])
        assert box.periodicity == ("pp", "pp", "pp")

    def test_zero_box_is_infinite(self):
        box = parse_box_bounds(["ff", "ff", "ff"], ["0 0", "0 0", "0 0"])
        assert box.cell.shape is CellShape.INFINITE

    def test_triclinic(self):
        box = parse_box_bounds(["pp", "pp", "pp", "xy", "xz", "yz"], TRICLINIC_LINES)
        assert box.cell.shape is CellShape.TRICLINIC
        np.testing.assert_allclose(box.cell.lengths, [10.0, 20.616, 12.217], atol=1e-3)
        np.testing.assert_allclose(box.cell.angles, [69.063, 70.888, 75.964], atol=1e-3)
        np.testing.assert_allclose(box.origin, [-4.0, 0.0, -1.0])
        np.testing.assert_allclose(
            box.cell.vectors, [[10.0, 0.0, 0.0], [5.0, 20.0, 0.0], [4.0, 3.5, 11.0]]
        )

    def test_triclinic_flag_orders_agree(self):
        new = parse_box_bounds(["pp", "pp", "pp", "xy", "xz", "yz"], TRICLINIC_LINES)
        old = parse_box_bounds(["xy", "xz", "yz", "pp", "pp", "pp"], TRICLINIC_LINES)
        np.testing.assert_allclose(new.cell.lengths, old.cell.lengths)
        np.testing.assert_allclose(new.cell.angles, old.cell.angles)
        assert new.periodicity == old.periodicity

    def test_triclinic_without_depadding(self):
        lines = [
            "-4.0 6.0 5.0",
            "0.0 20.0 4.0",
            "-1.0 10.0 3.5",
        ]
        box = parse_box_bounds(["xy", "xz", "yz", "pp", "pp", "pp"], lines, depad=False)
        np.testing.assert_allclose(box.cell.lengths, [10.0, 20.616, 12.217], atol=1e-3)
        np.testing.assert_allclose(box.cell.angles, [69.063, 70.888, 75.964], atol=1e-3)

    def test_zero_tilt_triclinic(self):
        box = parse_box_bounds(["pp", "pp", "pp", "xy", "xz", "yz"], ["0 1 0", "0 2 0", "0 3 0"])
        assert box.cell.shape is CellShape.TRICLINIC
        np.testing.assert_allclose(box.cell.lengths, [1.0, 2.0, 3.0])


class TestBoxBoundsErrors:
    """Test diagnostics for malformed BOX BOUNDS sections."""

    def test_missing_field(self):
        with pytest.raises(FormatError) as error:
            parse_box_bounds(["pp", "pp", "pp"], ["0 1", "0", "0 1"])
        assert str(error.value) == (
            "incomplete box dimensions in LAMMPS format, expected 2 but got 1"
        )

    def test_missing_tilt(self):
        lines = [TRICLINIC_LINES[0], "0 23.5", TRICLINIC_LINES[2]]
        with pytest.raises(FormatError) as error:
            parse_box_bounds(["pp", "pp", "pp", "xy", "xz", "yz"], lines)
        assert str(error.value) == (
            "incomplete box dimensions in LAMMPS format, expected 3 but got 2"
        )

    def test_too_many_fields(self):
        with pytest.raises(FormatError) as error:
            parse_box_bounds(["pp", "pp", "pp"], ["0 1 2", "0 1", "0 1"])
        assert str(error.value) == (
            "too many box dimensions in LAMMPS format, expected 2 but got 3"
        )

    def test_missing_line(self):
        with pytest.raises(FormatError) as error:
            parse_box_bounds(["pp", "pp", "pp"], ["0 1", "0 1", "ITEM: ATOMS id"])
        assert str(error.value) == (
            "missing box dimensions in LAMMPS format, expected 3 lines but got 2"
        )

    def test_end_of_file(self):
        with pytest.raises(FormatError, match="expected 3 lines but got 1"):
            parse_box_bounds(["pp", "pp", "pp"], ["0 1", None, None])

    def test_not_a_number(self):
        with pytest.raises(FormatError) as error:
            parse_box_bounds(["pp", "pp", "pp"], ["0 1", "0 abc", "0 1"])
        assert str(error.value) == "can not parse 'abc' as a box dimension"

    @pytest.mark.parametrize("token", ["nan", "inf", "1_0"])
    def test_non_decimal_dimension(self, token):
        with pytest.raises(FormatError) as error:
            parse_box_bounds(["pp", "pp", "pp"], ["0 1", f"0 {token}", "0 1"])
        assert str(error.value) == f"can not parse '{token}' as a box dimension"
