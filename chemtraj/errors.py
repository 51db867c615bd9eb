"""Exception hierarchy and diagnostic messages for trajectory I/O."""

from __future__ import annotations

import re

# Phase prefixes, part of the message contract with existing consumers
NEXT_STEP_PHASE = "can not read next step as LAMMPS format"
BOX_HEADER_PHASE = "can not read box header in LAMMPS format"


class ChemtrajError(Exception):
    """Base class for every error raised by chemtraj."""


class FileError(ChemtrajError):
    """
    The underlying byte source can not be used.

    Raised when a file can not be opened, when a trajectory is used after
    being closed, and when a step outside of the file is requested.
    """


class FormatError(ChemtrajError):
    """The content of a file does not follow the format grammar."""

    def __init__(self, message: str, phase: str | None = None) -> None:
        self.phase = phase
        self.detail = message
        if phase is not None:
            message = f"{phase}: {message}"
        super().__init__(message)

    def within(self, phase: str) -> FormatError:
        """Return a copy of this error prefixed by a parsing phase."""
        return FormatError(str(self), phase=phase)


INTEGER_PATTERN = re.compile(r"-?[0-9]+")
FLOAT_PATTERN = re.compile(r"-?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def is_integer(token: str) -> bool:
    """Check that a token is a plain decimal integer."""
    return INTEGER_PATTERN.fullmatch(token) is not None


def is_float(token: str) -> bool:
    """Check that a token is a decimal or scientific notation number."""
    return FLOAT_PATTERN.fullmatch(token) is not None


def parse_int(token: str, what: str = "an integer") -> int:
    """Parse a plain decimal integer, raising FormatError on failure."""
    if not is_integer(token):
        raise FormatError(f"can not parse '{token}' as {what}")
    return int(token)


def parse_float(token: str, what: str = "a number") -> float:
    """Parse a decimal or scientific notation float."""
    if not is_float(token):
        raise FormatError(f"can not parse '{token}' as {what}")
    return float(token)
