"""Lazily built index of step offsets in a text trajectory."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import BinaryIO

logger = logging.getLogger(__name__)

# Skip one step, looking from the given offset. Returns the offset where the
# step starts and the offset right after it, or None at the end of the source.
StepScanner = Callable[[BinaryIO, int], "tuple[int, int] | None"]


@dataclass(frozen=True)
class StepEntry:
    """Position of one step in the file."""

    ordinal: int
    offset: int


class StepIndex:
    """
    Append-only map from step ordinal to byte offset.

    The index grows when a step beyond the indexed range is requested, by
    scanning forward from the furthest known position. Steps that were
    already indexed are located without any I/O.

    Example:
        index = StepIndex(file, scanner)
        offset = index.locate(10)  # scans steps 0 to 10
        offset = index.locate(3)   # no scan
    """

    def __init__(self, source: BinaryIO, scanner: StepScanner) -> None:
        """
        Initialize the index.

        Args:
            source: Seekable binary stream.
            scanner: Format specific function skipping over one step.
        """
        self._source = source
        self._scanner = scanner
        self._entries: list[StepEntry] = []
        self._cursor = source.tell()
        self._exhausted = False

    def __len__(self) -> int:
        """Number of steps indexed so far."""
        return len(self._entries)

    @property
    def entries(self) -> tuple[StepEntry, ...]:
        return tuple(self._entries)

    @property
    def exhausted(self) -> bool:
        """Whether the scan reached the end of the source."""
        return self._exhausted

    def locate(self, ordinal: int) -> int | None:
        """
        Get the byte offset of the step with the given ordinal.

        Args:
            ordinal: Step ordinal (0-based).

        Returns:
            Offset of the step, or None if the source has fewer steps.
        """
        if ordinal < 0:
            return None
        while ordinal >= len(self._entries) and not self._exhausted:
            self._advance()
        if ordinal < len(self._entries):
            return self._entries[ordinal].offset
        return None

    def count(self) -> int:
        """Total number of steps, scanning the whole source the first time."""
        while not self._exhausted:
            self._advance()
        return len(self._entries)

    def _advance(self) -> None:
        """Index one more step, or mark the index as exhausted."""
        position = self._source.tell()
        try:
            found = self._scanner(self._source, self._cursor)
        finally:
            self._source.seek(position)

        if found is None:
            self._exhausted = True
            logger.debug("step index complete with %d steps", len(self._entries))
            return

        start, next_offset = found
        entry = StepEntry(ordinal=len(self._entries), offset=start)
        self._entries.append(entry)
        logger.debug("indexed step %d at offset %d", entry.ordinal, entry.offset)
        self._cursor = next_offset
