"""Base classes for trajectory I/O."""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO, TextIO

from ..errors import FileError
from ..system import Frame


class TrajectoryWriter(ABC):
    """
    Abstract base class for trajectory writers.

    Trajectory writers serialize frames to various file formats, one frame
    at a time.

    Example:
        with LAMMPSWriter("trajectory.lammpstrj") as writer:
            for frame in frames:
                writer.write(frame)
    """

    def __init__(self, filename: str | Path, mode: str = "w") -> None:
        """
        Initialize trajectory writer.

        Args:
            filename: Output file path.
            mode: "w" to overwrite an existing file, "a" to append to it.
        """
        if mode not in ("w", "a"):
            raise ValueError(f"Writing mode must be 'w' or 'a', got '{mode}'")
        self.filename = Path(filename)
        self.mode = mode
        self._file: TextIO | None = None
        self._n_frames = 0

    @abstractmethod
    def write(self, frame: Frame, **kwargs) -> None:
        """
        Write a single frame.

        Args:
            frame: Frame to write.
            **kwargs: Format-specific options.
        """
        ...

    def open(self) -> None:
        """Open file for writing."""
        try:
            self._file = self.filename.open(self.mode)
        except OSError as e:
            raise FileError(f"could not open the file at '{self.filename}': {e}") from e

    def close(self) -> None:
        """Close file."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> TrajectoryWriter:
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    @property
    def n_frames(self) -> int:
        """Number of frames written."""
        return self._n_frames


class TrajectoryReader(ABC):
    """
    Abstract base class for trajectory readers.

    Readers work on a file or on an in-memory buffer, both accessed as a
    seekable binary stream. They support random access and iteration.

    Example:
        with LAMMPSReader("trajectory.lammpstrj") as reader:
            for frame in reader:
                analyze(frame)
    """

    def __init__(self, filename: str | Path | None = None, data: bytes | None = None) -> None:
        """
        Initialize trajectory reader.

        Args:
            filename: Input file path.
            data: File content, used instead of a file when given.
        """
        if (filename is None) == (data is None):
            raise ValueError("Exactly one of filename or data must be given")
        self.filename = Path(filename) if filename is not None else None
        self._data = data
        self._file: BinaryIO | None = None

    @classmethod
    def from_buffer(cls, data: bytes | str, **kwargs) -> TrajectoryReader:
        """Create a reader for in-memory content."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls(data=bytes(data), **kwargs)

    @abstractmethod
    def read_frame(self, index: int) -> Frame:
        """
        Read a specific frame.

        Args:
            index: Frame index (0-based).

        Returns:
            The frame at this index.
        """
        ...

    @abstractmethod
    def read(self) -> Frame:
        """Read the next frame."""
        ...

    @abstractmethod
    def __len__(self) -> int:
        """Return number of frames."""
        ...

    def __iter__(self) -> Iterator[Frame]:
        """Iterate over all frames."""
        for i in range(len(self)):
            yield self.read_frame(i)

    def __getitem__(self, index: int) -> Frame:
        """Get frame by index."""
        return self.read_frame(index)

    def open(self) -> None:
        """Open the underlying byte source."""
        if self._data is not None:
            self._file = io.BytesIO(self._data)
            return
        try:
            self._file = self.filename.open("rb")
        except OSError as e:
            raise FileError(f"could not open the file at '{self.filename}': {e}") from e

    def close(self) -> None:
        """Close the underlying byte source."""
        if self._file is not None:
            self._file.close()
            self._file = None

    @property
    def closed(self) -> bool:
        return self._file is None

    def _require_open(self) -> BinaryIO:
        if self._file is None:
            raise FileError("File not open. Use context manager or call open().")
        return self._file

    def __enter__(self) -> TrajectoryReader:
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    @property
    def n_frames(self) -> int:
        """Number of frames in trajectory."""
        return len(self)
