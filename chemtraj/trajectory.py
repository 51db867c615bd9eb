"""High level trajectory handle."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from .config import ReaderOptions
from .errors import FileError
from .io.base import TrajectoryReader, TrajectoryWriter
from .io.formats.lammps import LAMMPSReader, LAMMPSWriter
from .system import Frame

logger = logging.getLogger(__name__)

# Format name -> (reader, writer)
FORMATS: dict[str, tuple[type[TrajectoryReader], type[TrajectoryWriter]]] = {
    "LAMMPS": (LAMMPSReader, LAMMPSWriter),
}

EXTENSIONS = {
    ".lammpstrj": "LAMMPS",
    ".lammps": "LAMMPS",
    ".dump": "LAMMPS",
    ".lmp": "LAMMPS",
}


def guess_format(path: str | Path) -> str:
    """Guess a format name from a file extension, defaulting to LAMMPS."""
    return EXTENSIONS.get(Path(path).suffix.lower(), "LAMMPS")


class Trajectory:
    """
    A trajectory file, opened for reading or writing.

    Reading keeps track of the current step, so read() returns consecutive
    steps, while read_step() jumps to any step. Steps are indexed lazily:
    jumping to a step only scans the part of the file not seen yet.

    Example:
        with Trajectory("dump.lammpstrj") as trajectory:
            print(trajectory.nsteps)
            frame = trajectory.read_step(10)
    """

    def __init__(
        self,
        path: str | Path | None = None,
        mode: str = "r",
        format: str | None = None,
        options: ReaderOptions | None = None,
        data: bytes | str | None = None,
        **writer_kwargs,
    ) -> None:
        """
        Open a trajectory.

        Args:
            path: File path. Not used for in-memory trajectories.
            mode: "r" to read, "w" to write a new file, "a" to append.
            format: Format name. Guessed from the extension when None.
            options: Reading options.
            data: In-memory content to read instead of a file.
            **writer_kwargs: Format specific writer options.

        Raises:
            FileError: If the file can not be opened.
        """
        if mode not in ("r", "w", "a"):
            raise ValueError(f"Trajectory mode must be 'r', 'w' or 'a', got '{mode}'")
        if data is not None and mode != "r":
            raise ValueError("In-memory trajectories can only be read")
        if path is None and data is None:
            raise ValueError("A path or in-memory data is required")

        if format is None:
            format = guess_format(path) if path is not None else "LAMMPS"
        format = format.upper()
        if format not in FORMATS:
            raise FileError(f"unknown trajectory format '{format}'")
        reader_class, writer_class = FORMATS[format]

        self.path = Path(path) if path is not None else None
        self.mode = mode
        self.format = format
        self._reader: TrajectoryReader | None = None
        self._writer: TrajectoryWriter | None = None

        if mode == "r":
            if data is not None:
                self._reader = reader_class.from_buffer(data, options=options)
            else:
                self._reader = reader_class(path, options=options)
            self._reader.open()
        else:
            self._writer = writer_class(path, mode=mode, **writer_kwargs)
            self._writer.open()
        logger.debug("opened %s trajectory %s in mode '%s'", format, path or "<memory>", mode)

    @classmethod
    def memory_reader(
        cls, data: bytes | str, format: str = "LAMMPS", options: ReaderOptions | None = None
    ) -> Trajectory:
        """Open in-memory content for reading."""
        return cls(mode="r", format=format, options=options, data=data)

    def _require_reader(self) -> TrajectoryReader:
        if self._reader is None:
            if self._writer is not None:
                raise FileError(f"trajectory opened in mode '{self.mode}' can not be read")
            raise FileError("trajectory is closed")
        return self._reader

    @property
    def nsteps(self) -> int:
        """Number of steps in the trajectory."""
        if self._writer is not None:
            return self._writer.n_frames
        return len(self._require_reader())

    def read(self) -> Frame:
        """Read the next step."""
        return self._require_reader().read()

    def read_step(self, step: int) -> Frame:
        """Read the step with the given ordinal (0-based)."""
        return self._require_reader().read_frame(step)

    def write(self, frame: Frame) -> None:
        """Append a frame to the trajectory."""
        if self._writer is None:
            if self._reader is not None:
                raise FileError("trajectory opened in mode 'r' can not be written")
            raise FileError("trajectory is closed")
        self._writer.write(frame)

    def close(self) -> None:
        """Release the underlying file or buffer."""
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if self._writer is not None:
            self._writer.close()
            self._writer = None

    @property
    def closed(self) -> bool:
        return self._reader is None and self._writer is None

    def __iter__(self) -> Iterator[Frame]:
        """Iterate over all steps, from the first one."""
        reader = self._require_reader()
        for i in range(len(reader)):
            yield reader.read_frame(i)

    def __len__(self) -> int:
        return self.nsteps

    def __enter__(self) -> Trajectory:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def open(
    path_or_buffer: str | Path | bytes,
    mode: str = "r",
    format: str | None = None,
    options: ReaderOptions | None = None,
    **writer_kwargs,
) -> Trajectory:
    """
    Open a trajectory file or in-memory buffer.

    Bytes are treated as in-memory file content, strings and paths as file
    paths.

    Args:
        path_or_buffer: File path, or file content as bytes.
        mode: "r", "w" or "a".
        format: Format name, guessed from the extension when None.
        options: Reading options.

    Returns:
        The opened trajectory.
    """
    if isinstance(path_or_buffer, (bytes, bytearray, memoryview)):
        return Trajectory.memory_reader(
            bytes(path_or_buffer), format=format or "LAMMPS", options=options
        )
    return Trajectory(path_or_buffer, mode=mode, format=format, options=options, **writer_kwargs)
