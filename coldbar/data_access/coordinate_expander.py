"""
Coordinate stream expansion for rotated-pole grids.

On a rotated-pole grid the record dump only carries grid indices for the x
and y axes; the geographic longitude and latitude of each cell live in two
separate 2-D variables. This module reads those variables once and expands
them into a coordinate stream with one (longitude, latitude) pair per record
of the temperature dump.

The record dump enumerates ``(time, y, x)`` with the last dimension varying
fastest, so the per-cell list (row-major, ``y`` then ``x``) simply repeats
once per time step. Item ``k`` of the stream is therefore cell ``k mod C``
where ``C`` is the number of grid cells. The stream never needs to be
materialized in full: :meth:`CoordinateStream.chunk` computes any flat index
range directly with the same modular indexing.

Examples
--------
>>> expander = CoordinateExpander()
>>> stream = expander.expand("grid.nc", config)
>>> len(stream) == stream.cells * config.time_size
True
>>> lon, lat = stream.chunk(0, 1000)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import closing
from pathlib import Path
from typing import Any

import numpy as np
from structlog import get_logger

from .config import Config
from .errors import MalformedConfigError, UnsupportedGridError
from .ncks_runner import NcksRunner

log = get_logger()


class CoordinateStream:
    """
    Longitude/latitude pairs replicated once per time step.

    Parameters
    ----------
    longitude : array_like
        Per-cell longitude values, row-major.
    latitude : array_like
        Per-cell latitude values, same length as ``longitude``.
    time_size : int
        Number of time steps the cell list is repeated for.

    Notes
    -----
    Values are kept as the text tokens printed by the dump tool so that they
    reach the output file unchanged.
    """

    def __init__(self, longitude: Any, latitude: Any, time_size: int) -> None:
        self.longitude = np.asarray(longitude)
        self.latitude = np.asarray(latitude)
        if self.longitude.shape != self.latitude.shape:
            raise UnsupportedGridError(
                f"Longitude and latitude sizes differ: "
                f"{self.longitude.size} != {self.latitude.size}"
            )
        self.time_size = time_size

    @property
    def cells(self) -> int:
        """Number of grid cells."""
        return int(self.longitude.size)

    def __len__(self) -> int:
        return self.cells * self.time_size

    def __getitem__(self, index: int) -> tuple[Any, Any]:
        if index < 0:
            index += len(self)
        if not 0 <= index < len(self):
            raise IndexError(f"Coordinate stream index out of range: {index}")
        cell = index % self.cells
        return self.longitude[cell].item(), self.latitude[cell].item()

    def __iter__(self) -> Iterator[tuple[Any, Any]]:
        for _ in range(self.time_size):
            for lon, lat in zip(self.longitude.tolist(), self.latitude.tolist()):
                yield lon, lat

    def expand(self) -> tuple[np.ndarray, np.ndarray]:
        """Full longitude and latitude columns, ``cells * time_size`` long."""
        return (
            np.tile(self.longitude, self.time_size),
            np.tile(self.latitude, self.time_size),
        )

    def chunk(self, start_idx: int, end_idx: int) -> tuple[np.ndarray, np.ndarray]:
        """
        Longitude and latitude for the flat index range ``[start_idx, end_idx)``.

        The range is clipped to the stream length, so a chunk past the end is
        shorter than requested (possibly empty).
        """
        end_idx = min(end_idx, len(self))
        if self.cells == 0 or start_idx >= end_idx:
            empty = self.longitude[:0]
            return empty, empty.copy()
        cell_indices = np.arange(start_idx, end_idx) % self.cells
        return self.longitude[cell_indices], self.latitude[cell_indices]


class CoordinateExpander:
    """
    Read 2-D coordinate variables and build a :class:`CoordinateStream`.

    Parameters
    ----------
    runner : NcksRunner, optional
        Object providing ``iter_records(path, variable)``.
    """

    def __init__(self, runner: Any | None = None) -> None:
        self.runner = runner or NcksRunner()

    def expand(self, path: str | Path, config: Config) -> CoordinateStream:
        """
        Build the coordinate stream for a rotated-pole dataset.

        Parameters
        ----------
        path : str or Path
            Dataset file.
        config : Config
            Must name both coordinate variables and carry ``time_size``.

        Returns
        -------
        CoordinateStream
            ``cells * time_size`` pairs, cell list repeated in time-step order.

        Raises
        ------
        UnsupportedGridError
            If the configuration names no coordinate variables, or the two
            variables have different sizes.
        MalformedConfigError
            If ``time_size`` is not set.
        """
        if not config.longitude_name or not config.latitude_name:
            raise UnsupportedGridError(
                "Coordinate expansion needs longitude and latitude variable names"
            )
        if config.time_size is None:
            raise MalformedConfigError("Coordinate expansion needs time_size")

        longitude = self.read_values(path, config.longitude_name)
        latitude = self.read_values(path, config.latitude_name)
        stream = CoordinateStream(longitude, latitude, config.time_size)

        log.info(
            "coordinates.expanded",
            longitude=config.longitude_name,
            latitude=config.latitude_name,
            cells=stream.cells,
            time_size=config.time_size,
        )
        return stream

    def read_values(self, path: str | Path, variable: str) -> list[str]:
        """Value token (last on each line) of every record of a variable."""
        values = []
        with closing(self.runner.iter_records(path, variable)) as records:
            for line in records:
                tokens = line.replace("=", " ").split()
                if tokens:
                    values.append(tokens[-1])
        return values
