"""
Record dump to canonical table conversion.

Each line of a record dump encodes one observation as labelled tokens in
declaration order::

    time[3]=3 lat[1]=30.5 lon[2]=-119 tmin[362]=-4.25

Replacing ``=`` with whitespace turns it into alternating label and value
tokens, so the value of the dimension (or variable) at 0-based ordinal ``p``
sits at token index ``2 * p + 1``. The extractor picks the time, x, y and
variable values by ordinal and emits them in the fixed column order
``(time, x, y, value)``. With a coordinate stream the x/y columns are swapped
for geographic coordinates, giving ``(time, lon, lat, value)``.

All values stay text exactly as printed by the dump tool: time is left in
raw origin-relative form and missing-value sentinels pass through untouched.

Processing is chunked: lines are grouped into Polars DataFrames of
``chunk_size`` rows so that dumps of any size stream to the output file
without being held in memory at once.

Examples
--------
>>> extractor = RecordExtractor(chunk_size=5000)
>>> df = extractor.extract("tmin_2000.nc", config)
>>> df.columns
['time', 'x', 'y', 'value']
>>> rows = extractor.write_csv("tmin_2000.nc", config, "tmin_2000.csv")
"""

from __future__ import annotations

import warnings
from collections.abc import Iterator
from contextlib import closing
from pathlib import Path
from typing import Any

import polars as pl
from structlog import get_logger

from .config import Config
from .coordinate_expander import CoordinateStream
from .errors import ExtractionError, MalformedConfigError
from .ncks_runner import NcksRunner

log = get_logger()

COLUMNS = ["time", "x", "y", "value"]
ROTATED_COLUMNS = ["time", "lon", "lat", "value"]


def tokenize(line: str) -> list[str]:
    """Split a record line into alternating label and value tokens."""
    return line.replace("=", " ").split()


def token_index(ordinal: int | None) -> int | None:
    """0-based token index of the value belonging to a pair ordinal."""
    return None if ordinal is None else 2 * ordinal + 1


def select_fields(
    tokens: list[str], indices: list[int | None], line: str = ""
) -> tuple[str | None, ...]:
    """
    Pick the tokens at ``indices``; ``None`` indices yield ``None``.

    Raises
    ------
    ExtractionError
        If the line is too short for one of the indices.
    """
    try:
        return tuple(None if i is None else tokens[i] for i in indices)
    except IndexError as e:
        raise ExtractionError(
            f"Record has {len(tokens)} tokens, cannot select {indices}: {line!r}"
        ) from e


def empty_frame(rotated: bool = False) -> pl.DataFrame:
    """Zero-row frame with the canonical columns."""
    columns = ROTATED_COLUMNS if rotated else COLUMNS
    return pl.DataFrame(schema={name: pl.String for name in columns})


def merge_coordinates(
    frame: pl.DataFrame, stream: CoordinateStream, start_idx: int
) -> pl.DataFrame:
    """
    Replace the x/y columns with coordinates taken from the stream.

    Row ``i`` of ``frame`` is row ``start_idx + i`` of the whole output and
    receives stream entry ``start_idx + i``.
    """
    lon, lat = stream.chunk(start_idx, start_idx + frame.height)
    if len(lon) < frame.height:
        raise ExtractionError(
            f"Coordinate stream has {len(stream)} entries, "
            f"fewer than the records of the dump"
        )
    return frame.with_columns(
        pl.Series("lon", lon).cast(pl.String),
        pl.Series("lat", lat).cast(pl.String),
    ).select(ROTATED_COLUMNS)


class RecordExtractor:
    """
    Convert a variable's record dump into the canonical tabular layout.

    Parameters
    ----------
    runner : NcksRunner, optional
        Object providing ``iter_records(path, variable)``.
    chunk_size : int, default 10000
        Number of records per DataFrame chunk.
    """

    def __init__(self, runner: Any | None = None, chunk_size: int = 10000) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.runner = runner or NcksRunner()
        self.chunk_size = chunk_size

    def iter_chunks(
        self,
        path: str | Path,
        config: Config,
        coordinate_stream: CoordinateStream | None = None,
    ) -> Iterator[pl.DataFrame]:
        """
        Yield the output table in chunks of at most ``chunk_size`` rows.

        Rows keep the order of the record dump. Blank dump lines are skipped.

        Raises
        ------
        MalformedConfigError
            If ``x_position`` or ``y_position`` is not set, or a coordinate
            stream is given without ``time_position``.
        ExtractionError
            If a record is too short for the configured positions, or the
            coordinate stream runs out before the records do.
        """
        indices = self._token_indices(config, coordinate_stream is not None)
        schema = [(name, pl.String) for name in COLUMNS]

        rows: list[tuple[str | None, ...]] = []
        start_idx = 0
        records = self.runner.iter_records(path, config.var_display_name)
        with closing(records):
            for line in records:
                tokens = tokenize(line)
                if not tokens:
                    continue
                rows.append(select_fields(tokens, indices, line))
                if len(rows) >= self.chunk_size:
                    yield self._finish_chunk(rows, schema, start_idx, coordinate_stream)
                    start_idx += len(rows)
                    rows = []

        if rows:
            yield self._finish_chunk(rows, schema, start_idx, coordinate_stream)
            start_idx += len(rows)

        if coordinate_stream is not None and len(coordinate_stream) > start_idx:
            warnings.warn(
                f"Coordinate stream has {len(coordinate_stream)} entries but the "
                f"dump of '{config.var_display_name}' has {start_idx} records",
                stacklevel=2,
            )

    def extract(
        self,
        path: str | Path,
        config: Config,
        coordinate_stream: CoordinateStream | None = None,
    ) -> pl.DataFrame:
        """
        Read the whole table into one DataFrame.

        Returns
        -------
        pl.DataFrame
            Columns ``time, x, y, value`` (or ``time, lon, lat, value`` with a
            coordinate stream), one row per observation, all ``String``. A dump
            without records gives an empty frame, not an error.
        """
        chunks = list(self.iter_chunks(path, config, coordinate_stream))
        if not chunks:
            return empty_frame(rotated=coordinate_stream is not None)
        return pl.concat(chunks)

    def write_csv(
        self,
        path: str | Path,
        config: Config,
        destination: str | Path,
        coordinate_stream: CoordinateStream | None = None,
    ) -> int:
        """
        Stream the table to a header-less comma-separated file.

        Returns
        -------
        int
            Number of rows written.
        """
        written = 0
        with open(destination, "wb") as f:
            for chunk in self.iter_chunks(path, config, coordinate_stream):
                chunk.write_csv(f, include_header=False)
                written += chunk.height
        log.info("records.written", destination=str(destination), rows=written)
        return written

    @staticmethod
    def _token_indices(config: Config, with_coordinates: bool = False) -> list[int | None]:
        required = ("x_position", "y_position")
        if with_coordinates:
            # Coordinates are matched to records per time step
            required = ("time_position",) + required
        missing = [name for name in required if getattr(config, name) is None]
        if missing:
            raise MalformedConfigError(
                f"Extraction needs {', '.join(missing)} for '{config.var_display_name}'"
            )
        return [
            token_index(config.time_position),
            token_index(config.x_position),
            token_index(config.y_position),
            token_index(config.var_position),
        ]

    @staticmethod
    def _finish_chunk(
        rows: list[tuple[str | None, ...]],
        schema: list[tuple[str, Any]],
        start_idx: int,
        coordinate_stream: CoordinateStream | None,
    ) -> pl.DataFrame:
        frame = pl.DataFrame(rows, schema=schema, orient="row")
        if coordinate_stream is not None:
            frame = merge_coordinates(frame, coordinate_stream, start_idx)
        return frame
