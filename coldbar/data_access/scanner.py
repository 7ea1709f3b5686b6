"""
Convenience functions for one-shot extraction and inspection.

These wrap :class:`~coldbar.data_access.extraction_pipeline.ExtractionPipeline`
for the common cases, the same way the CLI uses it.

Examples
--------
>>> from coldbar import build_copy_file, explain_dataset
>>>
>>> print(explain_dataset("tmin_2000.nc"))
>>> result = build_copy_file("tmin_2000.nc", "tmin_2000.csv", varname="tmin")
>>> result.rows
4380000
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .config import Config
from .extraction_pipeline import ExtractionPipeline, ExtractionResult


def build_copy_file(
    source: str | Path,
    destination: str | Path,
    varname: str | None = None,
    config_path: str | Path | None = None,
    is_archive: bool = False,
    rotated: bool = False,
    storage_options: dict[str, Any] | None = None,
    chunk_size: int = 10000,
    workdir: str | Path | None = None,
) -> ExtractionResult:
    """
    Write a dataset's minimum-temperature records to a PostgreSQL COPY file.

    Parameters
    ----------
    source : str or Path
        Dataset file, tar/zip archive, or remote URL of either.
    destination : str or Path
        Output CSV path (no header row).
    varname : str, optional
        Case-insensitive hint for the temperature variable. Ignored when
        ``config_path`` is given.
    config_path : str or Path, optional
        Key/value configuration file.
    is_archive : bool, default False
        Read the first ``*.nc`` member of the archive at ``source``.
    rotated : bool, default False
        Emit geographic coordinates from 2-D lon/lat variables.
    storage_options : dict, optional
        fsspec options for remote sources.
    chunk_size : int, default 10000
        Records per processing chunk.
    workdir : str or Path, optional
        Parent directory for the temporary workspace.

    Returns
    -------
    ExtractionResult
        The resolved configuration, output path and number of rows.
    """
    pipeline = ExtractionPipeline(
        source,
        is_archive=is_archive,
        varname=varname,
        config_path=config_path,
        rotated=rotated,
        storage_options=storage_options,
        chunk_size=chunk_size,
        workdir=workdir,
    )
    return pipeline.run(destination)


def infer_config(
    source: str | Path,
    varname: str,
    is_archive: bool = False,
    rotated: bool = False,
    storage_options: dict[str, Any] | None = None,
    workdir: str | Path | None = None,
) -> Config:
    """Infer the extraction configuration of a dataset without extracting."""
    pipeline = ExtractionPipeline(
        source,
        is_archive=is_archive,
        varname=varname,
        rotated=rotated,
        storage_options=storage_options,
        workdir=workdir,
    )
    return pipeline.resolve_config()


def explain_dataset(
    source: str | Path,
    is_archive: bool = False,
    storage_options: dict[str, Any] | None = None,
    workdir: str | Path | None = None,
) -> str:
    """Return the metadata report of a dataset (or an archive's first dataset)."""
    pipeline = ExtractionPipeline(
        source,
        is_archive=is_archive,
        storage_options=storage_options,
        workdir=workdir,
    )
    return pipeline.explain()
