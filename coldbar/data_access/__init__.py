"""
Data Access Module for Coldbar.

This module turns gridded NetCDF minimum-temperature datasets into flat,
header-less CSV tables ready for PostgreSQL ``COPY``. It reads datasets only
through the textual reports of the NCO ``ncks`` tool.

The module is organized into several components:

Core Components
---------------
ExtractionPipeline : End-to-end extraction
    Resolves the input, configures, expands coordinates and writes the table
    inside a temporary workspace

ConfigResolver : Configuration inference
    Builds a Config from a key/value file or from dataset metadata

Processing Components
---------------------
ArchiveResolver : Input resolution
    Plain files, tar/zip archives and remote URLs

MetadataProbe : Metadata reports
    Fetches ``ncks --trd -m`` output and answers inference queries

CoordinateExpander : Rotated-pole coordinates
    Replicates 2-D lon/lat grids once per time step

RecordExtractor : Record dump to table
    Reorders dump tokens into ``(time, x, y, value)`` rows

Convenience Functions
---------------------
build_copy_file : One-shot extraction to CSV
infer_config : Configuration inference without extraction
explain_dataset : Metadata report of a dataset or archive

Examples
--------
>>> from coldbar.data_access import build_copy_file, infer_config
>>>
>>> config = infer_config("tmin_2000.nc", "TMIN")
>>> print(config.to_text())
>>>
>>> result = build_copy_file("tmin_2000.nc", "tmin_2000.csv", varname="tmin")

Notes
-----
Every component accepts a ``runner`` (or ``probe``) so the ``ncks``
executable can be replaced, e.g. by canned output in tests.
"""

from .archive_resolver import ArchiveResolver
from .config import Config
from .config_resolver import ConfigResolver
from .coordinate_expander import CoordinateExpander, CoordinateStream
from .errors import (
    ColdbarError,
    ExtractionError,
    MalformedConfigError,
    NoDatasetInArchiveError,
    NotFoundError,
    TimeDimensionNotFoundError,
    ToolError,
    UnsupportedGridError,
    VariableNotFoundError,
)
from .extraction_pipeline import ExtractionPipeline, ExtractionResult
from .metadata_probe import MetadataDump, MetadataProbe
from .ncks_runner import NcksRunner
from .record_extractor import RecordExtractor
from .scanner import build_copy_file, explain_dataset, infer_config
from .workspace import Workspace

__all__ = [
    # Main public API
    "build_copy_file",
    "infer_config",
    "explain_dataset",
    "ExtractionPipeline",
    "ExtractionResult",
    "Config",
    # Pipeline components for custom workflows
    "ArchiveResolver",
    "ConfigResolver",
    "CoordinateExpander",
    "CoordinateStream",
    "MetadataDump",
    "MetadataProbe",
    "NcksRunner",
    "RecordExtractor",
    "Workspace",
    # Errors
    "ColdbarError",
    "ExtractionError",
    "MalformedConfigError",
    "NoDatasetInArchiveError",
    "NotFoundError",
    "TimeDimensionNotFoundError",
    "ToolError",
    "UnsupportedGridError",
    "VariableNotFoundError",
]
