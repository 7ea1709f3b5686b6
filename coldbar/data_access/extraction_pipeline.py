"""
End-to-end extraction of a minimum-temperature dataset to a COPY file.

:class:`ExtractionPipeline` sequences the pipeline components inside one
:class:`~coldbar.data_access.workspace.Workspace`:

``resolve``
    :class:`ArchiveResolver` turns the input into a local dataset file.
``configure``
    :class:`ConfigResolver` reads a configuration file or infers the
    configuration from the dataset metadata.
``expand``
    :class:`CoordinateExpander` builds the coordinate stream, only when the
    configuration names rotated-pole coordinate variables.
``extract``
    :class:`RecordExtractor` streams the records into a header-less CSV.

The workspace is removed however the run ends. Errors propagate unchanged;
the innermost failing stage is recorded on the error (``error.stage``) and
logged once.

Examples
--------
Infer the configuration from a tar archive of a rotated-pole dataset:

>>> pipeline = ExtractionPipeline(
...     "eobs_tn_2000.tar", is_archive=True, varname="tn", rotated=True
... )
>>> result = pipeline.run("tn_2000.csv")
>>> result.rows, result.config.time_size
(12345678, 366)

Reuse a saved configuration:

>>> result = ExtractionPipeline("tmin.nc", config_path="tmin.cfg").run("tmin.csv")
"""

from __future__ import annotations

import shutil
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from structlog import get_logger

from .archive_resolver import ArchiveResolver
from .config import Config
from .config_resolver import ConfigResolver
from .coordinate_expander import CoordinateExpander
from .errors import MalformedConfigError
from .metadata_probe import MetadataProbe
from .ncks_runner import NcksRunner
from .record_extractor import RecordExtractor
from .workspace import Workspace

log = get_logger()


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of a successful run."""

    config: Config
    destination: Path
    rows: int


@contextmanager
def stage(name: str):
    """
    Tag errors escaping a pipeline stage with the stage name.

    Any ``Exception`` gets a ``stage`` attribute, not only
    :class:`~coldbar.data_access.errors.ColdbarError`, so I/O and Polars
    failures are reported with their stage as well. Only the innermost stage
    of an unwind reports: an error that already carries a stage is re-raised
    silently by the enclosing frames.
    """
    log.debug("pipeline.stage_started", stage=name)
    try:
        yield
    except Exception as e:
        if getattr(e, "stage", None) is None:
            e.stage = name
            log.error(
                "pipeline.stage_failed",
                stage=name,
                error=str(e),
                error_type=type(e).__name__,
            )
        raise


class ExtractionPipeline:
    """
    Extract one dataset's minimum-temperature records to a CSV file.

    Parameters
    ----------
    source : str or Path
        Dataset file, tar/zip archive, or remote URL of either.
    is_archive : bool, default False
        Read the first dataset member of the ``source`` archive.
    varname : str, optional
        Case-insensitive hint for the temperature variable name. Used when no
        configuration file is given.
    config_path : str or Path, optional
        Key/value configuration file; takes precedence over ``varname``.
    rotated : bool, default False
        Locate 2-D longitude/latitude variables during inference and emit
        geographic coordinates instead of grid positions.
    storage_options : dict, optional
        fsspec options for remote sources.
    chunk_size : int, default 10000
        Records per processing chunk.
    workdir : str or Path, optional
        Parent directory of the run's workspace.
    runner : NcksRunner, optional
        Dump tool shared by every stage.
    """

    def __init__(
        self,
        source: str | Path,
        is_archive: bool = False,
        varname: str | None = None,
        config_path: str | Path | None = None,
        rotated: bool = False,
        storage_options: dict[str, Any] | None = None,
        chunk_size: int = 10000,
        workdir: str | Path | None = None,
        runner: Any | None = None,
    ) -> None:
        self.source = source
        self.is_archive = is_archive
        self.varname = varname
        self.config_path = config_path
        self.rotated = rotated
        self.storage_options = storage_options
        self.workdir = workdir

        runner = runner or NcksRunner()
        self.probe = MetadataProbe(runner)
        self.config_resolver = ConfigResolver(self.probe)
        self.expander = CoordinateExpander(runner)
        self.extractor = RecordExtractor(runner, chunk_size=chunk_size)

    def run(self, destination: str | Path) -> ExtractionResult:
        """
        Run every stage and write the table to ``destination``.

        The file is assembled inside the workspace and moved into place only
        after extraction succeeds.

        Returns
        -------
        ExtractionResult
            Resolved configuration, output path and row count.
        """
        if self.config_path is None and not self.varname:
            raise MalformedConfigError(
                "Provide a configuration file or a temperature variable name"
            )
        destination = Path(destination)

        with Workspace(self.workdir) as ws:
            with stage("resolve"):
                dataset = self._resolver(ws).resolve(self.source, self.is_archive)

            with stage("configure"):
                config = self.configure(dataset)

            stream = None
            if config.is_rotated:
                with stage("expand"):
                    stream = self.expander.expand(dataset, config)

            with stage("extract"):
                staging = ws.path / f"{Path(dataset).stem}.csv"
                rows = self.extractor.write_csv(dataset, config, staging, stream)
                shutil.move(str(staging), destination)

        log.info(
            "pipeline.finished",
            source=str(self.source),
            destination=str(destination),
            variable=config.var_display_name,
            rows=rows,
        )
        return ExtractionResult(config=config, destination=destination, rows=rows)

    def configure(self, dataset: str | Path) -> Config:
        """Configuration for ``dataset``, from the file if given, else inferred."""
        if self.config_path is not None:
            return self.config_resolver.from_file(self.config_path)
        return self.config_resolver.infer(dataset, self.varname, rotated=self.rotated)

    def resolve_config(self) -> Config:
        """Resolve the input and return its configuration without extracting."""
        with Workspace(self.workdir) as ws:
            with stage("resolve"):
                dataset = self._resolver(ws).resolve(self.source, self.is_archive)
            with stage("configure"):
                return self.configure(dataset)

    def explain(self) -> str:
        """Whole-file metadata report of the (possibly archived) dataset."""
        with Workspace(self.workdir) as ws:
            with stage("resolve"):
                dataset = self._resolver(ws).resolve(self.source, self.is_archive)
            with stage("probe"):
                return self.probe.dump(dataset)

    def _resolver(self, ws: Workspace) -> ArchiveResolver:
        return ArchiveResolver(ws, storage_options=self.storage_options)
