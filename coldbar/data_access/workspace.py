"""
Scoped temporary workspace for a single extraction run.

A :class:`Workspace` owns one freshly created directory for the lifetime of a
``with`` block. Extracted archive members, downloaded remote inputs and any
intermediate files live there, and the directory is removed when the block
exits, whether it exits normally, through an exception, or through
``KeyboardInterrupt``/``SystemExit``.

Examples
--------
>>> from coldbar.data_access.workspace import Workspace
>>>
>>> with Workspace() as ws:
...     target = ws.path / "grid.nc"
...     # work with files under ws.path
>>> ws.path.exists()
False
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from structlog import get_logger

log = get_logger()

DATA_DIR_ENV = "COLDBAR_DATA_DIR"


def _log_cleanup_failure(function, path, exc) -> None:
    log.warning(
        "workspace.cleanup_failed",
        path=str(path),
        operation=getattr(function, "__name__", str(function)),
        error=str(exc),
    )


class Workspace:
    """
    Temporary directory with guaranteed removal.

    Parameters
    ----------
    base_dir : str or Path, optional
        Parent directory for the workspace. Defaults to ``$COLDBAR_DATA_DIR``
        when set, otherwise the system temporary directory.
    prefix : str, default "tmp."
        Prefix of the created directory name.

    Attributes
    ----------
    path : Path or None
        Location of the workspace while it is active, ``None`` otherwise.
    """

    def __init__(
        self, base_dir: str | Path | None = None, prefix: str = "tmp."
    ) -> None:
        if base_dir is None:
            base_dir = os.environ.get(DATA_DIR_ENV) or None
        self.base_dir = Path(base_dir) if base_dir is not None else None
        self.prefix = prefix
        self.path: Path | None = None

    def __enter__(self) -> Workspace:
        if self.path is not None:
            raise RuntimeError("Workspace is already active")
        if self.base_dir is not None:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        self.path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.base_dir))
        log.debug("workspace.created", path=str(self.path))
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """
        Remove the workspace directory and everything in it.

        Entries that cannot be removed are logged and skipped so that the
        error which ended the run is not masked by a cleanup failure.
        """
        if self.path is None:
            return
        shutil.rmtree(self.path, onexc=_log_cleanup_failure)
        log.debug("workspace.removed", path=str(self.path))
        self.path = None

    def subdir(self, name: str) -> Path:
        """Create (if needed) and return a named directory inside the workspace."""
        if self.path is None:
            raise RuntimeError("Workspace is not active")
        target = self.path / name
        target.mkdir(parents=True, exist_ok=True)
        return target
