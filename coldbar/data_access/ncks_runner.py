"""
Thin wrapper around the NCO ``ncks`` executable.

Coldbar never decodes the binary NetCDF format itself. Everything it knows
about a dataset comes from two textual projections produced by ``ncks`` in
traditional (``--trd``) print mode:

- the metadata report, ``ncks --trd -m [-v VAR] FILE``, one declaration per
  line (variables, dimensions, attributes);
- the record dump, ``ncks --trd -H -C -v VAR FILE``, one line per scalar
  observation such as ``time[0]=0 lat[0]=30 lon[0]=-120 tmin[0]=-5.2``.

:class:`NcksRunner` isolates the rest of the package from how the tool is
invoked. Tests substitute any object with the same two methods.
"""

from __future__ import annotations

import os
import subprocess
import tempfile
from collections.abc import Iterator
from pathlib import Path

from structlog import get_logger

from .errors import ToolError

log = get_logger()

NCKS_ENV = "COLDBAR_NCKS"


class NcksRunner:
    """
    Run ``ncks`` and hand back its text output.

    Parameters
    ----------
    executable : str, optional
        Name or path of the ``ncks`` binary. Defaults to ``$COLDBAR_NCKS``
        when set, otherwise ``ncks`` from ``PATH``.

    Notes
    -----
    Calls block until the tool finishes and are never retried. A missing
    executable or a non-zero exit status raises :class:`ToolError`.
    """

    def __init__(self, executable: str | None = None) -> None:
        self.executable = executable or os.environ.get(NCKS_ENV) or "ncks"

    def metadata(self, path: str | Path, variable: str | None = None) -> str:
        """
        Return the traditional metadata report of a dataset.

        Parameters
        ----------
        path : str or Path
            Dataset file.
        variable : str, optional
            Restrict the report to one variable.

        Returns
        -------
        str
            Raw ``ncks --trd -m`` output.
        """
        command = [self.executable, "--trd", "-m"]
        if variable is not None:
            command += ["-v", variable]
        command.append(str(path))

        log.debug("ncks.metadata", path=str(path), variable=variable)
        try:
            result = subprocess.run(command, check=True, text=True, capture_output=True)
        except FileNotFoundError as e:
            raise ToolError(f"ncks executable not found: {self.executable}") from e
        except subprocess.CalledProcessError as e:
            raise ToolError(
                f"Command failed ({e.returncode}): {' '.join(command)}: "
                f"{(e.stderr or '').strip()}"
            ) from e
        return result.stdout

    def iter_records(self, path: str | Path, variable: str) -> Iterator[str]:
        """
        Stream the record dump of one variable, line by line.

        The child process is read incrementally so that dumps of millions of
        observations never sit in memory at once. Lines keep their trailing
        newline stripped; blank lines are passed through untouched.

        Parameters
        ----------
        path : str or Path
            Dataset file.
        variable : str
            True (case-preserved) variable name.

        Yields
        ------
        str
            One line of ``ncks --trd -H -C -v VAR`` output.
        """
        command = [self.executable, "--trd", "-H", "-C", "-v", variable, str(path)]
        log.debug("ncks.records", path=str(path), variable=variable)

        with tempfile.TemporaryFile(mode="w+") as stderr:
            try:
                proc = subprocess.Popen(
                    command, stdout=subprocess.PIPE, stderr=stderr, text=True
                )
            except FileNotFoundError as e:
                raise ToolError(f"ncks executable not found: {self.executable}") from e

            try:
                for line in proc.stdout:
                    yield line.rstrip("\n")
            finally:
                # Consumer stopped early: close the pipe so ncks exits.
                if proc.poll() is None and proc.stdout is not None:
                    proc.stdout.close()
                returncode = proc.wait()

            if returncode != 0:
                stderr.seek(0)
                raise ToolError(
                    f"Command failed ({returncode}): {' '.join(command)}: "
                    f"{stderr.read().strip()}"
                )
