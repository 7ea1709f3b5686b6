"""
Metadata introspection over the textual ``ncks --trd -m`` report.

The traditional metadata report prints one declaration per line. For a
minimum-temperature variable it looks like::

    tmin: type NC_FLOAT, 3 dimensions, 2 attributes, compressed? no, ...
    tmin size (RAM) = 365*100*120*sizeof(NC_FLOAT) = 4380000*4 = 17520000 bytes
    tmin dimension 0: time, size = 365 NC_DOUBLE (Coordinate is time)
    tmin dimension 1: lat, size = 100 NC_FLOAT (Coordinate is lat)
    tmin dimension 2: lon, size = 120 NC_FLOAT (Coordinate is lon)
    tmin attribute 0: long_name, size = 25 NC_CHAR, value = Minimum daily temperature
    tmin attribute 1: missing_value, size = 1 NC_FLOAT, value = -9999

:class:`MetadataProbe` fetches that text; :class:`MetadataDump` answers the
handful of questions configuration inference needs with single-pass,
first-match line rules. No parse tree is built.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from .ncks_runner import NcksRunner

_DECLARATION = re.compile(r"^(?P<name>[^\s:]+): type\b", re.IGNORECASE)
_DIMENSION_COUNT = re.compile(r"\b(?P<count>\d+) dimensions?\b")
_DAYS_SINCE = " days since "


class MetadataDump:
    """
    Query helper over one metadata report.

    Parameters
    ----------
    text : str
        Raw ``ncks --trd -m`` output, whole-file or restricted to a variable.

    Examples
    --------
    >>> dump = MetadataDump(text)
    >>> dump.variables()["tmin"]
    'Tmin'
    >>> dump.dimensions("Tmin")
    [(0, 'time'), (1, 'lat'), (2, 'lon')]
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.lines = text.splitlines()
        self._variables: dict[str, str] | None = None

    def variables(self) -> dict[str, str]:
        """
        Map case-folded variable names to their true names.

        Built once per dump, in declaration order. When two variables differ
        only in case, the first declared one is kept.
        """
        if self._variables is None:
            variables: dict[str, str] = {}
            for line in self.lines:
                match = _DECLARATION.match(line)
                if match:
                    variables.setdefault(match["name"].casefold(), match["name"])
            self._variables = variables
        return self._variables

    def find_variable(self, hint: str) -> str | None:
        """Return the true name of the first variable whose name starts with ``hint``."""
        key = hint.casefold()
        for folded, name in self.variables().items():
            if folded.startswith(key):
                return name
        return None

    def declaration(self, name: str) -> str | None:
        """Return the ``<name>: type ...`` line of a variable."""
        prefix = f"{name}:"
        for line in self.lines:
            if line.startswith(prefix) and _DECLARATION.match(line):
                return line
        return None

    def dimension_count(self, name: str) -> int | None:
        """Number of dimensions announced by the variable's declaration line."""
        line = self.declaration(name)
        if line is None:
            return None
        match = _DIMENSION_COUNT.search(line)
        return int(match["count"]) if match else None

    def dimensions(self, name: str) -> list[tuple[int, str]]:
        """
        Ordered ``(ordinal, dimension name)`` pairs of a variable.

        Parsed from ``<name> dimension <k>: <dim>, size = ...`` lines.
        """
        pattern = re.compile(rf"^{re.escape(name)} dimension (\d+): ([^,\s]+)")
        dims = []
        for line in self.lines:
            match = pattern.match(line)
            if match:
                dims.append((int(match.group(1)), match.group(2)))
        return dims

    def attribute_value(self, name: str, attribute: str) -> str | None:
        """
        Last whitespace-delimited token of a variable's attribute line.

        Returns ``None`` when the variable has no such attribute.
        """
        pattern = re.compile(
            rf"^{re.escape(name)} attribute \d+: {re.escape(attribute)}\b"
        )
        for line in self.lines:
            if pattern.match(line):
                tokens = line.split()
                return tokens[-1] if tokens else None
        return None

    def time_origin(self) -> str | None:
        """Text following the first ``days since`` time-units declaration."""
        for line in self.lines:
            if _DAYS_SINCE in line:
                return line.split(_DAYS_SINCE, 1)[1].strip()
        return None

    def dimension_size(self, name: str) -> int | None:
        """
        Declared size of a dimension, matched case-insensitively.

        Reads the first line of the form ``<name> dimension <k>: <dim>, size =
        <n> ...``, which is how the coordinate variable of the same name lists
        its own dimension.
        """
        pattern = re.compile(
            rf"^{re.escape(name)} dimension \d+: [^,]+, size = (\d+)", re.IGNORECASE
        )
        for line in self.lines:
            match = pattern.match(line)
            if match:
                return int(match.group(1))
        return None

    def two_dimensional(self, fragment: str) -> str | None:
        """
        First 2-D variable whose case-folded name contains ``fragment``.

        Rotated-pole grids store longitude and latitude as 2-D variables over
        the grid axes; this finds them by name fragment (``"lon"``, ``"lat"``).
        """
        fragment = fragment.casefold()
        for line in self.lines:
            match = _DECLARATION.match(line)
            if not match or fragment not in match["name"].casefold():
                continue
            count = _DIMENSION_COUNT.search(line)
            if count and int(count["count"]) == 2:
                return match["name"]
        return None


class MetadataProbe:
    """
    Fetch metadata reports for a dataset file.

    Parameters
    ----------
    runner : NcksRunner, optional
        Object providing ``metadata(path, variable=None)``. Defaults to a
        :class:`NcksRunner` using the ``ncks`` found on ``PATH``.
    """

    def __init__(self, runner: Any | None = None) -> None:
        self.runner = runner or NcksRunner()

    def dump(self, path: str | Path, variable: str | None = None) -> str:
        """
        Return the raw metadata report, optionally for one variable only.

        No parsing is performed and the dataset is never modified.
        """
        return self.runner.metadata(path, variable)

    def probe(self, path: str | Path, variable: str | None = None) -> MetadataDump:
        """Return the metadata report wrapped in a :class:`MetadataDump`."""
        return MetadataDump(self.dump(path, variable))
