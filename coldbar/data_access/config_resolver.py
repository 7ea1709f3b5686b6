"""
Configuration inference from dataset metadata.

:class:`ConfigResolver` turns a dataset and a loose, case-insensitive
variable-name hint into a complete :class:`~coldbar.data_access.config.Config`:

1. resolve the hint against the case-folded variable map of the whole-file
   report (prefix match, first declared variable wins);
2. re-probe the report restricted to that variable and read its ordered
   dimension list;
3. pick the first dimension containing ``time``, ``lon`` and ``lat``;
4. read the variable's ``missing_value`` attribute, if any;
5. read the ``days since`` origin from the whole-file report;
6. read the size of the ``time`` dimension.

Rotated-pole grids additionally get the names of their 2-D longitude and
latitude variables.

Examples
--------
>>> resolver = ConfigResolver()
>>> config = resolver.infer("tmin_2000.nc", "TMIN")
>>> config.var_display_name, config.time_size
('tmin', 365)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from structlog import get_logger

from .config import Config
from .errors import (
    MalformedConfigError,
    TimeDimensionNotFoundError,
    UnsupportedGridError,
    VariableNotFoundError,
)
from .metadata_probe import MetadataDump, MetadataProbe

log = get_logger()


class ConfigResolver:
    """
    Build extraction configurations from files or dataset metadata.

    Parameters
    ----------
    probe : MetadataProbe, optional
        Source of metadata reports. Defaults to a probe backed by ``ncks``.
    """

    def __init__(self, probe: MetadataProbe | None = None) -> None:
        self.probe = probe or MetadataProbe()

    @staticmethod
    def from_file(path: str | Path) -> Config:
        """Read a configuration file; see :meth:`Config.from_file`."""
        return Config.from_file(path)

    def infer(
        self, path: str | Path, variable_hint: str, rotated: bool = False
    ) -> Config:
        """
        Infer the extraction configuration of a dataset.

        Parameters
        ----------
        path : str or Path
            Dataset file.
        variable_hint : str
            Case-insensitive prefix of the temperature variable name.
        rotated : bool, default False
            Also locate the 2-D longitude/latitude variables of a rotated-pole
            grid.

        Returns
        -------
        Config
            The resolved configuration. Calling ``infer`` again with the same
            dataset and any case variant of the hint returns an equal value.

        Raises
        ------
        VariableNotFoundError
            If no declared variable starts with the hint.
        TimeDimensionNotFoundError
            If the dataset declares no ``time`` dimension.
        UnsupportedGridError
            If ``rotated`` is set and no 2-D lon/lat variables exist.
        """
        whole = self.probe.probe(path)

        name = whole.find_variable(variable_hint)
        if name is None:
            raise VariableNotFoundError(
                f"No variable matching '{variable_hint}' in {path}"
            )

        own = self.probe.probe(path, name)
        var_position = own.dimension_count(name)
        if var_position is None:
            raise MalformedConfigError(f"Cannot read dimension count of '{name}'")

        dims = own.dimensions(name)
        time_size = whole.dimension_size("time")
        if time_size is None:
            raise TimeDimensionNotFoundError(f"No time dimension declared in {path}")

        longitude_name = latitude_name = None
        if rotated:
            longitude_name, latitude_name = self._rotated_coordinates(whole, path)

        config = Config(
            varname=name.casefold(),
            var_display_name=name,
            var_position=var_position,
            time_position=_first_dimension(dims, "time"),
            x_position=_first_dimension(dims, "lon"),
            y_position=_first_dimension(dims, "lat"),
            time_origin=whole.time_origin(),
            time_size=time_size,
            missing_value=_missing_value(own, name),
            longitude_name=longitude_name,
            latitude_name=latitude_name,
        )
        log.info(
            "config.inferred",
            path=str(path),
            variable=name,
            dimensions=[d for _, d in dims],
            time_size=time_size,
            rotated=rotated,
        )
        return config

    @staticmethod
    def _rotated_coordinates(dump: MetadataDump, path: Any) -> tuple[str, str]:
        longitude = dump.two_dimensional("lon")
        latitude = dump.two_dimensional("lat")
        if longitude is None or latitude is None:
            raise UnsupportedGridError(
                f"No 2-D longitude/latitude variables in {path}; "
                "the grid is not rotated-pole"
            )
        return longitude, latitude


def _first_dimension(dims: list[tuple[int, str]], fragment: str) -> int | None:
    for ordinal, name in dims:
        if fragment in name.casefold():
            return ordinal
    return None


def _missing_value(dump: MetadataDump, name: str) -> float | None:
    token = dump.attribute_value(name, "missing_value")
    if token is None:
        return None
    try:
        return float(token)
    except ValueError as e:
        raise MalformedConfigError(
            f"Unreadable missing_value for '{name}': {token!r}"
        ) from e
