"""
Extraction configuration record and its key/value file format.

A :class:`Config` tells the record extractor where the interesting tokens sit
inside each line of a record dump, and tells the coordinate expander which
2-D coordinate variables to read. It is built once per run, either inferred
from dataset metadata (see :mod:`coldbar.data_access.config_resolver`) or read
from a configuration file, and is never mutated afterwards.

Configuration file format
-------------------------
One ``key value`` pair per line, separated by whitespace. Blank lines and
lines starting with ``#`` are ignored. The value is the rest of the line::

    varname Tmin
    varpos 3
    tpos 0
    ypos 1
    xpos 2
    t1 1950-01-01
    tsize 365
    missing -9999

Field names (``var_position``, ``time_size``, ...) are accepted as keys too.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from .errors import MalformedConfigError, NotFoundError

# File key -> Config field
FILE_KEYS = {
    "varname": "var_display_name",
    "varpos": "var_position",
    "tpos": "time_position",
    "xpos": "x_position",
    "ypos": "y_position",
    "t1": "time_origin",
    "tsize": "time_size",
    "missing": "missing_value",
    "longitude": "longitude_name",
    "latitude": "latitude_name",
}

REQUIRED_KEYS = ("varname", "varpos", "xpos", "ypos")

_INT_FIELDS = {"var_position", "time_position", "x_position", "y_position", "time_size"}
_FLOAT_FIELDS = {"missing_value"}


@dataclass(frozen=True)
class Config:
    """
    Immutable extraction configuration.

    Attributes
    ----------
    varname : str
        Canonical lookup key, the case-folded true variable name.
    var_display_name : str
        Variable name exactly as declared in the dataset.
    var_position : int
        Ordinal of the variable's label/value pair in a record line. It comes
        after every dimension pair, so it equals the dimension count.
    time_position, x_position, y_position : int or None
        0-based ordinals of the time, longitude and latitude dimensions.
    time_origin : str or None
        Calendar origin of the time axis, e.g. ``"2000-01-01"``.
    time_size : int or None
        Number of time steps.
    missing_value : float or None
        Sentinel marking absent observations.
    longitude_name, latitude_name : str or None
        2-D coordinate variables of a rotated-pole grid.
    """

    varname: str
    var_display_name: str
    var_position: int
    time_position: int | None = None
    x_position: int | None = None
    y_position: int | None = None
    time_origin: str | None = None
    time_size: int | None = None
    missing_value: float | None = None
    longitude_name: str | None = None
    latitude_name: str | None = None

    def __post_init__(self) -> None:
        positions = {
            "var_position": self.var_position,
            "time_position": self.time_position,
            "x_position": self.x_position,
            "y_position": self.y_position,
        }
        present = {k: v for k, v in positions.items() if v is not None}
        for key, value in present.items():
            if value < 0:
                raise MalformedConfigError(f"{key} must be non-negative, got {value}")
        if len(set(present.values())) != len(present):
            raise MalformedConfigError(f"Positions must be distinct: {present}")
        if self.time_size is not None and self.time_size <= 0:
            raise MalformedConfigError(
                f"time_size must be positive, got {self.time_size}"
            )
        if (self.longitude_name is None) != (self.latitude_name is None):
            raise MalformedConfigError(
                "longitude_name and latitude_name must be given together"
            )

    @property
    def is_rotated(self) -> bool:
        """Whether the configuration names 2-D coordinate variables."""
        return self.longitude_name is not None

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> Config:
        """
        Build a configuration from file keys or field names.

        Values may be strings, as read from a file; numeric fields are
        converted. ``varname`` is the true variable name; the canonical key is
        derived from it.
        """
        field_names = {f.name for f in fields(cls)} - {"varname"}
        parsed: dict[str, Any] = {}
        for key, value in values.items():
            name = FILE_KEYS.get(key, key)
            if name not in field_names:
                raise MalformedConfigError(f"Unknown configuration key: {key}")
            parsed[name] = _convert(name, value)

        missing = [
            key for key in REQUIRED_KEYS if parsed.get(FILE_KEYS[key]) is None
        ]
        if missing:
            raise MalformedConfigError(
                f"Missing required configuration keys: {', '.join(missing)}"
            )

        return cls(varname=parsed["var_display_name"].casefold(), **parsed)

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """
        Read a ``key value`` configuration file.

        Raises
        ------
        NotFoundError
            If the file does not exist.
        MalformedConfigError
            If a line has no value, a key is unknown, a number does not parse,
            or a required key (varname, varpos, xpos, ypos) is absent.
        """
        path = Path(path)
        if not path.is_file():
            raise NotFoundError(f"Configuration file not found: {path}")

        values = {}
        for lineno, raw in enumerate(path.read_text().splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            parts = line.split(None, 1)
            if len(parts) != 2:
                raise MalformedConfigError(f"{path}:{lineno}: no value for key '{line}'")
            values[parts[0]] = parts[1].strip()
        return cls.from_dict(values)

    def to_dict(self) -> dict[str, Any]:
        """Set fields keyed by their configuration file key."""
        out = {}
        for key, name in FILE_KEYS.items():
            value = getattr(self, name)
            if value is not None:
                out[key] = value
        return out

    def to_text(self) -> str:
        """Render the configuration in the file format read by :meth:`from_file`."""
        return "".join(f"{key} {value}\n" for key, value in self.to_dict().items())


def _convert(name: str, value: Any) -> Any:
    if value is None:
        return None
    try:
        if name in _INT_FIELDS:
            return int(value)
        if name in _FLOAT_FIELDS:
            return float(value)
    except (TypeError, ValueError) as e:
        raise MalformedConfigError(f"Invalid value for {name}: {value!r}") from e
    return str(value)
