"""
Pytest configuration and shared fixtures for Coldbar tests.

The ``ncks`` executable is replaced by :class:`FakeNcks`, which serves canned
metadata reports and record dumps in the traditional (``--trd``) print format,
so the suite runs without NCO installed.
"""

import tarfile
import tempfile
from pathlib import Path
from typing import Generator

import pytest


class FakeNcks:
    """In-memory stand-in for NcksRunner."""

    def __init__(self, metadata, records=None):
        # metadata: {variable or None: text}; missing variables fall back to None
        self._metadata = metadata
        self._records = records or {}
        self.calls = []

    def metadata(self, path, variable=None):
        self.calls.append(("metadata", str(path), variable))
        return self._metadata.get(variable, self._metadata[None])

    def iter_records(self, path, variable):
        self.calls.append(("records", str(path), variable))
        records = self._records[variable]
        if callable(records):
            records = records()
        for line in records:
            yield line


def make_metadata(
    var="tmin",
    ntime=365,
    nlat=100,
    nlon=120,
    missing="-9999",
    origin="2000-01-01",
    time_name="time",
):
    """Whole-file ``ncks --trd -m`` report of a regular lat/lon grid."""
    lines = [
        f"Summary of {var}.nc: filetype = NC_FORMAT_NETCDF4, 0 groups (max. depth = 0), "
        "3 dimensions (2 fixed, 1 record), 4 variables (4 atomic, 0 group, 0 non-atomic)",
        "Global attribute 0: Conventions, size = 6 NC_CHAR, value = CF-1.6",
        "Global attribute 1: title, size = 24 NC_CHAR, value = Daily minimum temperature",
        "",
        "lat: type NC_FLOAT, 1 dimension, 2 attributes, compressed? no, chunked? no, packed? no",
        f"lat size (RAM) = {nlat}*sizeof(NC_FLOAT) = {nlat}*4 = {nlat * 4} bytes",
        f"lat dimension 0: lat, size = {nlat} NC_FLOAT (Coordinate is lat)",
        "lat attribute 0: units, size = 13 NC_CHAR, value = degrees_north",
        "lat attribute 1: long_name, size = 8 NC_CHAR, value = latitude",
        "",
        "lon: type NC_FLOAT, 1 dimension, 2 attributes, compressed? no, chunked? no, packed? no",
        f"lon size (RAM) = {nlon}*sizeof(NC_FLOAT) = {nlon}*4 = {nlon * 4} bytes",
        f"lon dimension 0: lon, size = {nlon} NC_FLOAT (Coordinate is lon)",
        "lon attribute 0: units, size = 12 NC_CHAR, value = degrees_east",
        "lon attribute 1: long_name, size = 9 NC_CHAR, value = longitude",
        "",
    ]
    if time_name:
        lines += [
            f"{time_name}: type NC_DOUBLE, 1 dimension, 2 attributes, compressed? no, "
            "chunked? yes, packed? no",
            f"{time_name} size (RAM) = {ntime}*sizeof(NC_DOUBLE) = {ntime}*8 = "
            f"{ntime * 8} bytes",
            f"{time_name} dimension 0: {time_name}, size = {ntime} NC_DOUBLE, "
            f"chunksize = 512 (Record coordinate is {time_name})",
        ]
        if origin:
            units = f"days since {origin}"
            lines.append(
                f"{time_name} attribute 0: units, size = {len(units)} NC_CHAR, "
                f"value = {units}"
            )
        lines += [
            f"{time_name} attribute 1: calendar, size = 8 NC_CHAR, value = standard",
            "",
        ]
    tdim = time_name or "day"
    nattrs = 3 if missing is not None else 2
    lines += [
        f"{var}: type NC_FLOAT, 3 dimensions, {nattrs} attributes, compressed? no, "
        "chunked? yes, packed? no",
        f"{var} size (RAM) = {ntime}*{nlat}*{nlon}*sizeof(NC_FLOAT) = "
        f"{ntime * nlat * nlon}*4 = {ntime * nlat * nlon * 4} bytes",
        f"{var} dimension 0: {tdim}, size = {ntime} NC_DOUBLE, chunksize = 1 "
        f"(Record coordinate is {tdim})",
        f"{var} dimension 1: lat, size = {nlat} NC_FLOAT (Coordinate is lat)",
        f"{var} dimension 2: lon, size = {nlon} NC_FLOAT (Coordinate is lon)",
        f"{var} attribute 0: long_name, size = 25 NC_CHAR, value = Minimum daily temperature",
        f"{var} attribute 1: units, size = 9 NC_CHAR, value = degrees_C",
    ]
    if missing is not None:
        lines.append(
            f"{var} attribute 2: missing_value, size = 1 NC_FLOAT, value = {missing}"
        )
    lines.append("")
    return "\n".join(lines)


def make_rotated_metadata(var="tn", ntime=3, nrlat=2, nrlon=3):
    """Whole-file report of a rotated-pole grid with 2-D lat/lon variables."""
    return "\n".join(
        [
            f"Summary of {var}.nc: filetype = NC_FORMAT_NETCDF4_CLASSIC, 0 groups",
            "Global attribute 0: Conventions, size = 6 NC_CHAR, value = CF-1.4",
            "",
            "rotated_pole: type NC_CHAR, 0 dimensions, 3 attributes, compressed? no",
            "rotated_pole attribute 0: grid_mapping_name, size = 26 NC_CHAR, "
            "value = rotated_latitude_longitude",
            "",
            "lat: type NC_DOUBLE, 2 dimensions, 2 attributes, compressed? no, chunked? no",
            f"lat dimension 0: rlat, size = {nrlat} NC_DOUBLE (Coordinate is rlat)",
            f"lat dimension 1: rlon, size = {nrlon} NC_DOUBLE (Coordinate is rlon)",
            "lat attribute 0: units, size = 13 NC_CHAR, value = degrees_north",
            "",
            "lon: type NC_DOUBLE, 2 dimensions, 2 attributes, compressed? no, chunked? no",
            f"lon dimension 0: rlat, size = {nrlat} NC_DOUBLE (Coordinate is rlat)",
            f"lon dimension 1: rlon, size = {nrlon} NC_DOUBLE (Coordinate is rlon)",
            "lon attribute 0: units, size = 12 NC_CHAR, value = degrees_east",
            "",
            "rlat: type NC_DOUBLE, 1 dimension, 2 attributes, compressed? no",
            f"rlat dimension 0: rlat, size = {nrlat} NC_DOUBLE (Coordinate is rlat)",
            "",
            "rlon: type NC_DOUBLE, 1 dimension, 2 attributes, compressed? no",
            f"rlon dimension 0: rlon, size = {nrlon} NC_DOUBLE (Coordinate is rlon)",
            "",
            "time: type NC_DOUBLE, 1 dimension, 2 attributes, compressed? no",
            f"time dimension 0: time, size = {ntime} NC_DOUBLE (Record coordinate is time)",
            "time attribute 0: units, size = 30 NC_CHAR, value = days since 1950-01-01 00:00:00",
            "",
            f"{var}: type NC_FLOAT, 3 dimensions, 3 attributes, compressed? yes",
            f"{var} dimension 0: time, size = {ntime} NC_DOUBLE (Record coordinate is time)",
            f"{var} dimension 1: rlat, size = {nrlat} NC_DOUBLE (Coordinate is rlat)",
            f"{var} dimension 2: rlon, size = {nrlon} NC_DOUBLE (Coordinate is rlon)",
            f"{var} attribute 0: grid_mapping, size = 12 NC_CHAR, value = rotated_pole",
            f"{var} attribute 1: _FillValue, size = 1 NC_FLOAT, value = -9999",
            f"{var} attribute 2: missing_value, size = 1 NC_FLOAT, value = -9999",
            "",
        ]
    )


def make_records(var="tmin", ntime=2, nlat=3, nlon=4, value=None, missing_at=()):
    """
    Record dump lines of a (time, lat, lon) variable, lon varying fastest.

    Values default to ``t*100 + y*10 + x`` as text; flat indices listed in
    ``missing_at`` get ``-9999``.
    """
    lines = []
    k = 0
    for t in range(ntime):
        for y in range(nlat):
            for x in range(nlon):
                v = "-9999" if k in missing_at else (
                    value(t, y, x) if value else str(t * 100 + y * 10 + x)
                )
                lines.append(
                    f"time[{t}]={t} lat[{y}]={30 + y} lon[{x}]={-120 + x} {var}[{k}]={v}"
                )
                k += 1
    lines.append("")
    return lines


def make_rotated_records(var="tn", ntime=3, nrlat=2, nrlon=3):
    lines = []
    k = 0
    for t in range(ntime):
        for y in range(nrlat):
            for x in range(nrlon):
                lines.append(
                    f"time[{t}]={t} rlat[{y}]={-1.5 + y} rlon[{x}]={-2.5 + x} "
                    f"{var}[{k}]={k}.5"
                )
                k += 1
    return lines


def make_coordinate_records(name, nrlat=2, nrlon=3, offset=0.0):
    lines = []
    k = 0
    for y in range(nrlat):
        for x in range(nrlon):
            lines.append(f"rlat[{y}]={-1.5 + y} rlon[{x}]={-2.5 + x} {name}[{k}]={offset + k}")
            k += 1
    return lines


@pytest.fixture
def tmin_metadata():
    """Metadata report of the 365x100x120 tmin dataset."""
    return make_metadata()


@pytest.fixture
def fake_ncks(tmin_metadata):
    """Fake ncks serving the tmin report and a small 2x3x4 record dump."""
    return FakeNcks({None: tmin_metadata}, {"tmin": make_records()})


@pytest.fixture
def rotated_ncks():
    """Fake ncks serving a 3-step rotated-pole grid of 2x3 cells."""
    return FakeNcks(
        {None: make_rotated_metadata()},
        {
            "tn": make_rotated_records(),
            "lon": make_coordinate_records("lon", offset=10.0),
            "lat": make_coordinate_records("lat", offset=40.0),
        },
    )


@pytest.fixture
def dataset_file(tmp_path) -> Path:
    """An existing (content-free) dataset file."""
    path = tmp_path / "tmin_2000.nc"
    path.write_bytes(b"CDF\x01")
    return path


@pytest.fixture
def dataset_tar(tmp_path) -> Path:
    """``data.tar`` holding ``readme.txt`` followed by ``grid.nc``."""
    readme = tmp_path / "readme.txt"
    readme.write_text("Daily minimum temperature\n")
    grid = tmp_path / "grid.nc"
    grid.write_bytes(b"CDF\x01grid")

    archive = tmp_path / "data.tar"
    with tarfile.open(archive, "w") as tar:
        tar.add(readme, arcname="readme.txt")
        tar.add(grid, arcname="grid.nc")
    readme.unlink()
    grid.unlink()
    return archive


@pytest.fixture
def temp_directory() -> Generator[Path, None, None]:
    """Temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
