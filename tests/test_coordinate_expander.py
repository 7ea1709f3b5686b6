"""
Unit tests for CoordinateExpander and CoordinateStream.

Tests the replication of per-cell longitude/latitude pairs once per time
step and chunked access by flat record index.
"""

import numpy as np
import pytest

from coldbar.data_access.config import Config
from coldbar.data_access.coordinate_expander import CoordinateExpander, CoordinateStream
from coldbar.data_access.errors import MalformedConfigError, UnsupportedGridError
from conftest import FakeNcks, make_coordinate_records


def _rotated_config(**overrides):
    values = dict(
        varname="tn",
        var_display_name="tn",
        var_position=3,
        time_position=0,
        y_position=1,
        x_position=2,
        time_size=3,
        longitude_name="lon",
        latitude_name="lat",
    )
    values.update(overrides)
    return Config(**values)


@pytest.mark.unit
class TestCoordinateStream:
    """Test suite for CoordinateStream."""

    def setup_method(self):
        """Set up test fixtures for each test method."""
        self.lon = np.array(["10.0", "10.5", "11.0", "11.5"])
        self.lat = np.array(["40.0", "40.0", "40.5", "40.5"])
        self.stream = CoordinateStream(self.lon, self.lat, time_size=5)

    def test_length(self):
        """Test the stream holds cells * time_size pairs."""
        assert self.stream.cells == 4
        assert len(self.stream) == 20

    def test_replication_law(self):
        """Test pair k equals pair k mod cells."""
        for k in range(len(self.stream)):
            assert self.stream[k] == self.stream[k % self.stream.cells]

    def test_getitem(self):
        """Test items are (longitude, latitude) pairs."""
        assert self.stream[0] == ("10.0", "40.0")
        assert self.stream[6] == ("11.0", "40.5")
        assert self.stream[-1] == ("11.5", "40.5")

    def test_getitem_out_of_range(self):
        """Test indexing past the end raises IndexError."""
        with pytest.raises(IndexError):
            self.stream[20]

    def test_expand(self):
        """Test full expansion repeats the cell list in time order."""
        lon, lat = self.stream.expand()

        assert len(lon) == len(lat) == 20
        np.testing.assert_array_equal(lon[:4], self.lon)
        np.testing.assert_array_equal(lon[16:], self.lon)
        np.testing.assert_array_equal(lat[8:12], self.lat)

    def test_iter_matches_expand(self):
        """Test iteration yields the same pairs as the expansion."""
        lon, lat = self.stream.expand()
        assert list(self.stream) == list(zip(lon.tolist(), lat.tolist()))

    def test_chunk_matches_expand(self):
        """Test chunks are slices of the full expansion."""
        full_lon, full_lat = self.stream.expand()

        lon, lat = self.stream.chunk(3, 10)

        np.testing.assert_array_equal(lon, full_lon[3:10])
        np.testing.assert_array_equal(lat, full_lat[3:10])

    def test_chunk_clipped_at_end(self):
        """Test a chunk past the end is shortened."""
        lon, lat = self.stream.chunk(18, 25)
        assert len(lon) == len(lat) == 2

        lon, lat = self.stream.chunk(20, 30)
        assert len(lon) == len(lat) == 0

    def test_mismatched_sizes(self):
        """Test longitude and latitude must have one value per cell each."""
        with pytest.raises(UnsupportedGridError, match="differ"):
            CoordinateStream(["1", "2"], ["3"], time_size=2)


@pytest.mark.unit
class TestCoordinateExpander:
    """Test suite for CoordinateExpander."""

    def setup_method(self):
        """Set up test fixtures for each test method."""
        self.runner = FakeNcks(
            {None: ""},
            {
                "lon": make_coordinate_records("lon", offset=10.0),
                "lat": make_coordinate_records("lat", offset=40.0) + [""],
            },
        )
        self.expander = CoordinateExpander(self.runner)

    def test_expand(self, rotated_ncks):
        """Test the stream has one pair per record of the grid."""
        stream = CoordinateExpander(rotated_ncks).expand("tn.nc", _rotated_config())

        assert stream.cells == 6
        assert len(stream) == 18
        assert stream[0] == ("10.0", "40.0")
        assert stream[5] == ("15.0", "45.0")
        assert stream[6] == ("10.0", "40.0")

    def test_read_values_takes_last_token(self):
        """Test the value is the last token and blank lines are skipped."""
        values = self.expander.read_values("tn.nc", "lat")

        assert values == ["40.0", "41.0", "42.0", "43.0", "44.0", "45.0"]

    def test_reads_named_variables(self):
        """Test the configured coordinate variables are dumped."""
        self.expander.expand("tn.nc", _rotated_config())

        assert [c[2] for c in self.runner.calls] == ["lon", "lat"]

    def test_requires_coordinate_names(self):
        """Test expansion on a regular grid configuration fails."""
        config = _rotated_config(longitude_name=None, latitude_name=None)

        with pytest.raises(UnsupportedGridError):
            self.expander.expand("tn.nc", config)

    def test_requires_time_size(self):
        """Test expansion needs the number of time steps."""
        with pytest.raises(MalformedConfigError, match="time_size"):
            self.expander.expand("tn.nc", _rotated_config(time_size=None))

    def test_unequal_coordinate_dumps(self):
        """Test coordinate dumps of different lengths are rejected."""
        runner = FakeNcks(
            {None: ""},
            {
                "lon": make_coordinate_records("lon"),
                "lat": make_coordinate_records("lat", nrlon=2),
            },
        )

        with pytest.raises(UnsupportedGridError):
            CoordinateExpander(runner).expand("tn.nc", _rotated_config())
