"""Tests for value objects, the station catalogue and settings helpers."""
import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from sunglobe_core.config import env_flag
from sunglobe_core.models import (
    GeodeticPoint,
    SatellitePosition,
    normalize_longitude,
    to_utc,
)
from sunglobe_core.stations import DEFAULT_STATIONS, station_by_name


class TestNormalizeLongitude:

    @pytest.mark.parametrize("lon,expected", [
        (0.0, 0.0), (180.0, 180.0), (-180.0, 180.0), (190.0, -170.0),
        (360.0, 0.0), (-190.0, 170.0), (540.0, 180.0), (-75.46, -75.46),
    ])
    def test_range(self, lon, expected):
        assert normalize_longitude(lon) == pytest.approx(expected)


class TestGeodeticPoint:

    def test_longitude_normalized_on_creation(self):
        assert GeodeticPoint(10.0, 270.0).lon_deg == pytest.approx(-90.0)

    def test_latitude_out_of_range(self):
        with pytest.raises(ValueError):
            GeodeticPoint(91.0, 0.0)

    def test_frozen(self):
        point = GeodeticPoint(1.0, 2.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            point.lat_deg = 3.0


class TestSatellitePosition:

    def test_magnitude(self):
        assert SatellitePosition(3.0, 4.0, 0.0).magnitude() == pytest.approx(5.0)

    def test_degenerate(self):
        assert SatellitePosition(0.0, 0.0, 0.0).is_degenerate()
        assert not SatellitePosition(0.0, 0.0, 1e-9).is_degenerate()


class TestToUtc:

    def test_naive_is_utc(self):
        assert to_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc

    def test_offset_converted(self):
        ts = to_utc(datetime(2024, 1, 1, 5, tzinfo=timezone(timedelta(hours=5))))
        assert ts == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert ts.utcoffset() == timedelta(0)


class TestStations:

    def test_catalogue_is_immutable(self):
        assert isinstance(DEFAULT_STATIONS, tuple)
        assert len({s.name for s in DEFAULT_STATIONS}) == len(DEFAULT_STATIONS)

    def test_cone_angles_are_full_widths(self):
        assert all(0 < s.cone_angle_deg <= 180 for s in DEFAULT_STATIONS)

    def test_lookup_case_insensitive(self):
        assert station_by_name("madrid").name == "Madrid"

    def test_unknown_station(self):
        with pytest.raises(KeyError):
            station_by_name("Atlantis")


class TestEnvFlag:

    def test_default(self, monkeypatch):
        monkeypatch.delenv("SUNGLOBE_TEST_FLAG", raising=False)
        assert env_flag("SUNGLOBE_TEST_FLAG", True) is True

    @pytest.mark.parametrize("raw,expected", [("1", True), ("yes", True), ("false", False), ("0", False)])
    def test_parse(self, monkeypatch, raw, expected):
        monkeypatch.setenv("SUNGLOBE_TEST_FLAG", raw)
        assert env_flag("SUNGLOBE_TEST_FLAG") is expected
