"""
Tests for the orientation controller.

Static updates jump straight to the subsolar orientation; animated updates
interpolate over a fixed window driven here by a fake clock.
"""
import dataclasses
from datetime import datetime, timedelta, timezone

import pytest

from sunglobe_core.models import GeodeticPoint, GroundStation, SatellitePosition
from sunglobe_core.orientation import (
    ON_SETTLE,
    PER_STEP,
    STATIC,
    TRANSITIONING,
    OrientationController,
    compute_station_states,
)
from sunglobe_core.solar import estimate_subsolar_point, rotation_for
from sunglobe_core.stations import DEFAULT_STATIONS, station_by_name
from sunglobe_core.visibility import geodetic_to_unit


T0 = datetime(2024, 3, 20, 12, 0, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=6)


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def _controller(**kwargs):
    clock = FakeClock()
    kwargs.setdefault("duration_s", 2.0)
    return OrientationController(clock=clock, **kwargs), clock


def _overhead(station, km=7000.0):
    x, y, z = geodetic_to_unit(station.location) * km
    return SatellitePosition(float(x), float(y), float(z), satellite="test")


class TestComputeStationStates:

    def test_flags_for_every_station(self):
        rotation = rotation_for(GeodeticPoint(0.0, 0.0))
        states = compute_station_states(DEFAULT_STATIONS, rotation)
        assert isinstance(states, tuple)
        assert [s.station for s in states] == list(DEFAULT_STATIONS)
        assert not any(s.in_cone for s in states)

    def test_visibility_follows_rotation(self):
        madrid = station_by_name("Madrid")
        canberra = station_by_name("Canberra")
        states = compute_station_states((madrid, canberra), rotation_for(madrid.location))
        assert states[0].visible
        assert not states[1].visible

    def test_overhead_satellite(self):
        wallops = station_by_name("Wallops")
        states = compute_station_states((wallops,), (0.0, 0.0, 0.0), _overhead(wallops))
        assert states[0].in_cone

    def test_degenerate_satellite_never_in_cone(self):
        station = GroundStation("Origin", GeodeticPoint(0.0, 0.0), 359.0, "#000")
        states = compute_station_states((station,), (0.0, 0.0, 0.0), SatellitePosition(0.0, 0.0, 0.0))
        assert states[0].in_cone is False
        assert states[0].visible


class TestStaticUpdates:

    def test_set_time_rotates_to_subsolar_point(self):
        controller, _ = _controller(animate=False)
        snapshot = controller.set_time(T0)
        expected = rotation_for(estimate_subsolar_point(T0))
        assert controller.state == STATIC
        assert controller.rotation == pytest.approx(expected)
        assert snapshot.rotation == pytest.approx(expected)
        assert snapshot.subsolar == estimate_subsolar_point(T0)
        assert snapshot.timestamp == T0

    def test_first_update_never_animates(self):
        controller, _ = _controller(animate=True)
        controller.set_time(T0)
        assert controller.state == STATIC
        assert controller.snapshot is not None

    def test_snapshot_replaced_not_mutated(self):
        controller, _ = _controller(animate=False)
        first = controller.set_time(T0)
        second = controller.set_time(T1)
        assert first is not second
        assert first.timestamp == T0
        with pytest.raises(dataclasses.FrozenInstanceError):
            first.timestamp = T1

    def test_satellite_and_image_carry_over(self):
        controller, _ = _controller(animate=False)
        sat = _overhead(station_by_name("Madrid"))
        controller.set_time(T0, satellite=sat, image="a.png")
        snapshot = controller.set_time(T1)
        assert snapshot.satellite == sat
        assert snapshot.image == "a.png"
        snapshot = controller.set_time(T1, satellite=None)
        assert snapshot.satellite is None
        assert not any(s.in_cone for s in snapshot.stations)

    def test_set_satellite_recomputes_flags(self):
        controller, _ = _controller(animate=False)
        controller.set_time(T0)
        madrid = station_by_name("Madrid")
        snapshot = controller.set_satellite(_overhead(madrid))
        states = {s.station.name: s for s in snapshot.stations}
        assert states["Madrid"].in_cone

    def test_set_satellite_requires_time(self):
        controller, _ = _controller()
        with pytest.raises(RuntimeError):
            controller.set_satellite(None)

    def test_tick_is_noop_when_static(self):
        controller, _ = _controller(animate=False)
        snapshot = controller.set_time(T0)
        assert controller.tick() is snapshot


class TestAnimatedUpdates:

    def test_transition_reaches_target(self):
        controller, clock = _controller(animate=True)
        controller.set_time(T0)
        controller.set_time(T1)
        assert controller.state == TRANSITIONING

        clock.now += 2.5
        controller.tick()
        assert controller.state == STATIC
        assert controller.rotation == pytest.approx(rotation_for(estimate_subsolar_point(T1)))

    def test_midpoint_is_linear_over_shorter_arc(self):
        controller, clock = _controller(animate=True)
        controller.set_time(T0)
        lam0, phi0, _ = controller.rotation
        controller.set_time(T1)
        lam1, phi1, _ = rotation_for(estimate_subsolar_point(T1))

        clock.now += 1.0
        controller.tick()
        lam, phi, _ = controller.rotation
        delta = (lam1 - lam0 + 180.0) % 360.0 - 180.0
        assert abs(delta) <= 180.0
        assert lam == pytest.approx(lam0 + delta / 2)
        assert phi == pytest.approx((phi0 + phi1) / 2)
        assert controller.state == TRANSITIONING

    def test_animate_override_per_call(self):
        controller, _ = _controller(animate=True)
        controller.set_time(T0)
        controller.set_time(T1, animate=False)
        assert controller.state == STATIC

    def test_zero_duration_is_static(self):
        controller, _ = _controller(animate=True, duration_s=0)
        controller.set_time(T0)
        controller.set_time(T1)
        assert controller.state == STATIC

    def test_per_step_flags_follow_interpolated_rotation(self):
        controller, clock = _controller(animate=True, visibility_policy=PER_STEP)
        sat = _overhead(station_by_name("Goldstone"))
        controller.set_time(T0, satellite=sat)
        controller.set_time(T1)
        for _ in range(3):
            clock.now += 0.5
            snapshot = controller.tick()
            assert snapshot.rotation == controller.rotation
            assert snapshot.stations == compute_station_states(controller.stations, snapshot.rotation, sat)
            assert snapshot.timestamp == T1

    def test_on_settle_keeps_previous_snapshot_until_done(self):
        controller, clock = _controller(animate=True, visibility_policy=ON_SETTLE)
        before = controller.set_time(T0)
        controller.set_time(T1)
        clock.now += 1.0
        assert controller.tick() is before
        assert controller.rotation != before.rotation

        clock.now += 1.0
        after = controller.tick()
        assert after is not before
        assert after.timestamp == T1
        assert after.rotation == controller.rotation

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError):
            OrientationController(visibility_policy="sometimes")
