"""
Orientation controller.

Keeps the globe projection pointed at the subsolar point of the selected
time and publishes a GlobeSnapshot with station visibility and antenna cone
flags. Updates either jump straight to the new orientation (static) or
interpolate toward it over a fixed wall-clock window (animated).

Visibility policy while animating:
    per_step   stations are re-evaluated on every tick against the
               interpolated rotation
    on_settle  the previous snapshot stays published until the transition
               ends, then the final one replaces it
"""
import logging
import time

from .models import GlobeSnapshot, StationState, to_utc
from .projection import OrthographicProjection
from .solar import estimate_subsolar_point, rotation_for
from .stations import DEFAULT_STATIONS
from .visibility import is_in_cone, is_visible

logger = logging.getLogger(__name__)

STATIC = "static"
TRANSITIONING = "transitioning"

PER_STEP = "per_step"
ON_SETTLE = "on_settle"
POLICIES = (PER_STEP, ON_SETTLE)

_UNCHANGED = object()


def compute_station_states(stations, rotation, satellite=None):
    """Visibility and cone flags for every station, as one new tuple."""
    lam, phi = rotation[0], rotation[1]
    usable = satellite is not None and not satellite.is_degenerate()
    if satellite is not None and not usable:
        logger.warning("Ignoring zero-magnitude position for %s", satellite.satellite or "satellite")

    states = []
    for station in stations:
        loc = station.location
        visible = is_visible(lam, phi, loc.lon_deg, loc.lat_deg)
        in_cone = usable and is_in_cone(loc, satellite.vector, station.cone_angle_deg)
        states.append(StationState(station, visible, bool(in_cone)))
    return tuple(states)


def _shortest_delta(start, end):
    return (end - start + 180.0) % 360.0 - 180.0


class OrientationController:
    def __init__(self, projection=None, stations=DEFAULT_STATIONS, duration_s=1.0,
                 animate=True, visibility_policy=PER_STEP, clock=time.monotonic):
        if visibility_policy not in POLICIES:
            raise ValueError(f"visibility_policy must be one of {POLICIES}, got {visibility_policy!r}")
        self.projection = projection or OrthographicProjection()
        self.stations = tuple(stations)
        self.duration_s = float(duration_s)
        self.animate = animate
        self.visibility_policy = visibility_policy
        self.clock = clock

        self._state = STATIC
        self._snapshot = None
        self._cycle = None
        self._start_rotation = None
        self._target_rotation = None
        self._started_at = None

    @property
    def state(self):
        return self._state

    @property
    def snapshot(self):
        return self._snapshot

    @property
    def rotation(self):
        return self.projection.rotation

    def set_time(self, timestamp, satellite=_UNCHANGED, animate=None, image=_UNCHANGED):
        """
        Point the globe at the subsolar point of `timestamp`.

        satellite and image default to the values of the current cycle;
        pass None explicitly to clear them.
        """
        ts = to_utc(timestamp)
        subsolar = estimate_subsolar_point(ts)
        target = rotation_for(subsolar)

        previous = self._cycle or {}
        if satellite is _UNCHANGED:
            satellite = previous.get("satellite")
        if image is _UNCHANGED:
            image = previous.get("image")
        self._cycle = {"timestamp": ts, "subsolar": subsolar, "satellite": satellite, "image": image}

        animate = self.animate if animate is None else animate
        if not animate or self.duration_s <= 0 or self._snapshot is None:
            self._settle(target)
            return self._snapshot

        self._start_rotation = self.projection.rotation
        self._target_rotation = target
        self._started_at = self.clock()
        self._state = TRANSITIONING
        logger.debug("Transition %s -> %s over %.2fs", self._start_rotation, target, self.duration_s)
        if self.visibility_policy == PER_STEP:
            self._publish()
        return self._snapshot

    def set_satellite(self, satellite):
        """Recompute cone flags for a newly fetched satellite position."""
        if self._cycle is None:
            raise RuntimeError("set_time must be called before set_satellite")
        self._cycle = {**self._cycle, "satellite": satellite}
        if self._state == STATIC or self.visibility_policy == PER_STEP:
            self._publish()
        return self._snapshot

    def tick(self, now=None):
        """Advance an active transition; a no-op while static."""
        if self._state != TRANSITIONING:
            return self._snapshot

        now = self.clock() if now is None else now
        progress = min(1.0, max(0.0, (now - self._started_at) / self.duration_s))
        if progress >= 1.0:
            self._settle(self._target_rotation)
            return self._snapshot

        lam0, phi0, gamma0 = self._start_rotation
        lam1, phi1, gamma1 = self._target_rotation
        self.projection.rotate(
            lam0 + _shortest_delta(lam0, lam1) * progress,
            phi0 + (phi1 - phi0) * progress,
            gamma0 + (gamma1 - gamma0) * progress,
        )
        if self.visibility_policy == PER_STEP:
            self._publish()
        return self._snapshot

    def _settle(self, rotation):
        self.projection.rotate(*rotation)
        self._state = STATIC
        self._start_rotation = self._target_rotation = self._started_at = None
        self._publish()

    def _publish(self):
        cycle = self._cycle
        rotation = self.projection.rotation
        self._snapshot = GlobeSnapshot(
            timestamp=cycle["timestamp"],
            subsolar=cycle["subsolar"],
            rotation=rotation,
            satellite=cycle["satellite"],
            stations=compute_station_states(self.stations, rotation, cycle["satellite"]),
            image=cycle["image"],
        )
