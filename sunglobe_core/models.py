from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple

import numpy as np


def normalize_longitude(lon: float) -> float:
    """Map any longitude in degrees into (-180, 180]."""
    lon = float(lon)
    if -180.0 < lon <= 180.0:
        return lon
    lon %= 360.0
    if lon > 180.0:
        lon -= 360.0
    return lon


def to_utc(timestamp: datetime) -> datetime:
    # naive datetimes are taken to already be UTC
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


@dataclass(frozen=True)
class GeodeticPoint:
    lat_deg: float
    lon_deg: float

    def __post_init__(self):
        if not -90.0 <= self.lat_deg <= 90.0:
            raise ValueError(f"Latitude must be within [-90, 90], got {self.lat_deg}")
        object.__setattr__(self, "lon_deg", normalize_longitude(self.lon_deg))

    def as_dict(self):
        return {"lat": self.lat_deg, "lon": self.lon_deg}


@dataclass(frozen=True)
class GroundStation:
    """A fixed ground station. cone_angle_deg is the full cone width, not the half-angle."""
    name: str
    location: GeodeticPoint
    cone_angle_deg: float
    color: str

    def as_dict(self):
        return {
            "name": self.name,
            "lat": self.location.lat_deg,
            "lon": self.location.lon_deg,
            "cone_angle": self.cone_angle_deg,
            "color": self.color,
        }


@dataclass(frozen=True)
class SatellitePosition:
    """Cartesian satellite position (km) in the configured SSC frame."""
    x: float
    y: float
    z: float
    time: Optional[datetime] = None
    satellite: str = ""
    frame: str = ""

    @property
    def vector(self):
        return np.array([self.x, self.y, self.z], dtype=float)

    def magnitude(self) -> float:
        return float(np.linalg.norm(self.vector))

    def is_degenerate(self) -> bool:
        return not self.magnitude() > 0.0

    def as_dict(self):
        return {
            "x": self.x, "y": self.y, "z": self.z,
            "time": self.time.isoformat() if self.time else None,
            "satellite": self.satellite,
            "frame": self.frame,
        }


@dataclass(frozen=True)
class EphemerisRecord:
    """One EPIC imagery record: capture time, image id and the point under the sun."""
    timestamp: datetime
    image: str
    subsolar: GeodeticPoint


@dataclass(frozen=True)
class StationState:
    station: GroundStation
    visible: bool
    in_cone: bool

    def as_dict(self):
        return {**self.station.as_dict(), "visible": self.visible, "in_cone": self.in_cone}


@dataclass(frozen=True)
class GlobeSnapshot:
    """
    Everything derived in one computation cycle.

    Station flags always belong to this snapshot's rotation and satellite
    position; a new snapshot is built every cycle instead of patching flags.
    """
    timestamp: datetime
    subsolar: GeodeticPoint
    rotation: Tuple[float, float, float]
    satellite: Optional[SatellitePosition] = None
    stations: Tuple[StationState, ...] = field(default_factory=tuple)
    image: Optional[str] = None

    def as_dict(self):
        return {
            "timestamp": self.timestamp.isoformat(),
            "subsolar": self.subsolar.as_dict(),
            "rotation": list(self.rotation),
            "satellite": self.satellite.as_dict() if self.satellite else None,
            "stations": [s.as_dict() for s in self.stations],
            "image": self.image,
        }
