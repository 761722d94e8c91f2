"""
Low-precision solar ephemeris.

Estimates the subsolar point (where the sun is directly overhead) from a
UTC instant using the mean-longitude / equation-of-centre approximation.
Good to roughly 0.01 deg in declination over a few decades; this is not a
validated astronomical model.
"""
from datetime import datetime

import numpy as np

from .models import GeodeticPoint, normalize_longitude, to_utc

UNIX_EPOCH_JD = 2440587.5
J2000_JD = 2451545.0
MS_PER_DAY = 86400000.0
DAYS_PER_CENTURY = 36525.0


def julian_date(timestamp: datetime) -> float:
    unix_ms = to_utc(timestamp).timestamp() * 1000.0
    return unix_ms / MS_PER_DAY + UNIX_EPOCH_JD


def julian_centuries(timestamp: datetime) -> float:
    """Julian centuries elapsed since J2000.0."""
    return (julian_date(timestamp) - J2000_JD) / DAYS_PER_CENTURY


def obliquity_deg(t: float) -> float:
    return 23.43929111 - (46.8150 * t + 0.00059 * t**2) / 3600.0


def ecliptic_longitude_deg(t: float) -> float:
    l0 = (280.46646 + 36000.76983 * t) % 360.0
    m = np.deg2rad((357.52911 + 35999.05029 * t) % 360.0)
    c = 1.9148 * np.sin(m) + 0.0200 * np.sin(2 * m)
    return float((l0 + c) % 360.0)


def estimate_subsolar_point(timestamp: datetime) -> GeodeticPoint:
    """
    Compute the subsolar point for a timestamp.

    Naive timestamps are treated as UTC. Longitude comes back in (-180, 180].
    """
    ts = to_utc(timestamp)
    t = julian_centuries(ts)
    lam = ecliptic_longitude_deg(t)
    eps = obliquity_deg(t)

    utc_hour = ts.hour + ts.minute / 60.0 + (ts.second + ts.microsecond / 1e6) / 3600.0
    lon = (lam - 180.0 + utc_hour * 15.0) % 360.0
    lat = np.degrees(np.arcsin(np.sin(np.deg2rad(eps)) * np.sin(np.deg2rad(lam))))
    return GeodeticPoint(float(lat), normalize_longitude(lon))


def rotation_for(point: GeodeticPoint):
    """Projection rotation (lambda, phi, gamma) that puts `point` at the centre."""
    return (-point.lon_deg, -point.lat_deg, 0.0)


def terminator(subsolar: GeodeticPoint, n: int = 181):
    """
    Day/night boundary: the small circle 90 deg away from the subsolar point.

    Returns (lats, lons) as lists of degrees, closed (first point repeated).
    """
    phi = np.deg2rad(subsolar.lat_deg)
    bearing = np.linspace(0.0, 2 * np.pi, n)
    lat = np.arcsin(np.cos(phi) * np.cos(bearing))
    lon = np.deg2rad(subsolar.lon_deg) + np.arctan2(
        np.sin(bearing) * np.cos(phi), -np.sin(phi) * np.sin(lat)
    )
    lons = (np.degrees(lon) + 180.0) % 360.0 - 180.0
    return np.degrees(lat).tolist(), lons.tolist()
