import numpy as np

from .models import GeodeticPoint

# Cosines at or below this count as the horizon; float noise at exactly 90 deg
# is around 6e-17.
HORIZON_EPSILON = 1e-12


class DegeneratePositionError(ValueError):
    """Raised when a satellite vector has zero magnitude and has no direction."""


def geodetic_to_unit(point: GeodeticPoint):
    """Unit zenith vector for a point on a spherical Earth."""
    lr = np.deg2rad(point.lat_deg); lo = np.deg2rad(point.lon_deg)
    x = np.cos(lr) * np.cos(lo)
    y = np.cos(lr) * np.sin(lo)
    z = np.sin(lr)
    return np.array([x, y, z])


def unit_to_geodetic(xyz) -> GeodeticPoint:
    v = np.asarray(xyz, dtype=float)
    r = np.linalg.norm(v)
    if not r > 0.0:
        raise DegeneratePositionError("Cannot take the direction of a zero vector")
    lat = np.degrees(np.arcsin(np.clip(v[2] / r, -1.0, 1.0)))
    lon = np.degrees(np.arctan2(v[1], v[0]))
    return GeodeticPoint(float(lat), float(lon))


def cos_angular_distance(lon0, lat0, lon1, lat1) -> float:
    """Spherical law of cosines, all angles in degrees."""
    p0 = np.deg2rad(lat0); p1 = np.deg2rad(lat1)
    dl = np.deg2rad(lon1 - lon0)
    return float(np.sin(p0) * np.sin(p1) + np.cos(p0) * np.cos(p1) * np.cos(dl))


def angular_distance_deg(a: GeodeticPoint, b: GeodeticPoint) -> float:
    c = cos_angular_distance(a.lon_deg, a.lat_deg, b.lon_deg, b.lat_deg)
    return float(np.degrees(np.arccos(np.clip(c, -1.0, 1.0))))


def is_visible(rotation_lambda, rotation_phi, point_lon, point_lat) -> bool:
    """
    Whether a point lies on the near hemisphere of a projection rotated by
    (rotation_lambda, rotation_phi).

    The projection centre is (-rotation_lambda, -rotation_phi). A point
    exactly 90 deg from the centre (cosine == 0, up to HORIZON_EPSILON) counts as
    hidden, so stations sitting on the horizon are reported as not visible.
    """
    return cos_angular_distance(-rotation_lambda, -rotation_phi, point_lon, point_lat) > HORIZON_EPSILON


def zenith_angle_deg(station: GeodeticPoint, satellite_xyz) -> float:
    sat = np.asarray(satellite_xyz, dtype=float)
    norm = np.linalg.norm(sat)
    if not norm > 0.0:
        raise DegeneratePositionError("Satellite position has zero magnitude")
    dot = np.dot(geodetic_to_unit(station), sat / norm)
    return float(np.degrees(np.arccos(np.clip(dot, -1.0, 1.0))))


def is_in_cone(station: GeodeticPoint, satellite_xyz, cone_full_angle) -> bool:
    """
    Whether the satellite falls inside the station's antenna cone.

    cone_full_angle is the full width of the cone. Southern-hemisphere
    stations compare against 180 - zenith angle; this correction is empirical
    and unverified against real antenna geometry.
    """
    angle = zenith_angle_deg(station, satellite_xyz)
    if station.lat_deg < 0:
        angle = 180.0 - angle
    return angle <= cone_full_angle / 2.0
