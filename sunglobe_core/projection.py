import numpy as np

from .models import GeodeticPoint, normalize_longitude
from .visibility import HORIZON_EPSILON


class OrthographicProjection:
    """
    Orthographic globe projection clipped at 90 deg from the centre.

    rotate() takes the same (lambda, phi, gamma) triple used by web mapping
    libraries: the centre of the view ends up at (-lambda, -phi).
    """

    def __init__(self, scale=1.0, translate=(0.0, 0.0)):
        self.scale = float(scale)
        self.translate = (float(translate[0]), float(translate[1]))
        self._rotation = (0.0, 0.0, 0.0)

    @property
    def rotation(self):
        return self._rotation

    @property
    def center(self) -> GeodeticPoint:
        lam, phi, _ = self._rotation
        return GeodeticPoint(-phi, -lam)

    def rotate(self, lon, lat, roll=0.0):
        self._rotation = (float(lon), float(lat), float(roll))
        return self

    def _rotated(self, lon, lat):
        lam, phi, gamma = np.deg2rad(self._rotation)
        lo = np.deg2rad(lon) + lam
        la = np.deg2rad(lat)
        x = np.cos(lo) * np.cos(la)
        y = np.sin(lo) * np.cos(la)
        z = np.sin(la)
        k = z * np.cos(phi) + x * np.sin(phi)
        out_lon = np.arctan2(y * np.cos(gamma) - k * np.sin(gamma), x * np.cos(phi) - z * np.sin(phi))
        out_lat = np.arcsin(np.clip(k * np.cos(gamma) + y * np.sin(gamma), -1.0, 1.0))
        return out_lon, out_lat

    def project(self, lon, lat):
        """Screen point for (lon, lat), or None when the point is on the far side."""
        lo, la = self._rotated(lon, lat)
        if not np.cos(la) * np.cos(lo) > HORIZON_EPSILON:
            return None
        x = np.cos(la) * np.sin(lo)
        y = np.sin(la)
        tx, ty = self.translate
        return (float(tx + self.scale * x), float(ty - self.scale * y))

    def to_plotly(self):
        """projection_rotation for a plotly orthographic geo layout."""
        lam, phi, gamma = self._rotation
        return {"lon": normalize_longitude(-lam), "lat": -phi, "roll": gamma}
