from .models import (GeodeticPoint, GroundStation, SatellitePosition, EphemerisRecord,
                     StationState, GlobeSnapshot, normalize_longitude)
from .solar import estimate_subsolar_point, rotation_for, terminator, julian_date
from .visibility import is_visible, is_in_cone, DegeneratePositionError, geodetic_to_unit, unit_to_geodetic
from .projection import OrthographicProjection
from .orientation import OrientationController, compute_station_states, STATIC, TRANSITIONING
from .debounce import Debouncer
from .sources import EpicClient, SscClient, DataSourceError, NoDataError
from .stations import DEFAULT_STATIONS, station_by_name
from .service import GlobeService

__all__ = ["GeodeticPoint","GroundStation","SatellitePosition","EphemerisRecord",
           "StationState","GlobeSnapshot","normalize_longitude",
           "estimate_subsolar_point","rotation_for","terminator","julian_date",
           "is_visible","is_in_cone","DegeneratePositionError","geodetic_to_unit","unit_to_geodetic",
           "OrthographicProjection","OrientationController","compute_station_states","STATIC","TRANSITIONING",
           "Debouncer","EpicClient","SscClient","DataSourceError","NoDataError",
           "DEFAULT_STATIONS","station_by_name","GlobeService"]
