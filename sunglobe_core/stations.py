from .models import GeodeticPoint, GroundStation

DEFAULT_STATIONS = (
    GroundStation("Wallops", GeodeticPoint(37.94, -75.46), 170.0, "#e53e3e"),
    GroundStation("Fairbanks", GeodeticPoint(64.86, -147.85), 170.0, "#dd6b20"),
    GroundStation("Goldstone", GeodeticPoint(35.43, -116.89), 160.0, "#d69e2e"),
    GroundStation("Madrid", GeodeticPoint(40.43, -4.25), 160.0, "#38a169"),
    GroundStation("Canberra", GeodeticPoint(-35.40, 148.98), 160.0, "#3182ce"),
    GroundStation("Hartebeesthoek", GeodeticPoint(-25.89, 27.69), 150.0, "#805ad5"),
)


def station_by_name(name, stations=DEFAULT_STATIONS):
    for station in stations:
        if station.name.lower() == name.lower():
            return station
    raise KeyError(f"Unknown ground station: {name}")
