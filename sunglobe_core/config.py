import logging
import os


def env_flag(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Backend the dashboard talks to
API_ROOT = os.getenv("SUNGLOBE_API_ROOT", "http://localhost:8000")

# Remote read-only data sources
EPIC_API_ROOT = os.getenv("EPIC_API_ROOT", "https://epic.gsfc.nasa.gov/api")
EPIC_ARCHIVE_ROOT = os.getenv("EPIC_ARCHIVE_ROOT", "https://epic.gsfc.nasa.gov/archive")
SSC_API_ROOT = os.getenv("SSC_API_ROOT", "https://sscweb.gsfc.nasa.gov/WS/sscr/2")
# Cone tests compare against Earth-fixed station vectors, so positions must be "geo"
SSC_COORDINATES = os.getenv("SSC_COORDINATES", "geo")
SATELLITE = os.getenv("SUNGLOBE_SATELLITE", "dscovr")
WINDOW_HOURS = float(os.getenv("SUNGLOBE_WINDOW_HOURS", "2"))
HTTP_TIMEOUT_S = float(os.getenv("SUNGLOBE_HTTP_TIMEOUT_S", "10"))

# Scheduling
REFRESH_S = float(os.getenv("SUNGLOBE_REFRESH_S", "3600"))
DEBOUNCE_S = float(os.getenv("SUNGLOBE_DEBOUNCE_S", "0.3"))

# Orientation
TRANSITION_S = float(os.getenv("SUNGLOBE_TRANSITION_S", "1.0"))
ANIMATE = env_flag("SUNGLOBE_ANIMATE", True)
VISIBILITY_POLICY = os.getenv("SUNGLOBE_VISIBILITY_POLICY", "per_step")

LOG_LEVEL = os.getenv("SUNGLOBE_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level=None):
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
