"""
Clients for the two remote read-only data sources.

EpicClient    DSCOVR EPIC imagery metadata: one record per image with the
              capture time and the Earth point the image is centred on.
SscClient     SSCWeb satellite locations: Cartesian time series for named
              satellites over a time window.

Failures are raised as DataSourceError; an empty answer for the requested
date or window is the recoverable NoDataError.
"""
import logging
import re
from datetime import datetime, timedelta

import numpy as np
import pandas as pd
import requests

from . import config
from .models import EphemerisRecord, GeodeticPoint, SatellitePosition, to_utc

logger = logging.getLogger(__name__)

EPIC_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
SSC_TIME_FORMAT = "%Y%m%dT%H%M%SZ"
_TYPE_TAG = re.compile(r"^(java|javax|gov)\.")


class DataSourceError(Exception):
    def __init__(self, source, message):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class NoDataError(DataSourceError):
    pass


def _get_json(session, source, url, timeout, **kwargs):
    try:
        response = session.get(url, timeout=timeout, **kwargs)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        raise DataSourceError(source, f"request to {url} failed: {e}") from e
    except ValueError as e:
        raise DataSourceError(source, f"invalid JSON from {url}: {e}") from e


class EpicClient:
    source = "epic"

    def __init__(self, api_root=config.EPIC_API_ROOT, archive_root=config.EPIC_ARCHIVE_ROOT,
                 timeout=config.HTTP_TIMEOUT_S, session=None):
        self.api_root = api_root.rstrip("/")
        self.archive_root = archive_root.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def parse_record(self, raw) -> EphemerisRecord:
        try:
            ts = to_utc(datetime.strptime(raw["date"], EPIC_DATE_FORMAT))
            point = raw["centroid_coordinates"]
            return EphemerisRecord(ts, raw["image"], GeodeticPoint(float(point["lat"]), float(point["lon"])))
        except (KeyError, TypeError, ValueError) as e:
            raise DataSourceError(self.source, f"malformed record {raw!r}: {e}") from e

    def _records(self, url, what):
        payload = _get_json(self.session, self.source, url, self.timeout)
        if not isinstance(payload, list):
            raise DataSourceError(self.source, f"expected a list of records, got {type(payload).__name__}")
        if not payload:
            raise NoDataError(self.source, f"no imagery for {what}")
        records = sorted((self.parse_record(r) for r in payload), key=lambda r: r.timestamp)
        logger.info("Fetched %d EPIC records for %s", len(records), what)
        return records

    def records_for(self, date):
        day = date.strftime("%Y-%m-%d")
        return self._records(f"{self.api_root}/natural/date/{day}", day)

    def latest(self):
        return self._records(f"{self.api_root}/natural", "latest")

    def image_url(self, record: EphemerisRecord) -> str:
        ts = record.timestamp
        return f"{self.archive_root}/natural/{ts:%Y/%m/%d}/png/{record.image}.png"

    @staticmethod
    def closest_record(records, timestamp) -> EphemerisRecord:
        if not records:
            raise NoDataError(EpicClient.source, "no records to choose from")
        ts = to_utc(timestamp)
        return min(records, key=lambda r: abs((r.timestamp - ts).total_seconds()))


def _unwrap(value):
    # SSCWeb's JSON wraps collections and calendars as ["java.type.Name", value]
    if isinstance(value, list):
        if len(value) == 2 and isinstance(value[0], str) and _TYPE_TAG.match(value[0]):
            return _unwrap(value[1])
        return [_unwrap(v) for v in value]
    if isinstance(value, dict):
        return {k: _unwrap(v) for k, v in value.items()}
    return value


class SscClient:
    source = "sscweb"
    COLUMNS = ["time", "satellite", "x", "y", "z"]

    def __init__(self, api_root=config.SSC_API_ROOT, coordinates=config.SSC_COORDINATES,
                 timeout=config.HTTP_TIMEOUT_S, session=None):
        self.api_root = api_root.rstrip("/")
        self.coordinates = coordinates
        self.timeout = timeout
        self.session = session or requests.Session()

    def url(self, satellites, start, end):
        sats = ",".join(satellites)
        return (f"{self.api_root}/locations/{sats}/"
                f"{to_utc(start):{SSC_TIME_FORMAT}},{to_utc(end):{SSC_TIME_FORMAT}}/{self.coordinates}/")

    def parse(self, payload) -> pd.DataFrame:
        try:
            result = _unwrap(payload)["Result"]
            status = result.get("StatusCode", "SUCCESS")
            if status != "SUCCESS":
                raise DataSourceError(self.source, f"{status}: {result.get('StatusText', '')}")
            frames = []
            for sat in result.get("Data") or []:
                coords = sat["Coordinates"][0]
                frames.append(pd.DataFrame({
                    "time": pd.to_datetime(sat["Time"], utc=True),
                    "satellite": sat["Id"],
                    "x": coords["X"],
                    "y": coords["Y"],
                    "z": coords["Z"],
                }))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise DataSourceError(self.source, f"unexpected response shape: {e}") from e

        if not frames:
            return pd.DataFrame(columns=self.COLUMNS)
        return pd.concat(frames, ignore_index=True).sort_values("time", ignore_index=True)

    def locations(self, satellites, start, end) -> pd.DataFrame:
        url = self.url(satellites, start, end)
        payload = _get_json(self.session, self.source, url, self.timeout,
                            headers={"Accept": "application/json"})
        df = self.parse(payload)
        logger.info("Fetched %d location samples for %s", len(df), ",".join(satellites))
        return df

    def latest_position(self, satellite, start, end) -> SatellitePosition:
        df = self.locations([satellite], start, end)
        df = df[df["satellite"] == satellite]
        if df.empty:
            raise NoDataError(self.source, f"no locations for {satellite} between {start} and {end}")
        row = df.iloc[-1]
        try:
            xyz = [float(row[c]) for c in ("x", "y", "z")]
            time = row["time"].to_pydatetime()
        except (AttributeError, TypeError, ValueError) as e:
            raise DataSourceError(self.source, f"bad location sample for {satellite}: {e}") from e
        if not np.all(np.isfinite(xyz)) or pd.isna(row["time"]):
            raise DataSourceError(self.source, f"missing coordinates for {satellite} at {time}")
        return SatellitePosition(*xyz, time=time, satellite=satellite, frame=self.coordinates)

    def window(self, timestamp, hours=config.WINDOW_HOURS):
        end = to_utc(timestamp)
        return end - timedelta(hours=hours), end
