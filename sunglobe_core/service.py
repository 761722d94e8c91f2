"""
Refresh cycle tying the data sources to the orientation controller.

One cycle fetches the EPIC record closest to the selected time and the
latest satellite location before it, then hands both to the controller,
which publishes a new snapshot in one step. A failed cycle leaves the last
good snapshot in place and records the error for display.
"""
import asyncio
import logging
from datetime import datetime, timezone

from . import config
from .debounce import Debouncer
from .models import to_utc
from .sources import DataSourceError, EpicClient, NoDataError

logger = logging.getLogger(__name__)


class GlobeService:
    def __init__(self, epic, ssc, controller, satellite=config.SATELLITE,
                 window_hours=config.WINDOW_HOURS, debounce_s=config.DEBOUNCE_S):
        self.epic = epic
        self.ssc = ssc
        self.controller = controller
        self.satellite = satellite
        self.window_hours = window_hours
        self.selected = None
        self.error = None
        self.notice = None
        self.last_refresh = None
        # image centre reported by EPIC, shown next to the estimated subsolar point
        self.reported_subsolar = None
        self._generation = 0
        self._debouncer = Debouncer(debounce_s, self._guarded_refresh)

    def fetch(self, timestamp=None):
        """Blocking network half of a cycle. Raises DataSourceError on failure."""
        requested = to_utc(timestamp) if timestamp else datetime.now(timezone.utc)
        notices = []

        try:
            records = self.epic.records_for(requested) if timestamp else self.epic.latest()
            record = EpicClient.closest_record(records, requested)
            orient_at, image = record.timestamp, self.epic.image_url(record)
            reported = record.subsolar
        except NoDataError as e:
            logger.info("No imagery, orienting on requested time: %s", e)
            notices.append(e.message)
            orient_at, image, reported = requested, None, None

        start, end = self.ssc.window(orient_at, self.window_hours)
        try:
            position = self.ssc.latest_position(self.satellite, start, end)
        except NoDataError as e:
            logger.info("No satellite position: %s", e)
            notices.append(e.message)
            position = None

        return {"timestamp": orient_at, "satellite": position, "image": image, "reported": reported,
                "notice": "; ".join(notices) or None}

    def _begin(self, timestamp):
        self._generation += 1
        self.selected = to_utc(timestamp) if timestamp else None
        return self._generation

    def _apply(self, generation, result, animate):
        if generation != self._generation:
            logger.debug("Discarding superseded refresh %d (current %d)", generation, self._generation)
            return self.controller.snapshot
        self.controller.set_time(result["timestamp"], satellite=result["satellite"],
                                 animate=animate, image=result["image"])
        self.error = None
        self.notice = result["notice"]
        self.reported_subsolar = result["reported"]
        self.last_refresh = datetime.now(timezone.utc)
        logger.info("Globe refreshed for %s", result["timestamp"].isoformat())
        return self.controller.snapshot

    def _fail(self, generation, err):
        logger.warning("Refresh failed, keeping last snapshot: %s", err)
        if generation == self._generation:
            self.error = str(err)
        return self.controller.snapshot

    def refresh(self, timestamp=None, animate=None):
        generation = self._begin(timestamp)
        try:
            result = self.fetch(timestamp)
        except DataSourceError as e:
            return self._fail(generation, e)
        return self._apply(generation, result, animate)

    async def arefresh(self, timestamp=None, animate=None):
        generation = self._begin(timestamp)
        try:
            result = await asyncio.to_thread(self.fetch, timestamp)
        except DataSourceError as e:
            return self._fail(generation, e)
        return self._apply(generation, result, animate)

    def select_time(self, timestamp=None, animate=None):
        """Debounced time selection; must be called from the running loop."""
        self._debouncer.trigger(timestamp, animate)

    async def _guarded_refresh(self, timestamp=None, animate=None):
        # background refreshes must not end the task that runs them
        try:
            return await self.arefresh(timestamp, animate)
        except Exception as e:
            logger.exception("Unexpected refresh failure")
            self.error = f"unexpected error: {e}"
            return self.controller.snapshot

    async def run_periodic(self, interval_s=config.REFRESH_S):
        while True:
            await self._guarded_refresh(self.selected)
            await asyncio.sleep(interval_s)

    def status(self):
        snapshot = self.controller.tick()
        return {
            "state": self.controller.state,
            "rotation": list(self.controller.rotation),
            "projection": self.controller.projection.to_plotly(),
            "snapshot": snapshot.as_dict() if snapshot else None,
            "reported_subsolar": self.reported_subsolar.as_dict() if self.reported_subsolar else None,
            "selected": self.selected.isoformat() if self.selected else None,
            "error": self.error,
            "notice": self.notice,
            "last_refresh": self.last_refresh.isoformat() if self.last_refresh else None,
        }
