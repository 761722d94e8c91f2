import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from sunglobe_core import (DEFAULT_STATIONS, DegeneratePositionError, EpicClient, GeodeticPoint,
                           GlobeService, OrientationController, SscClient,
                           estimate_subsolar_point, is_in_cone, is_visible, rotation_for)
from sunglobe_core import config

logger = logging.getLogger(__name__)


def build_service():
    controller = OrientationController(
        stations=DEFAULT_STATIONS,
        duration_s=config.TRANSITION_S,
        animate=config.ANIMATE,
        visibility_policy=config.VISIBILITY_POLICY,
    )
    return GlobeService(EpicClient(), SscClient(), controller)


service = build_service()


@asynccontextmanager
async def lifespan(app):
    config.configure_logging()
    task = asyncio.create_task(service.run_periodic(config.REFRESH_S))
    logger.info("Periodic refresh every %.0fs", config.REFRESH_S)
    try:
        yield
    finally:
        task.cancel()


app = FastAPI(title="SunGlobe Backend", lifespan=lifespan)


class TimeSelection(BaseModel):
    """A time picked in the dashboard; no timestamp means follow the latest data."""
    timestamp: Optional[datetime] = None
    animate: Optional[bool] = None


class VisibilityQuery(BaseModel):
    rotation_lambda: float
    rotation_phi: float
    lon: float
    lat: float = Field(ge=-90, le=90)


class ConeQuery(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float
    x: float
    y: float
    z: float
    cone_angle: float = Field(gt=0)


@app.get("/state")
async def state():
    return service.status()


@app.get("/stations")
async def stations():
    return [s.as_dict() for s in service.controller.stations]


@app.post("/time", status_code=202)
async def select_time(selection: TimeSelection):
    service.select_time(selection.timestamp, selection.animate)
    return {"status": "scheduled",
            "timestamp": selection.timestamp.isoformat() if selection.timestamp else None}


@app.post("/refresh")
async def refresh():
    await service.arefresh(service.selected)
    return service.status()


@app.get("/subsolar")
async def subsolar(timestamp: datetime):
    point = estimate_subsolar_point(timestamp)
    return {**point.as_dict(), "rotation": list(rotation_for(point))}


@app.post("/visibility")
async def visibility(query: VisibilityQuery):
    return {"visible": is_visible(query.rotation_lambda, query.rotation_phi, query.lon, query.lat)}


@app.post("/cone")
async def cone(query: ConeQuery):
    try:
        inside = is_in_cone(GeodeticPoint(query.lat, query.lon), (query.x, query.y, query.z), query.cone_angle)
    except DegeneratePositionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"in_cone": inside}


if __name__ == "__main__":
    uvicorn.run("backend.main:app", host="0.0.0.0", port=8000, reload=True)
