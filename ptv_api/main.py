from fastapi import FastAPI, HTTPException, Depends, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from contextlib import asynccontextmanager
from pydantic import ValidationError
from typing import Awaitable, Callable, List, Optional, TypeVar
from datetime import datetime
import logging
import uvicorn

from utils.logging_setup import setup_logging
from .config import LOG_DIR, LOG_LEVEL
from .errors import PtvTimetableError, LineMapFormatError
from .ptv_client import PtvTimetableClient
from .schemas import (
    TransportType,
    PointOfInterestType,
    DisruptionMode,
    HealthCheckResponse,
    StopsNearbyResponse,
    PointsOfInterestResponse,
    SearchResponse,
    NextDeparturesResponse,
    LinesByModeResponse,
    DisruptionsResponse,
    StoppingPatternResponse,
    StopsForLineResponse,
)

log = logging.getLogger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(LOG_DIR, LOG_LEVEL)
    async with PtvTimetableClient.from_env() as client:
        app.state.ptv_client = client
        log.info("PTV client ready.")
        yield


# Initialize FastAPI App
app = FastAPI(
    title = "PTV Timetable API Proxy",
    description = "Signs and forwards requests to the PTV timetable API",
    version = "1.0.0",
    lifespan = lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_credentials = True,
    allow_methods = ['GET'],
    allow_headers = ['*'],
    allow_origins = ['*'],
)


def get_ptv_client(request: Request) -> PtvTimetableClient:
    return request.app.state.ptv_client


async def _dispatch(call: Callable[[], Awaitable[T]]) -> T:
    """
    Runs one client operation and maps its failures onto HTTP errors.

    Argument errors surface when the operation is called, decode and transport
    errors when it is awaited, so the two steps are kept apart.
    """
    try:
        pending = call()
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        return await pending
    except PtvTimetableError as e:
        log.error(f"PTV API call failed: {e}")
        if e.status_code is None:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                                detail="PTV API could not be reached.")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY,
                            detail=f"PTV API returned status {e.status_code} {e.reason_phrase or ''}".strip())
    except ValidationError as e:
        log.error(f"PTV API returned an unexpected payload: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY,
                            detail="PTV API returned a payload that could not be decoded.")
    except LineMapFormatError as e:
        log.error(f"Line map page changed format: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


# Endpoints

@app.get('/', tags = ['Health'])
async def check_health():
    logging.info('Health Check Endpoint was hit.')

    return {
        "status" : "ok",
        "message" : "PTV Timetable API Proxy is running."
    }


@app.get('/healthcheck', tags = ['Health'])
async def ptv_health_check(client: PtvTimetableClient = Depends(get_ptv_client)) -> HealthCheckResponse:
    return await _dispatch(lambda: client.perform_health_check())


@app.get('/stops/nearby', tags = ['Stops'])
async def stops_nearby(
    latitude: float = Query(default=..., ge=-90, le=90),
    longitude: float = Query(default=..., ge=-180, le=180),
    client: PtvTimetableClient = Depends(get_ptv_client),
) -> StopsNearbyResponse:
    return await _dispatch(lambda: client.get_stops_nearby(latitude, longitude))


@app.get('/poi', tags = ['Stops'])
async def points_of_interest(
    poi_types: List[PointOfInterestType] = Query(default=...),
    top_left_latitude: float = Query(default=...),
    top_left_longitude: float = Query(default=...),
    bottom_right_latitude: float = Query(default=...),
    bottom_right_longitude: float = Query(default=...),
    grid_depth: int = Query(default=0, ge=0, le=20),
    limit: int = Query(default=0, ge=0),
    client: PtvTimetableClient = Depends(get_ptv_client),
) -> PointsOfInterestResponse:
    return await _dispatch(lambda: client.get_points_of_interest(
        poi_types,
        top_left_latitude,
        top_left_longitude,
        bottom_right_latitude,
        bottom_right_longitude,
        grid_depth,
        limit,
    ))


@app.get('/search', tags = ['Stops'])
async def search(
    term: str = Query(default=..., min_length=1, description="Stop or line name to look for."),
    client: PtvTimetableClient = Depends(get_ptv_client),
) -> SearchResponse:
    return await _dispatch(lambda: client.search(term))


@app.get('/lines/mode/{transport_type}', tags = ['Lines'])
async def lines_by_mode(
    transport_type: TransportType,
    name: Optional[str] = Query(default=None),
    client: PtvTimetableClient = Depends(get_ptv_client),
) -> LinesByModeResponse:
    return await _dispatch(lambda: client.list_lines_by_mode(transport_type, name))


@app.get('/lines/{line_id}/stops', tags = ['Lines'])
async def stops_for_line(
    line_id: int,
    transport_type: TransportType = Query(default=...),
    client: PtvTimetableClient = Depends(get_ptv_client),
) -> StopsForLineResponse:
    return await _dispatch(lambda: client.list_stops_for_line(transport_type, line_id))


@app.get('/lines/{line_id}/map', tags = ['Lines'])
async def line_map(line_id: int, client: PtvTimetableClient = Depends(get_ptv_client)) -> Response:
    image = await _dispatch(lambda: client.get_line_map(line_id))
    return Response(content=image, media_type="application/octet-stream")


@app.get('/disruptions', tags = ['Disruptions'])
async def disruptions(
    modes: List[DisruptionMode] = Query(default=[]),
    client: PtvTimetableClient = Depends(get_ptv_client),
) -> DisruptionsResponse:
    return await _dispatch(lambda: client.list_disruptions(modes))


@app.get('/departures/broad', tags = ['Departures'])
async def broad_next_departures(
    transport_type: TransportType = Query(default=...),
    stop_id: int = Query(default=..., ge=0),
    limit: int = Query(default=5, ge=0),
    client: PtvTimetableClient = Depends(get_ptv_client),
) -> NextDeparturesResponse:
    return await _dispatch(lambda: client.list_broad_next_departures(transport_type, stop_id, limit))


@app.get('/departures/specific', tags = ['Departures'])
async def specific_next_departures(
    transport_type: TransportType = Query(default=...),
    line_id: int = Query(default=..., ge=0),
    stop_id: int = Query(default=..., ge=0),
    direction_id: int = Query(default=..., ge=0),
    limit: int = Query(default=5, ge=0),
    for_utc: Optional[datetime] = Query(default=None),
    client: PtvTimetableClient = Depends(get_ptv_client),
) -> NextDeparturesResponse:
    return await _dispatch(lambda: client.list_specific_next_departures(
        transport_type, line_id, stop_id, direction_id, limit, for_utc
    ))


@app.get('/stopping-pattern', tags = ['Departures'])
async def stopping_pattern(
    transport_type: TransportType = Query(default=...),
    run_id: int = Query(default=..., ge=0),
    stop_id: int = Query(default=..., ge=0),
    for_utc: datetime = Query(default=...),
    client: PtvTimetableClient = Depends(get_ptv_client),
) -> StoppingPatternResponse:
    return await _dispatch(lambda: client.get_stopping_pattern(transport_type, run_id, stop_id, for_utc))


if __name__ == "__main__":
    uvicorn.run("ptv_api.main:app", host="localhost", port=9000, reload=True)
