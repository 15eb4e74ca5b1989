from pydantic import BaseModel, ConfigDict, Field, RootModel
from typing import Optional, List, Dict, Union
from datetime import datetime
from enum import Enum, IntEnum


# Enumerations

class TransportType(IntEnum):
    """Transport modes as numbered by the PTV API."""

    TRAIN = 0
    TRAM = 1
    BUS = 2
    VLINE = 3
    NIGHTRIDER = 4


class PointOfInterestType(IntEnum):
    """Point of interest kinds accepted by the POI endpoint. Same numbering as TransportType plus ticket outlets."""

    TRAIN = 0
    TRAM = 1
    BUS = 2
    VLINE = 3
    NIGHTRIDER = 4
    TICKET_OUTLET = 100


class DisruptionMode(str, Enum):
    GENERAL = "general"
    METRO_BUS = "metro-bus"
    METRO_TRAIN = "metro-train"
    METRO_TRAM = "metro-tram"
    REGIONAL_BUS = "regional-bus"
    REGIONAL_COACH = "regional-coach"
    REGIONAL_TRAIN = "regional-train"
    TELEBUS = "telebus"


class PtvModel(BaseModel):
    """Base for every payload model. PTV adds fields over time, unknown ones are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# Building blocks

class Stop(PtvModel):
    """A stop (station, tram stop, bus stop) as returned across PTV endpoints."""

    stop_id: int = Field(default=..., description="PTV stop identifier.")
    location_name: str = Field(default=..., description="Stop name.")
    transport_type: Optional[str] = Field(default=None, description="Mode name, e.g. 'train'.")
    suburb: Optional[str] = Field(default=None, description="Suburb the stop belongs to.")
    lat: Optional[float] = Field(default=None, description="Latitude of the stop.")
    lon: Optional[float] = Field(default=None, description="Longitude of the stop.")
    distance: Optional[float] = Field(default=None, description="Distance from the queried point, when relevant.")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "stop_id": 1071,
                    "location_name": "Flinders Street Station",
                    "transport_type": "train",
                    "suburb": "Melbourne City",
                    "lat": -37.8183,
                    "lon": 144.966965,
                    "distance": 0.0
                }
            ]
        }
    }


class Line(PtvModel):
    line_id: int = Field(default=..., description="PTV line identifier.")
    line_name: str = Field(default=..., description="Full line name.")
    line_number: Optional[str] = Field(default=None, description="Public route number.")
    transport_type: Optional[str] = Field(default=None)
    line_name_short: Optional[str] = Field(default=None)
    line_number_long: Optional[str] = Field(default=None)


class TicketOutlet(PtvModel):
    business_name: str = Field(default=..., description="Name of the outlet.")
    location_name: Optional[str] = Field(default=None, description="Street address.")
    outlet_type: Optional[str] = Field(default=None)
    suburb: Optional[str] = Field(default=None)
    lat: Optional[float] = Field(default=None)
    lon: Optional[float] = Field(default=None)


class Run(PtvModel):
    run_id: int = Field(default=..., description="Identifier of a single trip of a vehicle.")
    transport_type: Optional[str] = Field(default=None)
    num_skipped: Optional[int] = Field(default=None, description="Number of stops skipped (express runs).")
    destination_id: Optional[int] = Field(default=None)
    destination_name: Optional[str] = Field(default=None)


class Direction(PtvModel):
    direction_id: int = Field(default=...)
    direction_name: str = Field(default=...)
    linedir_id: Optional[int] = Field(default=None)
    line: Optional[Line] = Field(default=None)


class Platform(PtvModel):
    realtime_id: Optional[int] = Field(default=None)
    stop: Optional[Stop] = Field(default=None)
    direction: Optional[Direction] = Field(default=None)


class Disruption(PtvModel):
    disruption_id: Optional[int] = Field(default=None)
    title: str = Field(default=..., description="Headline of the disruption.")
    url: Optional[str] = Field(default=None, description="Link to the full notice on ptv.vic.gov.au.")
    description: Optional[str] = Field(default=None)
    published_on: Optional[datetime] = Field(default=None, alias="publishedOn")
    type: Optional[str] = Field(default=None)


class Departure(PtvModel):
    """One departure of a run from a platform. Used by next-departure and stopping-pattern payloads."""

    platform: Optional[Platform] = Field(default=None)
    run: Optional[Run] = Field(default=None)
    time_timetable_utc: Optional[datetime] = Field(default=None, description="Scheduled time (UTC).")
    time_realtime_utc: Optional[datetime] = Field(default=None, description="Real-time estimate (UTC), when available.")
    flags: Optional[str] = Field(default=None)
    disruptions: Optional[List[Disruption]] = Field(default=None)


class SearchResult(PtvModel):
    """A search or near-me hit: 'type' tells whether 'result' is a stop or a line."""

    type: str = Field(default=..., description="'stop' or 'line'.")
    result: Union[Stop, Line] = Field(default=...)


# Operation responses

class HealthCheckResponse(PtvModel):
    security_token_ok: bool = Field(default=False, alias="securityTokenOK")
    client_clock_ok: bool = Field(default=False, alias="clientClockOK")
    memcache_ok: bool = Field(default=False, alias="memcacheOK")
    database_ok: bool = Field(default=False, alias="databaseOK")

    @property
    def is_healthy(self) -> bool:
        return self.security_token_ok and self.client_clock_ok and self.memcache_ok and self.database_ok


class StopsNearbyResponse(RootModel[List[SearchResult]]):
    pass


class SearchResponse(RootModel[List[SearchResult]]):
    pass


class PointsOfInterestResponse(PtvModel):
    locations: List[Union[Stop, TicketOutlet]] = Field(default_factory=list)
    min_lat: Optional[float] = Field(default=None, alias="minLat")
    min_long: Optional[float] = Field(default=None, alias="minLong")
    max_lat: Optional[float] = Field(default=None, alias="maxLat")
    max_long: Optional[float] = Field(default=None, alias="maxLong")
    weighted_lat: Optional[float] = Field(default=None, alias="weightedLat")
    weighted_long: Optional[float] = Field(default=None, alias="weightedLong")
    total_locations: Optional[int] = Field(default=None, alias="totalLocations")


class NextDeparturesResponse(PtvModel):
    values: List[Departure] = Field(default_factory=list)


class StoppingPatternResponse(PtvModel):
    values: List[Departure] = Field(default_factory=list)


class LinesByModeResponse(RootModel[List[Line]]):
    pass


class StopsForLineResponse(RootModel[List[Stop]]):
    pass


class DisruptionsResponse(RootModel[Dict[str, List[Disruption]]]):
    """Disruptions keyed by mode name ('general', 'metro-train', ...)."""

    def for_mode(self, mode: DisruptionMode) -> List[Disruption]:
        return self.root.get(mode.value, [])
