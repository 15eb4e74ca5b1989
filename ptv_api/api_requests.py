from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Tuple, Union, Protocol
from datetime import datetime, timezone
from urllib.parse import quote

from .schemas import TransportType, PointOfInterestType, DisruptionMode


class ApiRequest(Protocol):
    """
    Defines the standard interface for a PTV API request descriptor.

    Any descriptor renders itself into a relative request URL (path plus an
    optional query string). Rendering must be deterministic and depend only on
    the descriptor's own fields; the client appends devid and signature later.
    """

    def build_request_url(self) -> str:
        ...


def format_utc(value: datetime) -> str:
    """Formats a datetime the way the API expects. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _Descriptor(BaseModel):
    model_config = ConfigDict(frozen=True)


# Descriptors

class HealthCheckRequest(_Descriptor):
    timestamp: datetime = Field(default_factory=_utc_now, description="Client clock, checked by the server.")

    def build_request_url(self) -> str:
        return f"/v2/healthcheck?timestamp={format_utc(self.timestamp)}"


class StopsNearbyRequest(_Descriptor):
    latitude: float = Field(default=..., ge=-90, le=90)
    longitude: float = Field(default=..., ge=-180, le=180)

    def build_request_url(self) -> str:
        return f"/v2/nearme/latitude/{self.latitude}/longitude/{self.longitude}"


class PointsOfInterestRequest(_Descriptor):
    """POIs inside a bounding box, clustered on a grid of `grid_depth` cells."""

    poi_types: Tuple[PointOfInterestType, ...] = Field(default=..., min_length=1)
    top_left_latitude: float = Field(default=..., ge=-90, le=90)
    top_left_longitude: float = Field(default=..., ge=-180, le=180)
    bottom_right_latitude: float = Field(default=..., ge=-90, le=90)
    bottom_right_longitude: float = Field(default=..., ge=-180, le=180)
    grid_depth: int = Field(default=..., ge=0, le=20)
    limit: int = Field(default=..., ge=0, description="Minimum POIs per cluster; 0 returns every POI.")

    def build_request_url(self) -> str:
        types = ",".join(str(int(t)) for t in self.poi_types)
        return (
            f"/v2/poi/{types}"
            f"/lat1/{self.top_left_latitude}/long1/{self.top_left_longitude}"
            f"/lat2/{self.bottom_right_latitude}/long2/{self.bottom_right_longitude}"
            f"/griddepth/{self.grid_depth}/limit/{self.limit}"
        )


class SearchRequest(_Descriptor):
    search_term: str = Field(default=..., description="Free text matched against stop and line names.")

    @field_validator("search_term")
    @classmethod
    def term_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("search term must not be empty")
        return v

    def build_request_url(self) -> str:
        return f"/v2/search/{quote(self.search_term, safe='')}"


class BroadNextDeparturesRequest(_Descriptor):
    transport_type: TransportType
    stop_id: int = Field(default=..., ge=0)
    limit: int = Field(default=..., ge=0)

    def build_request_url(self) -> str:
        return (
            f"/v2/mode/{int(self.transport_type)}/stop/{self.stop_id}"
            f"/departures/by-destination/limit/{self.limit}"
        )


class LinesByModeRequest(_Descriptor):
    transport_type: TransportType
    name_filter: Optional[str] = Field(default=None, description="Only return lines whose name contains this text.")

    def build_request_url(self) -> str:
        url = f"/v2/lines/mode/{int(self.transport_type)}"
        if self.name_filter:
            url += f"?name={quote(self.name_filter, safe='')}"
        return url


class DisruptionsRequest(_Descriptor):
    disruption_modes: Tuple[DisruptionMode, ...] = Field(default=())

    def build_request_url(self) -> str:
        # No explicit mode means every mode
        modes = self.disruption_modes or tuple(DisruptionMode)
        return f"/v2/disruptions/modes/{','.join(m.value for m in modes)}"


class SpecificNextDeparturesRequest(_Descriptor):
    transport_type: TransportType
    line_id: int = Field(default=..., ge=0)
    stop_id: int = Field(default=..., ge=0)
    direction_id: int = Field(default=..., ge=0)
    limit: int = Field(default=..., ge=0)
    for_utc: Optional[datetime] = Field(default=None, description="Departures after this time instead of now.")

    def build_request_url(self) -> str:
        url = (
            f"/v2/mode/{int(self.transport_type)}/line/{self.line_id}/stop/{self.stop_id}"
            f"/directionid/{self.direction_id}/departures/all/limit/{self.limit}"
        )
        if self.for_utc is not None:
            url += f"?for_utc={format_utc(self.for_utc)}"
        return url


class StoppingPatternRequest(_Descriptor):
    transport_type: TransportType
    run_id: int = Field(default=..., ge=0)
    stop_id: int = Field(default=..., ge=0)
    for_utc: datetime

    def build_request_url(self) -> str:
        return (
            f"/v2/mode/{int(self.transport_type)}/run/{self.run_id}/stop/{self.stop_id}"
            f"/stopping-pattern?for_utc={format_utc(self.for_utc)}"
        )


class StopsForLineRequest(_Descriptor):
    transport_type: TransportType
    line_id: int = Field(default=..., ge=0)

    def build_request_url(self) -> str:
        return f"/v2/mode/{int(self.transport_type)}/line/{self.line_id}/stops-for-line"


# Closed set of every descriptor the client knows how to dispatch
AnyApiRequest = Union[
    HealthCheckRequest,
    StopsNearbyRequest,
    PointsOfInterestRequest,
    SearchRequest,
    BroadNextDeparturesRequest,
    LinesByModeRequest,
    DisruptionsRequest,
    SpecificNextDeparturesRequest,
    StoppingPatternRequest,
    StopsForLineRequest,
]
