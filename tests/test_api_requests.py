from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import get_args

import pytest
from pydantic import ValidationError

from ptv_api.api_requests import (
    AnyApiRequest,
    BroadNextDeparturesRequest,
    DisruptionsRequest,
    HealthCheckRequest,
    LinesByModeRequest,
    PointsOfInterestRequest,
    SearchRequest,
    SpecificNextDeparturesRequest,
    StoppingPatternRequest,
    StopsForLineRequest,
    StopsNearbyRequest,
    format_utc,
)
from ptv_api.schemas import DisruptionMode, PointOfInterestType, TransportType


def test_format_utc_treats_naive_as_utc_and_converts_aware() -> None:
    assert format_utc(datetime(2014, 3, 1, 8, 30, 5)) == "2014-03-01T08:30:05Z"
    melbourne = timezone(timedelta(hours=11))
    assert format_utc(datetime(2014, 3, 1, 19, 30, 5, tzinfo=melbourne)) == "2014-03-01T08:30:05Z"


def test_health_check_renders_timestamp() -> None:
    request = HealthCheckRequest(timestamp=datetime(2014, 1, 2, 3, 4, 5))
    assert request.build_request_url() == "/v2/healthcheck?timestamp=2014-01-02T03:04:05Z"


def test_rendering_is_deterministic() -> None:
    request = HealthCheckRequest()
    assert request.build_request_url() == request.build_request_url()


def test_stops_nearby() -> None:
    request = StopsNearbyRequest(latitude=-37.8183, longitude=144.966965)
    assert request.build_request_url() == "/v2/nearme/latitude/-37.8183/longitude/144.966965"


def test_points_of_interest() -> None:
    request = PointsOfInterestRequest(
        poi_types=[PointOfInterestType.TRAIN, PointOfInterestType.TICKET_OUTLET],
        top_left_latitude=-37.5,
        top_left_longitude=144.5,
        bottom_right_latitude=-38.0,
        bottom_right_longitude=145.5,
        grid_depth=3,
        limit=10,
    )
    assert request.build_request_url() == (
        "/v2/poi/0,100/lat1/-37.5/long1/144.5/lat2/-38.0/long2/145.5/griddepth/3/limit/10"
    )


def test_points_of_interest_needs_a_type() -> None:
    with pytest.raises(ValidationError):
        PointsOfInterestRequest(
            poi_types=[],
            top_left_latitude=0,
            top_left_longitude=0,
            bottom_right_latitude=0,
            bottom_right_longitude=0,
            grid_depth=0,
            limit=0,
        )


def test_search_percent_encodes_term() -> None:
    assert SearchRequest(search_term="Flinders St/Swanston").build_request_url() == (
        "/v2/search/Flinders%20St%2FSwanston"
    )


def test_search_rejects_blank_term() -> None:
    with pytest.raises(ValidationError):
        SearchRequest(search_term="   ")


def test_broad_next_departures() -> None:
    request = BroadNextDeparturesRequest(transport_type=TransportType.TRAIN, stop_id=1071, limit=5)
    assert request.build_request_url() == "/v2/mode/0/stop/1071/departures/by-destination/limit/5"


def test_lines_by_mode_with_and_without_filter() -> None:
    assert LinesByModeRequest(transport_type=TransportType.TRAM).build_request_url() == "/v2/lines/mode/1"
    filtered = LinesByModeRequest(transport_type=TransportType.BUS, name_filter="Box Hill")
    assert filtered.build_request_url() == "/v2/lines/mode/2?name=Box%20Hill"


def test_disruptions_lists_given_modes_in_order() -> None:
    request = DisruptionsRequest(disruption_modes=[DisruptionMode.METRO_TRAIN, DisruptionMode.GENERAL])
    assert request.build_request_url() == "/v2/disruptions/modes/metro-train,general"


def test_disruptions_without_modes_asks_for_all() -> None:
    assert DisruptionsRequest().build_request_url() == (
        "/v2/disruptions/modes/general,metro-bus,metro-train,metro-tram,"
        "regional-bus,regional-coach,regional-train,telebus"
    )


def test_specific_next_departures_optional_time() -> None:
    request = SpecificNextDeparturesRequest(
        transport_type=TransportType.TRAIN, line_id=1, stop_id=1071, direction_id=2, limit=3
    )
    assert request.build_request_url() == "/v2/mode/0/line/1/stop/1071/directionid/2/departures/all/limit/3"

    timed = request.model_copy(update={"for_utc": datetime(2014, 5, 6, 7, 8, 9, tzinfo=timezone.utc)})
    assert timed.build_request_url().endswith("/limit/3?for_utc=2014-05-06T07:08:09Z")


def test_stopping_pattern() -> None:
    request = StoppingPatternRequest(
        transport_type=TransportType.VLINE, run_id=42, stop_id=1071, for_utc=datetime(2014, 1, 1)
    )
    assert request.build_request_url() == "/v2/mode/3/run/42/stop/1071/stopping-pattern?for_utc=2014-01-01T00:00:00Z"


def test_stops_for_line() -> None:
    request = StopsForLineRequest(transport_type=TransportType.NIGHTRIDER, line_id=7)
    assert request.build_request_url() == "/v2/mode/4/line/7/stops-for-line"


def test_descriptors_are_immutable() -> None:
    request = StopsForLineRequest(transport_type=TransportType.TRAIN, line_id=7)
    with pytest.raises(ValidationError):
        request.line_id = 8  # type: ignore[misc]


def test_descriptor_rejects_out_of_range_values() -> None:
    with pytest.raises(ValidationError):
        StopsNearbyRequest(latitude=-91, longitude=0)
    with pytest.raises(ValidationError):
        BroadNextDeparturesRequest(transport_type=TransportType.TRAIN, stop_id=-1, limit=1)


@pytest.mark.parametrize("descriptor_type", get_args(AnyApiRequest))
def test_every_descriptor_is_a_frozen_renderer(descriptor_type) -> None:
    assert callable(getattr(descriptor_type, "build_request_url", None))
    assert descriptor_type.model_config.get("frozen") is True
