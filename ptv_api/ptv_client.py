import httpx
import logging
from bs4 import BeautifulSoup
from datetime import datetime
from pydantic import TypeAdapter
from typing import Awaitable, Iterable, Optional, Type, TypeVar
from urllib.parse import urljoin

from . import config
from .api_requests import (
    ApiRequest,
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
)
from .errors import PtvTimetableError, LineMapFormatError, PtvConfigurationError
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
from .signing import sign_request_url

log = logging.getLogger(__name__)

T = TypeVar("T")

ROUTE_MAP_ELEMENT_ID = "route-map"


class PtvTimetableClient:
    """
    Async client for the PTV timetable API.

    One httpx.AsyncClient is shared by every call for connection reuse; httpx
    transparently decodes gzip/deflate bodies. Pass `http_client` to share a
    pool owned elsewhere (it is then left open by `aclose`).

    API operations build their request descriptor immediately, so invalid
    arguments raise at call time, before anything is sent. The returned
    awaitable performs the signed request.
    """

    def __init__(
        self,
        developer_id: str,
        security_key: str,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = config.PTV_BASE_URL,
        map_url_template: str = config.PTV_MAP_URL_TEMPLATE,
        timeout_seconds: float = config.PTV_HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not developer_id or not security_key:
            raise PtvConfigurationError("Both a developer id and a security key are required.")

        self._developer_id = developer_id
        self._security_key = security_key
        self._base_url = base_url.rstrip("/")
        self._map_url_template = map_url_template

        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=timeout_seconds,
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_env(cls, **kwargs) -> "PtvTimetableClient":
        """Builds a client from PTV_DEVELOPER_ID / PTV_SECURITY_KEY."""
        if not config.PTV_DEVELOPER_ID or not config.PTV_SECURITY_KEY:
            raise PtvConfigurationError("PTV_DEVELOPER_ID and PTV_SECURITY_KEY must be set.")
        return cls(config.PTV_DEVELOPER_ID, config.PTV_SECURITY_KEY, **kwargs)

    @property
    def developer_id(self) -> str:
        return self._developer_id

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "PtvTimetableClient":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.aclose()

    # API operations

    def perform_health_check(self, timestamp: Optional[datetime] = None) -> Awaitable[HealthCheckResponse]:
        request = HealthCheckRequest(timestamp=timestamp) if timestamp is not None else HealthCheckRequest()
        return self.execute(request, HealthCheckResponse)

    def get_stops_nearby(self, latitude: float, longitude: float) -> Awaitable[StopsNearbyResponse]:
        return self.execute(StopsNearbyRequest(latitude=latitude, longitude=longitude), StopsNearbyResponse)

    def get_points_of_interest(
        self,
        poi_types: Iterable[PointOfInterestType],
        top_left_latitude: float,
        top_left_longitude: float,
        bottom_right_latitude: float,
        bottom_right_longitude: float,
        grid_depth: int,
        limit: int,
    ) -> Awaitable[PointsOfInterestResponse]:
        if poi_types is None:
            raise ValueError("poi_types must not be None")

        request = PointsOfInterestRequest(
            poi_types=tuple(poi_types),
            top_left_latitude=top_left_latitude,
            top_left_longitude=top_left_longitude,
            bottom_right_latitude=bottom_right_latitude,
            bottom_right_longitude=bottom_right_longitude,
            grid_depth=grid_depth,
            limit=limit,
        )
        return self.execute(request, PointsOfInterestResponse)

    def search(self, search_term: str) -> Awaitable[SearchResponse]:
        return self.execute(SearchRequest(search_term=search_term), SearchResponse)

    def list_broad_next_departures(
        self, transport_type: TransportType, stop_id: int, limit: int
    ) -> Awaitable[NextDeparturesResponse]:
        request = BroadNextDeparturesRequest(transport_type=transport_type, stop_id=stop_id, limit=limit)
        return self.execute(request, NextDeparturesResponse)

    def list_lines_by_mode(
        self, transport_type: TransportType, name_filter: Optional[str] = None
    ) -> Awaitable[LinesByModeResponse]:
        request = LinesByModeRequest(transport_type=transport_type, name_filter=name_filter)
        return self.execute(request, LinesByModeResponse)

    def list_disruptions(self, disruption_modes: Iterable[DisruptionMode] = ()) -> Awaitable[DisruptionsResponse]:
        """
        Lists current disruptions for the given modes. An empty collection asks for every mode.

        Raises:
            ValueError: `disruption_modes` is None. Raised before any request is made.
        """
        if disruption_modes is None:
            raise ValueError("disruption_modes must not be None")

        return self.execute(DisruptionsRequest(disruption_modes=tuple(disruption_modes)), DisruptionsResponse)

    def list_specific_next_departures(
        self,
        transport_type: TransportType,
        line_id: int,
        stop_id: int,
        direction_id: int,
        limit: int,
        for_utc: Optional[datetime] = None,
    ) -> Awaitable[NextDeparturesResponse]:
        request = SpecificNextDeparturesRequest(
            transport_type=transport_type,
            line_id=line_id,
            stop_id=stop_id,
            direction_id=direction_id,
            limit=limit,
            for_utc=for_utc,
        )
        return self.execute(request, NextDeparturesResponse)

    def get_stopping_pattern(
        self, transport_type: TransportType, run_id: int, stop_id: int, for_utc: datetime
    ) -> Awaitable[StoppingPatternResponse]:
        request = StoppingPatternRequest(transport_type=transport_type, run_id=run_id, stop_id=stop_id, for_utc=for_utc)
        return self.execute(request, StoppingPatternResponse)

    def list_stops_for_line(self, transport_type: TransportType, line_id: int) -> Awaitable[StopsForLineResponse]:
        return self.execute(StopsForLineRequest(transport_type=transport_type, line_id=line_id), StopsForLineResponse)

    # Line map

    async def get_line_map(self, line_id: int) -> bytes:
        """
        Downloads the map image of a line.

        The API has no map endpoint: the public line page is scraped for the
        `route-map` image, which is then fetched without signing.

        Raises:
            PtvTimetableError: either page or image could not be fetched.
            LineMapFormatError: the page has no route-map image (markup changed upstream).
        """
        page_url = self._map_url_template.format(line_id=int(line_id))
        log.info(f"Resolving line map for line {line_id} from {page_url}")

        page = await self._get(page_url)

        # The page is served with one trailing byte that is not part of the document
        html = page.content[:-1].decode("utf-8", errors="replace")

        soup = BeautifulSoup(html, "lxml")
        route_map = soup.find(id=ROUTE_MAP_ELEMENT_ID)
        if route_map is None:
            raise LineMapFormatError(f"No element with id '{ROUTE_MAP_ELEMENT_ID}' on {page_url}")

        map_src = route_map.get("src")
        if not map_src:
            raise LineMapFormatError(f"Element '{ROUTE_MAP_ELEMENT_ID}' on {page_url} has no src attribute")

        try:
            map_url = str(httpx.URL(urljoin(page_url, str(map_src))))
        except (ValueError, httpx.InvalidURL) as e:
            raise LineMapFormatError(f"Element '{ROUTE_MAP_ELEMENT_ID}' on {page_url} has an invalid src: {map_src!r}") from e

        log.debug(f"Line {line_id} map image found at {map_url}")

        image = await self._get(map_url)
        return image.content

    # Dispatch

    def build_signed_url(self, request: ApiRequest) -> str:
        """Renders and signs a descriptor, returning the absolute request URI."""
        signed_url = sign_request_url(self._developer_id, self._security_key, request.build_request_url())
        return self._base_url + signed_url

    async def execute(self, request: ApiRequest, response_type: Type[T]) -> T:
        """
        Signs and sends one API request, then decodes the JSON body as `response_type`.

        Raises:
            PtvTimetableError: no response, or a non-success status.
            pydantic.ValidationError: the body is not valid JSON for `response_type`.
                Deliberately not wrapped so callers can tell a malformed payload
                from an unreachable API.
        """
        uri = self.build_signed_url(request)
        log.info(f"PTV request {request.__class__.__name__}: {request.build_request_url()}")

        response = await self._get(uri, log_url=request.build_request_url())

        return TypeAdapter(response_type).validate_json(response.text)

    async def _get(self, uri: str, log_url: Optional[str] = None) -> httpx.Response:
        """
        GET with httpx failures mapped to PtvTimetableError.

        Signed URIs carry devid and signature, so callers pass the unsigned
        `log_url` to be written to the log instead.
        """
        log_url = log_url or uri
        try:
            response = await self._http_client.get(uri)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.warning(f"PTV request failed with status {e.response.status_code}: {log_url}")
            raise PtvTimetableError(
                "An exception occurred querying the PTV API",
                cause=e,
                status_code=e.response.status_code,
                reason_phrase=e.response.reason_phrase,
                request_uri=uri,
            ) from e
        except httpx.RequestError as e:
            log.error(f"PTV request could not be completed: {e.__class__.__name__}: {log_url}")
            raise PtvTimetableError(
                "An exception occurred querying the PTV API",
                cause=e,
                request_uri=uri,
            ) from e

        return response
