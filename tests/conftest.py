from __future__ import annotations

from pathlib import Path
from typing import Callable, List

import sys

import httpx
import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from ptv_api.ptv_client import PtvTimetableClient

DEVELOPER_ID = "dev1"
SECURITY_KEY = "sek"
BASE_URL = "http://timetableapi.example"
MAP_URL_TEMPLATE = "http://maps.example/route/view/{line_id}"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def sent_requests() -> List[httpx.Request]:
    """Every request that reached the mock transport, in order."""
    return []


@pytest.fixture
def make_client(sent_requests: List[httpx.Request]) -> Callable[[Handler], PtvTimetableClient]:
    """Builds a client whose transport is answered by `handler` and recorded in `sent_requests`."""

    def factory(handler: Handler) -> PtvTimetableClient:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            sent_requests.append(request)
            return handler(request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        return PtvTimetableClient(
            DEVELOPER_ID,
            SECURITY_KEY,
            http_client=http_client,
            base_url=BASE_URL,
            map_url_template=MAP_URL_TEMPLATE,
        )

    return factory
