from .ptv_client import PtvTimetableClient
from .errors import PtvTimetableError, LineMapFormatError, PtvConfigurationError
from .signing import compute_signature, sign_request_url
from .schemas import TransportType, PointOfInterestType, DisruptionMode

__all__ = [
    "PtvTimetableClient",
    "PtvTimetableError",
    "LineMapFormatError",
    "PtvConfigurationError",
    "compute_signature",
    "sign_request_url",
    "TransportType",
    "PointOfInterestType",
    "DisruptionMode",
]
