import os
from dotenv import load_dotenv
from typing import Optional

load_dotenv()

# "production" in your deployment environment
APP_ENV: str = os.getenv("APP_ENV", "development")

LOG_DIR: str = os.getenv("LOG_DIR", "logs")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Credentials issued by PTV. Never logged.
PTV_DEVELOPER_ID: Optional[str] = os.getenv("PTV_DEVELOPER_ID")
PTV_SECURITY_KEY: Optional[str] = os.getenv("PTV_SECURITY_KEY")

PTV_BASE_URL: str = os.getenv("PTV_BASE_URL", "http://timetableapi.ptv.vic.gov.au")
PTV_MAP_URL_TEMPLATE: str = os.getenv("PTV_MAP_URL_TEMPLATE", "http://ptv.vic.gov.au/route/view/{line_id}")

PTV_HTTP_TIMEOUT_SECONDS: float = float(os.getenv("PTV_HTTP_TIMEOUT_SECONDS", "30.0"))
