import logging
import re
from rich.logging import RichHandler
import os
from datetime import datetime

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(module)s.%(funcName)s:%(lineno)d] - %(message)s"

# devid and signature travel in every signed URL; keep them out of log files
_CREDENTIAL_PARAM = re.compile(r"(devid|signature)=[^&\s]+", re.IGNORECASE)


def redact_credentials(text: str) -> str:
    return _CREDENTIAL_PARAM.sub(lambda m: f"{m.group(1)}=***", text)


class CredentialRedactingFilter(logging.Filter):
    """Masks devid/signature query values in every record passing through a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_credentials(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(log_dir: str = "logs", console_level: str = "INFO") -> str:
    """
    Configures the root logger for file and console output.

    Returns the path of the log file created for this run.
    """
    console_level = console_level.upper()

    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    file_name = f"{log_dir}/ptv_api_run_{timestamp}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    redactor = CredentialRedactingFilter()

    file_handler = logging.FileHandler(file_name, mode='w')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
    file_handler.addFilter(redactor)
    root_logger.addHandler(file_handler)

    console_handler = RichHandler(rich_tracebacks=True, markup=False)
    console_handler.setLevel(console_level)
    console_handler.addFilter(redactor)
    root_logger.addHandler(console_handler)

    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return file_name
