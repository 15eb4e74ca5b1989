from __future__ import annotations

import logging

from utils.logging_setup import CredentialRedactingFilter, redact_credentials, setup_logging


def test_redact_credentials_masks_devid_and_signature() -> None:
    text = "GET http://host/v2/lines/mode/0?devid=1000123&signature=ABCDEF0123 failed"
    assert redact_credentials(text) == "GET http://host/v2/lines/mode/0?devid=***&signature=*** failed"


def test_filter_rewrites_formatted_record() -> None:
    record = logging.LogRecord("ptv", logging.INFO, __file__, 1, "uri=%s", ("/v2/x?devid=1&signature=AB",), None)

    assert CredentialRedactingFilter().filter(record) is True
    assert record.getMessage() == "uri=/v2/x?devid=***&signature=***"


def test_setup_logging_writes_redacted_file(tmp_path) -> None:
    root = logging.getLogger()
    previous_handlers = list(root.handlers)
    previous_level = root.level
    try:
        log_file = setup_logging(str(tmp_path), "warning")
        logging.getLogger("ptv_api.test").debug("calling /v2/healthcheck?devid=42&signature=FF")
        for handler in root.handlers:
            handler.flush()

        with open(log_file) as fh:
            content = fh.read()
        assert "devid=***&signature=***" in content
        assert "devid=42" not in content
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = previous_handlers
        root.setLevel(previous_level)
