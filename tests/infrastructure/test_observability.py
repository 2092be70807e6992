"""Structured Logging — JSON formatter and idempotent setup."""

import json
import logging

from dtoforge.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "dtoforge.services.compile_validator", logging.DEBUG, __file__, 1,
        "Validator cache miss", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_core_fields():
    log = json.loads(JSONFormatter().format(_record()))
    assert log["level"] == "DEBUG"
    assert log["logger"] == "dtoforge.services.compile_validator"
    assert log["message"] == "Validator cache miss"
    assert "timestamp" in log


def test_json_formatter_surfaces_extras():
    log = json.loads(JSONFormatter().format(_record(cache="validator", override_key="{}", unrelated=1)))
    assert log["cache"] == "validator"
    assert log["override_key"] == "{}"
    assert "unrelated" not in log


def test_setup_logging_idempotent():
    logger = logging.getLogger("dtoforge")
    try:
        setup_logging("DEBUG", "json")
        handler = setup_logging("WARNING", "text")
        named = [h for h in logger.handlers if h.get_name() == "dtoforge"]
        assert named == [handler]
        assert logger.level == logging.WARNING
        assert not isinstance(handler.formatter, JSONFormatter)
    finally:
        for h in list(logger.handlers):
            if h.get_name() == "dtoforge":
                logger.removeHandler(h)
        logger.setLevel(logging.NOTSET)
