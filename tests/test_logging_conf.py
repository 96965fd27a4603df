import json
import logging

from filegate.logging_conf import JsonFormatter, get_logger, setup_logging


def _record(msg, **extra) -> logging.LogRecord:
    record = logging.LogRecord("filegate.test", logging.INFO, __file__, 1, msg, (), None)
    record.__dict__.update(extra)
    return record


def test_formatter_merges_extras():
    line = JsonFormatter().format(_record("token.issue", event="token_issue", expiry_ms=None))
    payload = json.loads(line)
    assert payload["message"] == "token.issue"
    assert payload["event"] == "token_issue"
    assert payload["expiry_ms"] is None
    assert payload["level"] == "INFO"
    assert "lineno" not in payload and "args" not in payload


def test_formatter_keeps_core_keys_and_stringifies_unknown_types():
    payload = json.loads(JsonFormatter().format(_record("x", level="spoofed", path=object())))
    assert payload["level"] == "INFO"
    assert payload["path"].startswith("<object")


def test_get_logger_namespace():
    assert get_logger().name == "filegate"
    assert get_logger("service.storage").name == "filegate.service.storage"


def test_setup_logging_is_idempotent():
    setup_logging()
    setup_logging()
    ours = [h for h in logging.getLogger().handlers if h.get_name() == "filegate.json"]
    assert len(ours) == 1
    assert logging.getLogger("uvicorn.access").propagate is True
