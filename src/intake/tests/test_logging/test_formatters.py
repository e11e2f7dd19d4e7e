import json
import logging
import sys

from intake.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record(exc_info=None):
    return logging.LogRecord("intake", logging.INFO, __file__, 10, "hello %s", ("tester",), exc_info)


def test_json_formatter_basic_fields():
    rec = make_record()
    rec.custom = "value"
    rec.request_id = "req-1"

    data = json.loads(JsonFormatter(env="testing", service="svc").format(rec))

    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["logger"] == "intake"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert data["request_id"] == "req-1"
    assert data["custom"] == "value"
    assert "timestamp" in data
    assert "version" in data


def test_json_formatter_non_serializable_extra():
    rec = make_record()

    class X:
        def __repr__(self):
            return "<X>"

    rec.obj = X()
    data = json.loads(JsonFormatter(env="dev").format(rec))
    assert data["obj"] == "<X>"


def test_json_formatter_includes_exception():
    try:
        raise ValueError("kaboom")
    except ValueError:
        rec = make_record(exc_info=sys.exc_info())

    data = json.loads(JsonFormatter(env="dev").format(rec))
    assert "ValueError: kaboom" in data["exc_info"]


def test_color_formatter_line():
    rec = make_record()
    rec.request_id = "rid-9"

    line = ColorFormatter().format(rec)

    assert "\033[32mINFO\033[0m" in line
    assert line.endswith("| intake | rid-9 | hello tester")
