import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from helphub.logger import LogPanic, Logger, init_logger

NAME = "tests.logger"


@pytest.fixture
def log(caplog):
    caplog.set_level(logging.DEBUG, logger=NAME)
    return Logger(logging.getLogger(NAME))


def _parse_time(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_info_records_message_and_time(log, caplog):
    log.info(None, "hello")
    record = caplog.records[-1]
    assert record.getMessage() == "hello"
    assert record.levelno == logging.INFO
    stamp = _parse_time(record.fields["time"])
    assert abs(datetime.now(timezone.utc) - stamp) < timedelta(minutes=1)


def test_request_id_taken_from_context(log, caplog):
    log.warn({"x-request-id": "req-1"}, "warned")
    record = caplog.records[-1]
    assert record.fields["x-request-id"] == "req-1"
    assert record.levelno == logging.WARNING


def test_non_string_request_id_ignored(log, caplog):
    log.error({"x-request-id": 42}, "failed")
    assert "x-request-id" not in caplog.records[-1].fields


def test_time_since_request(log, caplog):
    start = datetime.now(timezone.utc) - timedelta(milliseconds=50)
    log.debug({"request-start-time": start}, "timed")
    elapsed = caplog.records[-1].fields["time-since-request"]
    assert isinstance(elapsed, float)
    assert elapsed >= 50.0


def test_named_extends_logger_name(log):
    child = log.named("user")
    assert child.logger.name == NAME + ".user"
    assert log.logger.name == NAME


def test_with_fields_binds_without_touching_original(log, caplog):
    bound = log.with_fields(component="api")
    bound.info(None, "bound")
    assert caplog.records[-1].fields["component"] == "api"
    log.info(None, "plain")
    assert "component" not in caplog.records[-1].fields


def test_call_fields_override_bound(log, caplog):
    log.with_fields(component="api").info(None, "msg", component="db")
    assert caplog.records[-1].fields["component"] == "db"


def test_panic_logs_and_raises(log, caplog):
    with pytest.raises(LogPanic, match="broken"):
        log.panic(None, "broken")
    assert caplog.records[-1].levelno == logging.CRITICAL


def test_fatal_exits_with_status_one(log, caplog):
    with pytest.raises(SystemExit) as info:
        log.fatal(None, "dead")
    assert info.value.code == 1
    assert caplog.records[-1].getMessage() == "dead"


def test_debug_filtered_below_level(caplog):
    caplog.set_level(logging.INFO, logger=NAME + ".quiet")
    quiet = Logger(logging.getLogger(NAME + ".quiet"))
    quiet.debug(None, "hidden")
    assert [r for r in caplog.records if r.getMessage() == "hidden"] == []


def test_init_logger_is_idempotent_and_info_level():
    first = init_logger()
    count = len(first.logger.handlers)
    second = init_logger()
    assert len(second.logger.handlers) == count
    assert second.logger.isEnabledFor(logging.INFO)
    assert not second.logger.isEnabledFor(logging.DEBUG)


def test_init_logger_formats_json():
    log = init_logger()
    handler = log.logger.handlers[-1]
    record = logging.makeLogRecord(
        {"name": log.logger.name, "msg": "started", "levelno": logging.INFO,
         "levelname": "INFO", "fields": {"port": 8000}}
    )
    entry = json.loads(handler.format(record))
    assert entry["msg"] == "started"
    assert entry["port"] == 8000
    assert entry["level"] == "info"