"""Structured logger that enriches entries with request context."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, NoReturn

REQUEST_ID_KEY = "x-request-id"
REQUEST_START_KEY = "request-start-time"

_ROOT_LOGGER_NAME = "helphub"


class LogPanic(RuntimeError):
    """Raised after a message has been logged at panic level."""


def _rfc3339(moment: datetime) -> str:
    text = moment.isoformat(timespec="seconds")
    return text[: -len("+00:00")] + "Z" if text.endswith("+00:00") else text


def _extract(ctx: Mapping[str, Any] | None) -> dict[str, Any]:
    fields: dict[str, Any] = {"time": _rfc3339(datetime.now().astimezone())}
    if not ctx:
        return fields

    request_id = ctx.get(REQUEST_ID_KEY)
    if isinstance(request_id, str):
        fields[REQUEST_ID_KEY] = request_id

    started = ctx.get(REQUEST_START_KEY)
    if isinstance(started, datetime):
        elapsed = datetime.now(started.tzinfo) - started
        fields["time-since-request"] = float(elapsed // timedelta(milliseconds=1))

    return fields


class Logger:
    """A named logger carrying bound fields and reading request context."""

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger
        self._fields: dict[str, Any] = {}

    def _derive(self, logger: logging.Logger, fields: dict[str, Any]) -> Logger:
        child = Logger(logger)
        child._fields = fields
        return child

    def named(self, name: str) -> Logger:
        """Return a child logger whose name is extended by ``name``."""
        return self._derive(self.logger.getChild(name), dict(self._fields))

    def with_fields(self, **kwargs: Any) -> Logger:
        """Return a logger that adds ``kwargs`` to every entry."""
        return self._derive(self.logger, {**self._fields, **kwargs})

    def _log(self, level: int, ctx: Mapping[str, Any] | None, msg: str, fields: dict[str, Any]) -> None:
        merged = {**self._fields, **_extract(ctx), **fields}
        self.logger.log(level, msg, extra={"fields": merged})

    def debug(self, ctx: Mapping[str, Any] | None, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, ctx, msg, kwargs)

    def info(self, ctx: Mapping[str, Any] | None, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, ctx, msg, kwargs)

    def warn(self, ctx: Mapping[str, Any] | None, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, ctx, msg, kwargs)

    def error(self, ctx: Mapping[str, Any] | None, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, ctx, msg, kwargs)

    def panic(self, ctx: Mapping[str, Any] | None, msg: str, **kwargs: Any) -> NoReturn:
        """Log the message, then raise :class:`LogPanic`."""
        self._log(logging.CRITICAL, ctx, msg, kwargs)
        raise LogPanic(msg)

    def fatal(self, ctx: Mapping[str, Any] | None, msg: str, **kwargs: Any) -> NoReturn:
        """Log the message, then exit the process with status 1."""
        self._log(logging.CRITICAL, ctx, msg, kwargs)
        raise SystemExit(1)


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "level": record.levelname.lower(),
            "ts": record.created,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(getattr(record, "fields", {}))
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class _JSONHandler(logging.StreamHandler):
    def __init__(self) -> None:
        super().__init__()
        self.setFormatter(_JSONFormatter())


def init_logger() -> Logger:
    """Create the production logger: JSON lines at info level and above."""
    base = logging.getLogger(_ROOT_LOGGER_NAME)
    if not any(isinstance(handler, _JSONHandler) for handler in base.handlers):
        base.addHandler(_JSONHandler())
    base.setLevel(logging.INFO)
    base.propagate = False
    return Logger(base)