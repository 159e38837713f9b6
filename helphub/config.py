"""YAML configuration with dotted, case-insensitive key lookup."""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from helphub.logger import Logger

_UNIT_NANOSECONDS = {
    "ns": Decimal(1),
    "us": Decimal(1_000),
    "µs": Decimal(1_000),
    "μs": Decimal(1_000),
    "ms": Decimal(1_000_000),
    "s": Decimal(1_000_000_000),
    "m": Decimal(60_000_000_000),
    "h": Decimal(3_600_000_000_000),
}
_NUMBER = r"(\d+\.?\d*|\.\d+)"
_UNIT = r"(ns|us|µs|μs|ms|s|m|h)"
_DURATION_FULL = re.compile(rf"(?:{_NUMBER}{_UNIT})+")
_DURATION_PART = re.compile(rf"{_NUMBER}{_UNIT}")
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"1h30m"``, ``"1.5s"`` or ``"300ms"``."""
    body = text
    sign = 1
    if body[:1] in ("+", "-"):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body or not _DURATION_FULL.fullmatch(body):
        raise ValueError(f"invalid duration {text!r}")
    nanoseconds = sum(
        (Decimal(number) * _UNIT_NANOSECONDS[unit] for number, unit in _DURATION_PART.findall(body)),
        Decimal(0),
    )
    return timedelta(microseconds=sign * (int(nanoseconds) // 1000))


def _lower_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key).lower(): _lower_keys(item) for key, item in value.items()}
    return value


class Config:
    """Read-only settings looked up by dotted keys such as ``server.port``."""

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data = _lower_keys(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self._data
        for part in key.lower().split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_string(self, key: str) -> str:
        value = self.get(key)
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (str, int, float)):
            return str(value)
        return ""

    def get_int(self, key: str) -> int:
        value = self.get(key)
        if isinstance(value, (bool, int)):
            return int(value)
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return 0
        return 0

    def get_bool(self, key: str) -> bool:
        value = self.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            return value.strip() in _TRUE
        return False

    def get_duration(self, key: str) -> timedelta:
        """Return a duration; bare numbers count nanoseconds."""
        value = self.get(key)
        if isinstance(value, timedelta):
            return value
        if isinstance(value, bool) or value is None:
            return timedelta(0)
        if isinstance(value, (int, float)):
            return timedelta(microseconds=int(value) // 1000)
        if isinstance(value, str):
            text = value.strip()
            try:
                if any(char in "nsuµμmh" for char in text):
                    return parse_duration(text)
                return timedelta(microseconds=int(Decimal(text)) // 1000)
            except (ValueError, InvalidOperation):
                return timedelta(0)
        return timedelta(0)


def _read_config(directory: Path, name: str) -> dict[str, Any]:
    for extension in ("yaml", "yml"):
        candidate = directory / f"{name}.{extension}"
        if candidate.is_file():
            with candidate.open(encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
            if data is None:
                return {}
            if not isinstance(data, Mapping):
                raise ValueError(f"{candidate} does not hold a mapping")
            return dict(data)
    raise FileNotFoundError(f'Config File "{name}" Not Found in "[{directory}]"')


def init_config(name: str, path: str | Path, log: Logger) -> Config:
    """Load ``<path>/<name>.yaml``; panic through ``log`` if it cannot be read."""
    try:
        data = _read_config(Path(path), name)
    except (OSError, yaml.YAMLError, ValueError) as exc:
        log.panic(None, f"Failed to read config: {exc}")
    return Config(data)