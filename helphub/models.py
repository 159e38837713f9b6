"""Request, response and user models with their JSON shapes and validation."""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

_ZERO_TIME = "0001-01-01T00:00:00Z"

_EMAIL = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)+$"
)


def _to_jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, Mapping):
        return {key: _to_jsonable(item) for key, item in value.items()}
    return value


def _format_time(moment: datetime | None) -> str:
    if moment is None:
        return _ZERO_TIME
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    minutes_total = int(offset.total_seconds()) // 60
    sign = "+" if minutes_total >= 0 else "-"
    hours, minutes = divmod(abs(minutes_total), 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


@dataclass
class FieldError:
    """The error for one field of a request."""

    name: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description}


@dataclass
class ErrorResponse:
    """Error details returned to a client."""

    code: int
    message: str = ""
    description: str = ""
    stack_trace: str = ""
    field_error: list[FieldError] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.code}
        if self.message:
            out["message"] = self.message
        if self.description:
            out["description"] = self.description
        if self.stack_trace:
            out["stack_trace"] = self.stack_trace
        if self.field_error:
            out["field_error"] = [item.to_dict() for item in self.field_error]
        return out


@dataclass
class MetaData:
    """Paging, sorting and other data accompanying a response."""

    page: int = 0
    per_page: int = 0
    sort: str = ""
    total: int = 0
    extra: Any = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.page:
            out["page"] = self.page
        if self.per_page:
            out["per_page"] = self.per_page
        if self.sort:
            out["sort"] = self.sort
        out["total"] = self.total
        if self.extra is not None:
            out["extra"] = _to_jsonable(self.extra)
        return out


@dataclass
class Response:
    """The envelope of every API response."""

    ok: bool
    meta_data: MetaData | None = None
    data: Any = None
    error: ErrorResponse | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"ok": self.ok}
        if self.meta_data is not None:
            out["meta_data"] = self.meta_data.to_dict()
        if self.data is not None:
            out["data"] = _to_jsonable(self.data)
        if self.error is not None:
            out["error"] = self.error.to_dict()
        return out


class ValidationErrors(ValueError):
    """Per-field validation failures, keyed by field name."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.errors:
            return ""
        return "; ".join(f"{key}: {self.errors[key]}" for key in sorted(self.errors)) + "."


def _raise_failures(checks: Iterable[tuple[str, str | None]]) -> None:
    failures = {name: message for name, message in checks if message}
    if failures:
        raise ValidationErrors(failures)


def _required(value: str, message: str) -> str | None:
    return None if value else message


def _string_fields(data: Any, names: Iterable[str]) -> dict[str, str]:
    if not isinstance(data, Mapping):
        raise ValueError("request body must be a JSON object")
    values: dict[str, str] = {}
    for name in names:
        value = data.get(name)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValueError(f"{name} must be a string")
        values[name] = value
    return values


@dataclass
class User:
    """A stored user."""

    id: uuid.UUID = field(default_factory=lambda: uuid.UUID(int=0))
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    email: str = ""
    status: str = ""
    created_at: datetime | None = None
    deleted_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": str(self.id)}
        names = {
            "first_name": self.first_name,
            "middle_name": self.middle_name,
            "last_name": self.last_name,
            "email": self.email,
            "status": self.status,
        }
        out.update((key, value) for key, value in names.items() if value)
        out["created_at"] = _format_time(self.created_at)
        out["deleted_at"] = _format_time(self.deleted_at)
        out["updated_at"] = _format_time(self.updated_at)
        return out


@dataclass
class RegisterUser:
    """The details needed to register a user."""

    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    email: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> RegisterUser:
        return cls(**_string_fields(data, ("first_name", "middle_name", "last_name", "email")))

    def validate(self) -> None:
        """Raise :class:`ValidationErrors` if any field is missing or malformed."""
        email_error = _required(self.email, "email is required")
        if email_error is None and not _EMAIL.match(self.email):
            email_error = "email is not valid"
        _raise_failures(
            [
                ("first_name", _required(self.first_name, "first name is required")),
                ("middle_name", _required(self.middle_name, "middle name is required")),
                ("last_name", _required(self.last_name, "last name is required")),
                ("email", email_error),
            ]
        )


@dataclass
class UpdateUser:
    """The user details that can be changed."""

    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> UpdateUser:
        return cls(**_string_fields(data, ("first_name", "middle_name", "last_name")))

    def validate(self) -> None:
        """Raise :class:`ValidationErrors` if any field is missing."""
        _raise_failures(
            [
                ("first_name", _required(self.first_name, "first name is required")),
                ("middle_name", _required(self.middle_name, "middle name is required")),
                ("last_name", _required(self.last_name, "last name is required")),
            ]
        )