"""Typed application errors and the HTTP status each type maps to."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus


@dataclass(frozen=True)
class Namespace:
    """A family of error types."""

    name: str
    omit_stack_trace: bool = False


@dataclass(frozen=True)
class ErrorType:
    """A kind of error inside a namespace."""

    namespace: Namespace
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.namespace.name}.{self.name}"

    @property
    def omit_stack_trace(self) -> bool:
        return self.namespace.omit_stack_trace

    def new(self, message: str) -> AppError:
        """Create an error of this type."""
        return AppError(self, message)

    def wrap(self, cause: BaseException, message: str) -> AppError:
        """Create an error of this type caused by ``cause``."""
        return AppError(self, message, cause)


class AppError(Exception):
    """An error carrying its type, a message and an optional cause."""

    def __init__(self, error_type: ErrorType, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.cause = cause
        self.__cause__ = cause

    def __str__(self) -> str:
        text = f"{self.error_type.full_name}: {self.message}"
        if self.cause is not None:
            text += f", cause: {self.cause}"
        return text


INVALID_INPUT = Namespace("validation error", omit_stack_trace=True)
DB_ERROR = Namespace("db error")
DUPLICATE = Namespace("duplicate", omit_stack_trace=True)
DATA_NOT_FOUND = Namespace("data not found", omit_stack_trace=True)

INVALID_USER_INPUT = ErrorType(INVALID_INPUT, "invalid user input")
WRITE_ERROR = ErrorType(DB_ERROR, "could not write to db")
READ_ERROR = ErrorType(DB_ERROR, "could not read data from db")
DATA_EXISTS = ErrorType(DUPLICATE, "data already exists")
NO_RECORD_FOUND = ErrorType(DATA_NOT_FOUND, "no record found")

_STATUS_BY_TYPE: dict[ErrorType, int] = {
    INVALID_USER_INPUT: HTTPStatus.BAD_REQUEST.value,
    DATA_EXISTS: HTTPStatus.BAD_REQUEST.value,
    READ_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR.value,
    WRITE_ERROR: HTTPStatus.INTERNAL_SERVER_ERROR.value,
    NO_RECORD_FOUND: HTTPStatus.NOT_FOUND.value,
}


def status_for(error_type: ErrorType) -> int | None:
    """Return the HTTP status for ``error_type``, or None if it has none."""
    return _STATUS_BY_TYPE.get(error_type)