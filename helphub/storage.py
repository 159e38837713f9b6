"""Persistence interface for users and direct database queries."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.engine import Engine

from helphub.models import RegisterUser, UpdateUser, User

Context = Mapping[str, Any] | None

GET_USERS = """-- name: GetUsers :many
SELECT id, first_name, middle_name, last_name, email, status, created_at, updated_at, deleted_at FROM users WHERE deleted_at = NULL
"""


class UserStorage(ABC):
    """Where users are kept."""

    @abstractmethod
    def create(self, ctx: Context, param: RegisterUser) -> User:
        """Store a new user and return it."""

    @abstractmethod
    def update(self, ctx: Context, user_id: uuid.UUID, param: UpdateUser) -> User:
        """Change the user ``user_id`` and return it."""

    @abstractmethod
    def check_user_exists(self, ctx: Context, param: RegisterUser) -> bool:
        """Tell whether a user like ``param`` is already stored."""

    @abstractmethod
    def get_all(self, ctx: Context) -> list[User]:
        """Return every stored user."""

    @abstractmethod
    def get(self, ctx: Context, user_id: uuid.UUID) -> User:
        """Return the user ``user_id``."""

    @abstractmethod
    def delete_user(self, ctx: Context, user_id: uuid.UUID) -> None:
        """Delete the user ``user_id``."""


def _as_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, bytes) and len(value) == 16:
        return uuid.UUID(bytes=value)
    return uuid.UUID(str(value))


def _as_time(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _user_from_row(row: Sequence[Any]) -> User:
    """Build a user from a row in the column order of :data:`GET_USERS`."""
    (user_id, first_name, middle_name, last_name, email, status,
     created_at, updated_at, deleted_at) = row
    return User(
        id=_as_uuid(user_id),
        first_name=_as_text(first_name),
        middle_name=_as_text(middle_name),
        last_name=_as_text(last_name),
        email=_as_text(email),
        status=_as_text(status),
        created_at=_as_time(created_at),
        updated_at=_as_time(updated_at),
        deleted_at=_as_time(deleted_at),
    )


class DBInstance:
    """A database engine together with the queries run against it."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def get_all_users(self, ctx: Context) -> list[User]:
        """Run the user listing query and return its rows as users."""
        with self.engine.connect() as conn:
            rows = conn.exec_driver_sql(GET_USERS).fetchall()
        return [_user_from_row(row) for row in rows]