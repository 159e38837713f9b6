"""Business rules for managing users."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from helphub.errors import DATA_EXISTS, INVALID_USER_INPUT
from helphub.logger import Logger
from helphub.models import RegisterUser, UpdateUser, User, ValidationErrors
from helphub.storage import UserStorage

Context = Mapping[str, Any] | None


class UserService(ABC):
    """Operations on users offered to the request handlers."""

    @abstractmethod
    def create(self, ctx: Context, param: RegisterUser) -> User:
        """Register a new user."""

    @abstractmethod
    def update(self, ctx: Context, user_id: str, param: UpdateUser) -> User:
        """Change an existing user."""

    @abstractmethod
    def get_all(self, ctx: Context) -> list[User]:
        """Return every user."""

    @abstractmethod
    def get(self, ctx: Context, user_id: str) -> User:
        """Return one user."""

    @abstractmethod
    def delete_user(self, ctx: Context, user_id: str) -> None:
        """Delete one user."""


class UserModule(UserService):
    """Validates requests about users and passes them on to storage."""

    def __init__(self, log: Logger, storage: UserStorage) -> None:
        self.log = log
        self.storage = storage

    def _validated(self, ctx: Context, param: RegisterUser | UpdateUser) -> None:
        try:
            param.validate()
        except ValidationErrors as exc:
            err = INVALID_USER_INPUT.wrap(exc, "invalid input")
            self.log.error(ctx, "validation failed", error=str(err), input=param)
            raise err

    def _parse_id(self, ctx: Context, user_id: str) -> uuid.UUID:
        try:
            return uuid.UUID(user_id)
        except (ValueError, TypeError, AttributeError) as exc:
            err = INVALID_USER_INPUT.wrap(exc, "invalid user id")
            self.log.error(ctx, "parsing user id failed", error=str(err), **{"user-id": str(user_id)})
            raise err

    def create(self, ctx: Context, param: RegisterUser) -> User:
        self._validated(ctx, param)
        if self.storage.check_user_exists(ctx, param):
            self.log.error(ctx, "duplicated data", **{"user-email": param.email})
            raise DATA_EXISTS.new("user with this email already exists")
        return self.storage.create(ctx, param)

    def delete_user(self, ctx: Context, user_id: str) -> None:
        self.storage.delete_user(ctx, self._parse_id(ctx, user_id))

    def update(self, ctx: Context, user_id: str, param: UpdateUser) -> User:
        self._validated(ctx, param)
        return self.storage.update(ctx, self._parse_id(ctx, user_id), param)

    def get(self, ctx: Context, user_id: str) -> User:
        return self.storage.get(ctx, self._parse_id(ctx, user_id))

    def get_all(self, ctx: Context) -> list[User]:
        return self.storage.get_all(ctx)