"""HTTP handlers for the user endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

import flask

from helphub.errors import INVALID_USER_INPUT
from helphub.logger import Logger
from helphub.middleware import success_response
from helphub.models import RegisterUser, UpdateUser
from helphub.user_module import UserService

_Body = TypeVar("_Body", RegisterUser, UpdateUser)


class UserHandler:
    """Reads user requests, calls the user service and writes the replies."""

    def __init__(self, log: Logger, user_module: UserService, timeout: timedelta) -> None:
        self.log = log
        self.user_module = user_module
        self.timeout = timeout

    def _context(self) -> dict[str, Any]:
        return {"deadline": datetime.now(timezone.utc) + self.timeout}

    def _bind(self, ctx: dict[str, Any], model: type[_Body]) -> _Body:
        data = flask.request.get_json(silent=True)
        try:
            if data is None:
                raise ValueError("request body is not valid JSON")
            return model.from_dict(data)
        except ValueError as exc:
            err = INVALID_USER_INPUT.wrap(exc, "invalid input")
            self.log.error(ctx, "unable to bind user data", error=str(err))
            raise err

    def create_user(self) -> flask.Response:
        """Register the user described by the request body."""
        ctx = self._context()
        param = self._bind(ctx, RegisterUser)
        created = self.user_module.create(ctx, param)
        return success_response(201, created, None)

    def update_user(self, id: str) -> flask.Response:
        """Change the user ``id`` with the details in the request body."""
        ctx = self._context()
        param = self._bind(ctx, UpdateUser)
        updated = self.user_module.update(ctx, id, param)
        return success_response(200, updated, None)

    def get_user(self, id: str) -> flask.Response:
        """Return the user ``id``."""
        user = self.user_module.get(self._context(), id)
        return success_response(201, user, None)

    def get_users(self) -> flask.Response:
        """Return every user."""
        users = self.user_module.get_all(self._context())
        return success_response(201, users, None)

    def delete_user(self, id: str) -> flask.Response:
        """Delete the user ``id``."""
        self.user_module.delete_user(self._context(), id)
        return success_response(200, "User deleted successfully", None)