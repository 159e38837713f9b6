"""Route tables and their registration on Flask blueprints."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import flask

View = Callable[..., Any]
Middleware = Callable[[View], View]


@dataclass
class Route:
    """One endpoint: an HTTP method, a path, a view and the middleware around it.

    Paths use ``:name`` for a parameter and ``*name`` for the rest of the path.
    Middleware wraps the view; the first in the list runs outermost.
    """

    method: str
    handler: View
    path: str = ""
    middlewares: Sequence[Middleware] = field(default_factory=tuple)


def _flask_rule(path: str) -> str:
    def convert(segment: str) -> str:
        if segment.startswith(":"):
            return f"<{segment[1:]}>"
        if segment.startswith("*"):
            return f"<path:{segment[1:]}>"
        return segment

    return "/".join(convert(segment) for segment in path.split("/"))


def register_routes(blueprint: flask.Blueprint | flask.Flask, routes: Sequence[Route]) -> None:
    """Add every route to ``blueprint``."""
    for route in routes:
        view = route.handler
        for middleware in reversed(route.middlewares):
            view = middleware(view)
        rule = _flask_rule(route.path)
        if not rule and getattr(blueprint, "url_prefix", None) is None:
            rule = "/"
        name = getattr(route.handler, "__name__", "view")
        blueprint.add_url_rule(
            rule,
            endpoint=f"{route.method.lower()}_{name}",
            view_func=view,
            methods=[route.method.upper()],
        )


def init_user_routes(blueprint: flask.Blueprint, handler: Any) -> flask.Blueprint:
    """Register the ``/users`` endpoints of ``handler`` under ``blueprint``."""
    users = flask.Blueprint("users", __name__, url_prefix="/users")
    register_routes(
        users,
        [
            Route("POST", handler.create_user),
            Route("PATCH", handler.update_user, "/:id"),
            Route("GET", handler.get_user, "/:id"),
            Route("GET", handler.get_users),
            Route("DELETE", handler.delete_user, "/:id"),
        ],
    )
    blueprint.register_blueprint(users)
    return users