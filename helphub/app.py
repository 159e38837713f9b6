"""Assembly of the HTTP application from its layers."""

from __future__ import annotations

import flask

from helphub.config import Config
from helphub.handlers import UserHandler
from helphub.logger import Logger, init_logger
from helphub.middleware import install_error_handler
from helphub.routing import init_user_routes
from helphub.storage import UserStorage
from helphub.user_module import UserModule


def create_app(config: Config | None, storage: UserStorage, log: Logger | None = None) -> flask.Flask:
    """Build the application serving the user API under ``/v1``."""
    config = config if config is not None else Config()
    log = log if log is not None else init_logger()

    log.info(None, "initializing module")
    user_module = UserModule(log.named("user-module"), storage)
    log.info(None, "module initialized")

    log.info(None, "initializing handler")
    handler = UserHandler(log.named("user-handler"), user_module, config.get_duration("server.timeout"))
    log.info(None, "handler initialized")

    log.info(None, "initializing server")
    app = flask.Flask("helphub")
    install_error_handler(app, config.get_bool("debug"))
    log.info(None, "server initialized")

    log.info(None, "initializing router")
    v1 = flask.Blueprint("v1", __name__, url_prefix="/v1")
    init_user_routes(v1, handler)
    app.register_blueprint(v1)
    log.info(None, "router initialized")
    return app