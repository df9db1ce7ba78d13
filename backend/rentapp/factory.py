"""Flask application factory for the RentApp auth API."""

from __future__ import annotations

import logging

from flask import Flask

from rentapp.core.config import BaseConfig, get_config, validate_config
from rentapp.core.logger import configure_logging, init_app as init_logging

log = logging.getLogger(__name__)


def create_app(config: str | type[BaseConfig] | object | None = None) -> Flask:
    """Build the auth API.

    :param config: Config class, object or import path. ``None`` picks one
        from ``APP_ENV``. ``instance/config.py`` overrides it when present.
    :raises RuntimeError: When the merged configuration is unusable.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config or get_config())
    app.config.from_pyfile("config.py", silent=True)
    validate_config(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from rentapp import cli
    from rentapp.api import init_app as init_api
    from rentapp.core import cors, errors, extensions, proxy

    # The store and key provider must exist before blueprints are served, and
    # the error handlers attach to the JWT manager built by ``extensions``.
    for init in (
        proxy.init_app,
        extensions.init_app,
        init_logging,
        cors.init_app,
        init_api,
        errors.init_app,
        cli.init_app,
    ):
        init(app)

    log.info(
        "app.ready",
        extra={"event": "app.ready", "backend": app.config.get("REFRESH_TOKEN_BACKEND")},
    )
    return app
