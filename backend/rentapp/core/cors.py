"""Cross-origin policy for the ``/api`` routes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Flask
from flask_cors import CORS

from rentapp.core.logger import REQUEST_ID_HEADER


def allowed_origins(config: Mapping[str, Any]) -> list[str] | None:
    """Parse comma-separated ``CORS_ORIGINS``; ``None`` means any origin."""
    origins = [o.strip() for o in str(config.get("CORS_ORIGINS") or "").split(",")]
    origins = [o for o in origins if o]
    if not origins or "*" in origins:
        return None
    return origins


def init_app(app: Flask) -> None:
    """Apply the policy.

    Credentials (cookies, ``Authorization`` from browsers) are only allowed
    for an explicit origin list. ``X-Request-ID`` is exposed so browser
    clients can quote it in bug reports.
    """
    origins = allowed_origins(app.config)
    CORS(
        app,
        resources={r"/api/*": {"origins": origins or "*"}},
        supports_credentials=origins is not None,
        expose_headers=[REQUEST_ID_HEADER],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
