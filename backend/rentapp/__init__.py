"""Expose the application factory at package level.

Provide convenient access to :func:`rentapp.factory.create_app` so callers can
``from rentapp import create_app`` (e.g. ``flask --app rentapp run``).
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
