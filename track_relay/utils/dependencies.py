"""FastAPI dependency providers for per-application collaborators.

The application factory stores the settings and the forwarder on
``app.state``; routes receive them through these providers rather than
through module globals, so tests can build isolated apps side by side.
"""

from __future__ import annotations

from fastapi import Request

from track_relay.settings import Settings
from track_relay.utils.upstream import MixpanelForwarder


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_forwarder(request: Request) -> MixpanelForwarder:
    """Return the forwarder opened by the app lifespan."""
    forwarder = getattr(request.app.state, "forwarder", None)
    if forwarder is None:  # pragma: no cover – app served without its lifespan
        raise RuntimeError("Mixpanel forwarder not initialised – run the app with its lifespan")
    return forwarder
