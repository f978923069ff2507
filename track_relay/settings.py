from __future__ import annotations

"""Application configuration (env → immutable settings).

Everything the relay needs from its environment is read exactly once by
:func:`load_settings` and returned as a frozen :class:`Settings` value that
the application factory hands to the request handlers.  Nothing here keeps
module-level state, so tests can build as many differently configured apps
as they like.
"""

# Standard library
import os
from dataclasses import dataclass, field
from typing import Mapping

from dotenv import find_dotenv, load_dotenv

__all__ = [
    "ConfigurationError",
    "DEFAULT_MAX_EVENT_BYTES",
    "DEFAULT_PORT",
    "MIXPANEL_ENDPOINT",
    "Settings",
    "load_settings",
]

MIXPANEL_ENDPOINT = "https://api.mixpanel.com/track/"
DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_MAX_EVENT_BYTES = 32 * 1024


class ConfigurationError(RuntimeError):
    """Raised when the process environment cannot produce valid settings."""


@dataclass(frozen=True)
class Settings:
    """Read-only runtime configuration for one relay process."""

    mixpanel_token: str
    mixpanel_endpoint: str = MIXPANEL_ENDPOINT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_event_bytes: int = DEFAULT_MAX_EVENT_BYTES
    app_env: str = "production"
    log_level: str = "INFO"
    allowed_origins: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def __repr__(self) -> str:  # keep the credential out of logs and tracebacks
        return (
            f"Settings(mixpanel_endpoint={self.mixpanel_endpoint!r}, host={self.host!r}, "
            f"port={self.port}, max_event_bytes={self.max_event_bytes}, app_env={self.app_env!r})"
        )


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _collect_origins(env: Mapping[str, str]) -> tuple[str, ...]:
    """Collect allowed CORS origins from the environment.

    Unlike a browser-facing dashboard the relay is usually called from
    native clients, so no origins are allowed unless configured.
    """
    origins: list[str] = []
    for name in ("FRONTEND_ORIGIN", "EXTRA_ORIGIN"):
        if (val := env.get(name)):
            origins.append(val)
    return tuple(origins)


def load_settings(env: Mapping[str, str] | None = None, *, dotenv: bool = True) -> Settings:
    """Build :class:`Settings` from *env* (defaults to ``os.environ``).

    A ``.env`` file found from the working directory upwards is loaded first
    (without overriding variables already set) unless
    *dotenv* is false.  Raises :class:`ConfigurationError` when the Mixpanel
    project token is missing or a numeric option is malformed.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    if env is None:
        env = os.environ

    token = (env.get("MIXPANEL_PROJECT_TOKEN") or "").strip()
    if not token:
        raise ConfigurationError("Mixpanel project token is not set (MIXPANEL_PROJECT_TOKEN).")

    endpoint = env.get("MIXPANEL_ENDPOINT") or MIXPANEL_ENDPOINT
    if not endpoint.startswith(("http://", "https://")):
        raise ConfigurationError(f"MIXPANEL_ENDPOINT must be an http(s) URL, got {endpoint!r}")

    return Settings(
        mixpanel_token=token,
        mixpanel_endpoint=endpoint,
        host=env.get("HOST") or DEFAULT_HOST,
        port=_positive_int(env, "PORT", DEFAULT_PORT),
        max_event_bytes=_positive_int(env, "MAX_EVENT_BYTES", DEFAULT_MAX_EVENT_BYTES),
        app_env=env.get("APP_ENV", "production"),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        allowed_origins=_collect_origins(env),
    )
