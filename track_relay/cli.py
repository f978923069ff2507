"""Process entry point: ``track-relay`` / ``python -m track_relay``.

Settings are loaded before anything binds a socket; a missing project
token ends the process with exit status 1 and a diagnostic on stderr.
"""

from __future__ import annotations

import argparse
import dataclasses
from typing import Sequence

import uvicorn

from track_relay.main import create_app
from track_relay.settings import ConfigurationError, load_settings


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Relay analytics events to Mixpanel's /track API")
    parser.add_argument("--host", help="Listen address (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Listen port (default: $PORT or 3000)")
    return parser


def main(argv: Sequence[str] | None = None) -> None:  # noqa: D401
    args = _parser().parse_args(argv)

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        raise SystemExit(str(exc)) from exc

    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port is not None:
        if args.port <= 0:
            raise SystemExit(f"--port must be positive, got {args.port}")
        overrides["port"] = args.port
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    app = create_app(settings)
    # log_config=None keeps the JSON handler installed by create_app()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
