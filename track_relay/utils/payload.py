"""Event payload handling: decode, inject the project token, transport-encode.

Mixpanel's ``/track`` ingestion endpoint takes the event as the base64 of
its JSON text in the ``data`` query parameter.  The helpers here stay pure
(no I/O) so the request handler only has to glue them together.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Dict

__all__ = [
    "InvalidEventError",
    "decode_event",
    "encode_event",
    "inject_token",
]

TOKEN_KEY = "token"


class InvalidEventError(ValueError):
    """Request body is empty, not JSON, or not a JSON object."""


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN/Infinity, which are not JSON and cannot be re-encoded for Mixpanel
    raise ValueError(f"non-standard JSON constant {name}")


def decode_event(body: bytes) -> Dict[str, Any]:
    """Parse a raw request body into an event object.

    Raises :class:`InvalidEventError` unless the body is a JSON object.
    """
    if not body or not body.strip():
        raise InvalidEventError("empty body")
    try:
        event = json.loads(body.decode("utf-8"), parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:  # UnicodeDecodeError is a ValueError
        raise InvalidEventError(str(exc)) from exc
    if not isinstance(event, dict):
        raise InvalidEventError(f"expected a JSON object, got {type(event).__name__}")
    return event


def inject_token(event: Dict[str, Any], token: str) -> Dict[str, Any]:
    """Return a copy of *event* whose ``properties.token`` is *token*.

    A missing ``properties`` bag (or one that is not an object) is replaced
    by a fresh one.  Any client-supplied token is overwritten: the server is
    the only source of the credential.  *event* itself is left untouched.
    """
    outgoing = dict(event)
    properties = outgoing.get("properties")
    properties = dict(properties) if isinstance(properties, dict) else {}
    properties[TOKEN_KEY] = token
    outgoing["properties"] = properties
    return outgoing


def encode_event(event: Dict[str, Any]) -> str:
    """Serialise *event* to compact JSON and base64-encode the UTF-8 bytes."""
    try:
        text = json.dumps(event, separators=(",", ":"), ensure_ascii=False)
    except RecursionError as exc:
        raise InvalidEventError("event nested too deeply to encode") from exc
    return base64.b64encode(text.encode("utf-8")).decode("ascii")
