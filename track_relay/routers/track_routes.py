"""Event relay – forwards client analytics events to Mixpanel's /track API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from track_relay.models import (
    FORWARD_FAILED,
    INVALID_DATA_FORMAT,
    PAYLOAD_TOO_LARGE,
    ErrorResponse,
)
from track_relay.settings import Settings
from track_relay.utils.dependencies import get_forwarder, get_settings
from track_relay.utils.logger import logger
from track_relay.utils.payload import InvalidEventError, decode_event, encode_event, inject_token
from track_relay.utils.upstream import ForwardFailed, MixpanelForwarder

router = APIRouter(tags=["track"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _declared_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def _read_body(request: Request, limit: int) -> bytes | None:
    """Read the body, giving up (``None``) once it grows past *limit* bytes."""
    buf = bytearray()
    async for chunk in request.stream():
        buf.extend(chunk)
        if len(buf) > limit:
            return None
    return bytes(buf)


@router.post(
    "/track",
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def track_event(
    request: Request,
    settings: Settings = Depends(get_settings),
    forwarder: MixpanelForwarder = Depends(get_forwarder),
) -> Response:
    """Inject the project token into the event and forward it to Mixpanel.

    On success Mixpanel's status code and body are returned unchanged.
    """

    # ---------------------------------------------------------------------
    # Payload size guard – the event travels to Mixpanel in the query
    # string, so anything above the limit is refused before parsing.
    # ---------------------------------------------------------------------
    declared = _declared_length(request)
    if declared is not None and declared > settings.max_event_bytes:
        return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, PAYLOAD_TOO_LARGE)

    body = await _read_body(request, settings.max_event_bytes)
    if body is None:
        return _error(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, PAYLOAD_TOO_LARGE)

    try:
        event = decode_event(body)
        encoded = encode_event(inject_token(event, settings.mixpanel_token))
    except InvalidEventError as exc:
        logger.debug("Rejected event: %s", exc)
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_DATA_FORMAT)

    result = await forwarder.send(encoded)

    if isinstance(result, ForwardFailed):
        logger.error("Error forwarding data to Mixpanel: %s", result.reason)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, FORWARD_FAILED)

    # content-type goes through headers so Starlette leaves it byte-exact
    headers = {"content-type": result.media_type} if result.media_type else None
    return Response(content=result.body, status_code=result.status_code, headers=headers)
