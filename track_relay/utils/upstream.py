"""Outbound call to the Mixpanel ingestion API.

:class:`MixpanelForwarder` never lets an httpx exception escape: every call
yields a :class:`Forwarded` or a :class:`ForwardFailed` value and the route
decides what the caller sees.  No retries and no custom timeout; a failed
forward is reported at once and it is up to the client to try again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import httpx

__all__ = ["ForwardFailed", "ForwardResult", "Forwarded", "MixpanelForwarder"]


@dataclass(frozen=True)
class Forwarded:
    """Upstream answered with a success status; relayed to the caller verbatim."""

    status_code: int
    body: bytes
    media_type: str | None = None


@dataclass(frozen=True)
class ForwardFailed:
    """The upstream call raised; *reason* is a one-line summary, for logs only.

    It never contains the outbound URL, which carries the project token.
    """

    reason: str


ForwardResult = Union[Forwarded, ForwardFailed]


def _first_line(message: str) -> str:
    return message.splitlines()[0] if message else ""


class MixpanelForwarder:
    """Sends encoded events to *endpoint* through a shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient, endpoint: str) -> None:
        self._client = client
        self._endpoint = endpoint

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def send(self, encoded_event: str) -> ForwardResult:
        # Mixpanel reads the event from the query string; the POST carries no body.
        try:
            resp = await self._client.post(
                self._endpoint,
                params={"data": encoded_event, "verbose": 1},
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            # str(exc) carries the request URL, i.e. the encoded event and its token
            return ForwardFailed(reason=f"Request failed with status code {exc.response.status_code}")
        except httpx.HTTPError as exc:
            return ForwardFailed(reason=_first_line(str(exc)) or type(exc).__name__)
        return Forwarded(
            status_code=resp.status_code,
            body=resp.content,
            media_type=resp.headers.get("content-type"),
        )
