"""Response models shared by the relay routes."""

from __future__ import annotations

from pydantic import BaseModel

INVALID_DATA_FORMAT = "Invalid data format"
PAYLOAD_TOO_LARGE = "Payload too large"
FORWARD_FAILED = "Failed to forward data to Mixpanel"
INTERNAL_ERROR = "Internal server error"


class ErrorResponse(BaseModel):
    """Body of every error the relay synthesises itself."""
    error: str


class StatusResponse(BaseModel):
    status: str
