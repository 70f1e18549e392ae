"""Error taxonomy surfaced by the API layer.

Parse misses are not errors: extractors return ``None``. Upstream failures
during unfurling are absorbed by the callers and never reach the client.
"""
from __future__ import annotations


class RoamlyError(Exception):
    status_code = 500
    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_payload(self) -> dict:
        return {"error": self.message, "code": self.code}


class InvalidInput(RoamlyError):
    status_code = 400
    code = "invalid_input"


class TripNotFound(RoamlyError):
    status_code = 404
    code = "not_found"


class InvalidRange(RoamlyError):
    status_code = 422
    code = "invalid_range"


class UpstreamUnavailable(RoamlyError):
    status_code = 502
    code = "upstream_unavailable"
