"""
Response models for the REST API.

Every JSON call is parsed into an ``ApiResponse`` before any decision is
taken on it. Error-shaped bodies (either sent by the server or synthesized
from a body that is not JSON) are tagged with an ``ErrorBody``.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SESSION_EXPIRED_STATUS = 401
SESSION_EXPIRED_CODE = "NoUserLogon"

# Status assigned to bodies that could not be parsed as JSON
UNPARSABLE_BODY_STATUS = 500


class ErrorBody(BaseModel):
    """Error payload returned by Content Manager (``httpErrorCode``/``code``/``description``)."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    http_error_code: Any = Field(default=None, alias="httpErrorCode")
    code: Any = None
    description: Any = None

    # Not part of the payload; 500 for bodies synthesized from unparsable content
    effective_status: int | None = Field(default=None, exclude=True)

    def is_session_expired(self) -> bool:
        """True when the server reports that the session token is no longer valid."""
        return (
            str(self.http_error_code) == str(SESSION_EXPIRED_STATUS)
            and self.code == SESSION_EXPIRED_CODE
        )

    @classmethod
    def from_unparsable(cls, status_code: int, reason: str, text: str) -> ErrorBody:
        return cls(
            http_error_code=status_code,
            code=reason,
            description=text,
            effective_status=UNPARSABLE_BODY_STATUS,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ApiResponse(BaseModel):
    """
    One parsed JSON API response.

    ``status_code`` is always the status reported by the transport; it drives
    the success/failure decision. ``error`` is set when ``value`` is an error
    mapping.
    """

    status_code: int
    reason: str = ""
    value: Any = None
    error: ErrorBody | None = None

    @classmethod
    def parse(cls, status_code: int, reason: str, body: bytes) -> ApiResponse:
        """
        Parse a raw response body.

        An empty body yields ``value=None``. A body that is not valid JSON is
        never raised as an exception; it is folded into an error mapping
        carrying the original status, reason and raw text.
        """
        if not body:
            return cls(status_code=status_code, reason=reason)

        try:
            value = json.loads(body)
        except ValueError:
            text = body.decode("utf-8", errors="replace")
            error = ErrorBody.from_unparsable(status_code, reason, text)
            return cls(
                status_code=status_code,
                reason=reason,
                value=error.to_payload(),
                error=error,
            )

        error = None
        if isinstance(value, dict) and "httpErrorCode" in value:
            error = ErrorBody.model_validate(value)
            error.effective_status = _as_status(error.http_error_code)
        return cls(status_code=status_code, reason=reason, value=value, error=error)

    @property
    def is_success(self) -> bool:
        return self.status_code < 400

    @property
    def is_session_expired(self) -> bool:
        return self.error is not None and self.error.is_session_expired()


def _as_status(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "ApiResponse",
    "ErrorBody",
    "SESSION_EXPIRED_CODE",
    "SESSION_EXPIRED_STATUS",
    "UNPARSABLE_BODY_STATUS",
]
