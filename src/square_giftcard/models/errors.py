"""Square error payload models."""

from typing import Any

from pydantic import BaseModel


class SquareErrorDetail(BaseModel):
    """One entry of Square's ``errors`` array."""

    category: str | None = None
    code: str | None = None
    detail: str | None = None
    field: str | None = None

    model_config = {"frozen": True, "extra": "ignore"}


def parse_errors(body: Any) -> list[SquareErrorDetail]:
    """Extract the error list from a Square response body.

    Handles the v2 ``{"errors": [...]}`` shape and the legacy OAuth
    ``{"message": ..., "type": ...}`` shape. Returns an empty list when
    the body carries no structured errors.
    """
    if not isinstance(body, dict):
        return []

    raw_errors = body.get("errors")
    if isinstance(raw_errors, list) and raw_errors:
        return [
            SquareErrorDetail.model_validate(e) for e in raw_errors if isinstance(e, dict)
        ]

    # Legacy OAuth error format
    if body.get("message") and body.get("type"):
        return [
            SquareErrorDetail(
                category="AUTHENTICATION_ERROR",
                code=str(body["type"]).upper(),
                detail=str(body["message"]),
            )
        ]

    return []
