"""
Wire schemas for the /find-reviewer endpoint.

Requests and responses are externally tagged JSON objects: the single key is
the variant name and its value holds the fields, e.g.
``{"WillReview": {"review_id": 12}}`` or ``{"Accepted": {}}``.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from find_reviewer.domain import types
from find_reviewer.domain.engines.matching_engine import MAX_REVIEW_ID
from find_reviewer.domain.types import Request, Response
from find_reviewer.service.errors import MalformedRequestError


class _EmptyBody(BaseModel):
    model_config = ConfigDict(extra="forbid")


class _ReviewIdBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    review_id: int = Field(strict=True, ge=0, le=MAX_REVIEW_ID)


class _TokenBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    token: str = Field(strict=True)


class RequestEnvelope(BaseModel):
    """Exactly one request variant."""

    model_config = ConfigDict(extra="forbid")

    NeedReviewer: Optional[_EmptyBody] = None
    HaveTimeForReview: Optional[_EmptyBody] = None
    WillReview: Optional[_ReviewIdBody] = None
    WontReview: Optional[_ReviewIdBody] = None
    LoadIdentity: Optional[_EmptyBody] = None
    SendIdentity: Optional[_TokenBody] = None

    @model_validator(mode="after")
    def _exactly_one_variant(self) -> RequestEnvelope:
        present = [name for name in type(self).model_fields if getattr(self, name) is not None]
        if len(present) != 1:
            raise ValueError(f"expected exactly one request variant, got {present or 'none'}")
        return self

    def to_request(self) -> Request:
        if self.NeedReviewer is not None:
            return types.NeedReviewer()
        if self.HaveTimeForReview is not None:
            return types.HaveTimeForReview()
        if self.WillReview is not None:
            return types.WillReview(review_id=self.WillReview.review_id)
        if self.WontReview is not None:
            return types.WontReview(review_id=self.WontReview.review_id)
        if self.LoadIdentity is not None:
            return types.LoadIdentity()
        return types.SendIdentity(token=self.SendIdentity.token)


def decode_request(body: bytes) -> Request:
    """
    Parse a request body.

    Raises:
        MalformedRequestError: body is not JSON or not exactly one known variant
    """
    try:
        return RequestEnvelope.model_validate_json(body).to_request()
    except ValidationError as e:
        reason = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
        )
        raise MalformedRequestError(reason) from e


def encode_response(response: Response) -> Dict[str, Dict[str, Any]]:
    """Tag ``response`` with its variant name."""
    return {type(response).__name__: asdict(response)}


class ErrorResponse(BaseModel):
    """
    Standard error response model for rejected requests.

    Attributes:
        code: Machine-readable error code (e.g., "MALFORMED_REQUEST")
        message: Human-readable error message
    """

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")


class HealthCheckResponse(BaseModel):
    """Health check response with current matching load."""

    status: str = "ok"
    version: str
    waiting: int
    active_reviews: int
    parked: int
