"""Core types and dataclasses for find-reviewer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from find_reviewer.service.clock import Timestamp


# =============================================================================
# Matching State
# =============================================================================


@dataclass(frozen=True)
class Review:
    """An in-progress review of ``coder``.

    ``enqueued_coder`` is the newcomer who was parked to make room under the
    WIP limit. It re-enters the waiting set once the review is accepted.
    """

    review_id: int
    coder: str
    started_at: Timestamp
    enqueued_coder: Optional[str] = None

    def involves(self, identity: str) -> bool:
        """Is ``identity`` the reviewed or the parked coder?"""
        return self.coder == identity or self.enqueued_coder == identity

    def age(self, now: Timestamp) -> float:
        """Seconds since the review started."""
        return now.elapsed_since(self.started_at)


@dataclass(frozen=True)
class EngineStats:
    """Counts exposed by the health endpoint."""

    waiting: int
    active_reviews: int
    parked: int


# =============================================================================
# Requests
# =============================================================================


@dataclass(frozen=True)
class NeedReviewer:
    """The caller wants a review."""


@dataclass(frozen=True)
class HaveTimeForReview:
    """The caller offers review time."""


@dataclass(frozen=True)
class WillReview:
    """The reviewer accepts review ``review_id``."""

    review_id: int


@dataclass(frozen=True)
class WontReview:
    """The reviewer declines review ``review_id``."""

    review_id: int


@dataclass(frozen=True)
class LoadIdentity:
    """Resolve the identity of the current session."""


@dataclass(frozen=True)
class SendIdentity:
    """Log in with ``token``."""

    token: str


MatchingRequest = Union[NeedReviewer, HaveTimeForReview, WillReview, WontReview]
IdentityRequest = Union[LoadIdentity, SendIdentity]
Request = Union[MatchingRequest, IdentityRequest]


# =============================================================================
# Responses
# =============================================================================


@dataclass(frozen=True)
class Accepted:
    """The request was applied."""


@dataclass(frozen=True)
class NoReviewerNeeded:
    """Nobody (other than the caller) is waiting."""


@dataclass(frozen=True)
class AlreadyRegistered:
    """The coder is already waiting or involved in a review."""


@dataclass(frozen=True)
class NeedsReviewer:
    """``coder`` now needs a reviewer; resolve with ``review_id``."""

    coder: str
    review_id: int


@dataclass(frozen=True)
class ReviewNotFound:
    """No active review carries that id."""


@dataclass(frozen=True)
class KnownIdentity:
    """The session resolves to ``username``."""

    username: str


@dataclass(frozen=True)
class UnknownIdentity:
    """The session or token is not known."""


MatchingResponse = Union[Accepted, NoReviewerNeeded, AlreadyRegistered, NeedsReviewer, ReviewNotFound]
IdentityResponse = Union[KnownIdentity, UnknownIdentity]
Response = Union[MatchingResponse, IdentityResponse]