"""
Matching Engine - pairs coders who need a review with reviewers who have time.

Owns the set of waiting coders and the table of active reviews. Every public
operation is a complete state transition; callers serialize them with a
single lock (see ``find_reviewer.api.dispatcher``).
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Sequence

from find_reviewer.domain.types import (
    Accepted,
    AlreadyRegistered,
    EngineStats,
    MatchingResponse,
    NeedsReviewer,
    NoReviewerNeeded,
    Review,
    ReviewNotFound,
)
from find_reviewer.service.clock import Clock, get_clock
from find_reviewer.service.errors import InvalidConfigError
from find_reviewer.service.logging import Loggers

logger = Loggers.matching_engine()

MAX_REVIEW_ID = 2**32 - 1


@dataclass(frozen=True)
class MatchingEngineConfig:
    """Configuration for the matching engine."""

    timeout_in_s: float = 30
    wip_limit: int = 5


# =============================================================================
# Id Generation
# =============================================================================


class IdGenerator:
    """Source of candidate review ids. Uniqueness is not required."""

    def generate(self) -> int:
        raise NotImplementedError


class RandomIdGenerator(IdGenerator):
    """Uniform ids over ``[low, high]``."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        low: int = 0,
        high: int = MAX_REVIEW_ID,
    ) -> None:
        if low > high:
            raise ValueError(f"empty id range [{low}, {high}]")
        self._rng = rng or random.Random()
        self._low = low
        self._high = high

    def generate(self) -> int:
        return self._rng.randint(self._low, self._high)


class SequentialIdGenerator(IdGenerator):
    """Deterministic ids ``start, start + 1, ...`` for tests."""

    def __init__(self, start: int = 0) -> None:
        self._next = start

    def generate(self) -> int:
        value = self._next
        self._next += 1
        return value


# =============================================================================
# Selection Policies
# =============================================================================


class SelectionPolicy:
    """Chooses which waiting coder gets reviewed next.

    ``candidates`` arrive in the order the coders started waiting and are
    never empty.
    """

    name = "abstract"

    def pick(self, candidates: Sequence[str]) -> str:
        raise NotImplementedError


class FifoSelection(SelectionPolicy):
    """Longest-waiting coder first."""

    name = "fifo"

    def pick(self, candidates: Sequence[str]) -> str:
        return candidates[0]


class RandomSelection(SelectionPolicy):
    """Any waiting coder, uniformly."""

    name = "random"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def pick(self, candidates: Sequence[str]) -> str:
        return self._rng.choice(list(candidates))


def selection_policy_for(name: str, rng: Optional[random.Random] = None) -> SelectionPolicy:
    """Build a selection policy from its configured name."""
    if name == FifoSelection.name:
        return FifoSelection()
    if name == RandomSelection.name:
        return RandomSelection(rng)
    raise InvalidConfigError("selection_policy", name, "unknown selection policy")


# =============================================================================
# Matching Engine
# =============================================================================


class MatchingEngine:
    """
    In-memory matcher between coders and reviewers.

    State:
        waiting: coders waiting for a reviewer, in arrival order
        reviews: active reviews by id

    Invariants:
        - An identity is waiting, under review, or parked in a review,
          never more than one of these and never twice.
        - A request never grows the waiting set beyond ``wip_limit``.
          Coders returning from a resolved review rejoin regardless, and
          the next request shrinks an over-full set again.
        - Active review ids are unique.

    The engine is not thread-safe; it never blocks and never raises for
    request input.
    """

    def __init__(
        self,
        config: MatchingEngineConfig,
        id_generator: Optional[IdGenerator] = None,
        selection: Optional[SelectionPolicy] = None,
        clock: Optional[Clock] = None,
    ):
        if config.wip_limit < 1:
            raise InvalidConfigError("wip_limit", config.wip_limit, "must be >= 1")
        if config.timeout_in_s < 0:
            raise InvalidConfigError("timeout_in_s", config.timeout_in_s, "must be >= 0")

        self._config = config
        self._id_generator = id_generator or RandomIdGenerator()
        self._selection = selection or FifoSelection()
        self._clock = clock or get_clock()

        # dict keys as an insertion-ordered set
        self._waiting: dict[str, None] = {}
        self._reviews: dict[int, Review] = {}

    @property
    def config(self) -> MatchingEngineConfig:
        return self._config

    @property
    def selection(self) -> SelectionPolicy:
        return self._selection

    @property
    def waiting_coders(self) -> tuple[str, ...]:
        """Waiting coders in arrival order."""
        return tuple(self._waiting)

    @property
    def active_reviews(self) -> dict[int, Review]:
        """Copy of the active review table."""
        return dict(self._reviews)

    def is_registered(self, coder: str) -> bool:
        """Is ``coder`` waiting, under review, or parked in a review?"""
        return coder in self._waiting or any(
            review.involves(coder) for review in self._reviews.values()
        )

    def stats(self) -> EngineStats:
        return EngineStats(
            waiting=len(self._waiting),
            active_reviews=len(self._reviews),
            parked=sum(1 for r in self._reviews.values() if r.enqueued_coder is not None),
        )

    # =========================================================================
    # Operations
    # =========================================================================

    def request_reviewer(self, coder: str) -> MatchingResponse:
        """
        Register ``coder`` as needing a review.

        Below the WIP limit the coder simply waits. At the limit a waiting
        coder is turned into an active review instead, and the newcomer is
        parked in that review until it is accepted.

        Returns:
            Accepted, AlreadyRegistered or NeedsReviewer
        """
        if self.is_registered(coder):
            logger.info(
                "Coder already registered",
                event_type="already_registered",
                coder=coder,
            )
            return AlreadyRegistered()

        if len(self._waiting) < self._config.wip_limit:
            self._waiting[coder] = None
            logger.info(
                "Coder waiting for reviewer",
                event_type="coder_queued",
                coder=coder,
                waiting=len(self._waiting),
            )
            return Accepted()

        picked = self._selection.pick(tuple(self._waiting))
        return self._start_review(picked, enqueued_coder=coder)

    def offer_review_time(self, reviewer: str) -> MatchingResponse:
        """
        Match ``reviewer`` with a waiting coder other than themselves.

        The reviewer is not recorded on the resulting review.

        Returns:
            NeedsReviewer or NoReviewerNeeded
        """
        candidates = tuple(c for c in self._waiting if c != reviewer)
        if not candidates:
            logger.debug(
                "No coder waiting for review",
                event_type="no_reviewer_needed",
                reviewer=reviewer,
            )
            return NoReviewerNeeded()

        picked = self._selection.pick(candidates)
        return self._start_review(picked, enqueued_coder=None)

    def accept_review(self, review_id: int) -> MatchingResponse:
        """
        Resolve a review as taken on.

        A parked coder re-enters the waiting set.

        Returns:
            Accepted or ReviewNotFound
        """
        review = self._reviews.pop(review_id, None)
        if review is None:
            return self._not_found(review_id)

        if review.enqueued_coder is not None:
            self._waiting[review.enqueued_coder] = None

        logger.info(
            "Review accepted",
            event_type="review_accepted",
            review_id=review_id,
            coder=review.coder,
            requeued=review.enqueued_coder,
        )
        return Accepted()

    def decline_review(self, review_id: int) -> MatchingResponse:
        """
        Resolve a review as declined.

        The reviewed coder goes back to waiting. A parked coder is dropped
        and has to request a reviewer again.

        Returns:
            Accepted or ReviewNotFound
        """
        review = self._reviews.pop(review_id, None)
        if review is None:
            return self._not_found(review_id)

        self._waiting[review.coder] = None

        logger.info(
            "Review declined",
            event_type="review_declined",
            review_id=review_id,
            coder=review.coder,
        )
        if review.enqueued_coder is not None:
            logger.warning(
                "Parked coder dropped with declined review",
                event_type="enqueued_coder_dropped",
                review_id=review_id,
                dropped=review.enqueued_coder,
            )
        return Accepted()

    def sweep_timeouts(self) -> list[int]:
        """
        Decline every review older than the configured timeout.

        Returns:
            Ids of the reclaimed reviews
        """
        now = self._clock.now()
        timed_out = [
            review_id
            for review_id, review in self._reviews.items()
            if review.age(now) > self._config.timeout_in_s
        ]

        for review_id in timed_out:
            logger.info(
                "Review timed out",
                event_type="review_timed_out",
                review_id=review_id,
                age_s=round(self._reviews[review_id].age(now), 3),
            )
            self.decline_review(review_id)

        return timed_out

    # =========================================================================
    # Helpers
    # =========================================================================

    def _start_review(self, coder: str, enqueued_coder: Optional[str]) -> NeedsReviewer:
        del self._waiting[coder]
        review_id = self._fresh_id()
        self._reviews[review_id] = Review(
            review_id=review_id,
            coder=coder,
            started_at=self._clock.now(),
            enqueued_coder=enqueued_coder,
        )

        logger.info(
            "Review started",
            event_type="review_started",
            review_id=review_id,
            coder=coder,
            enqueued_coder=enqueued_coder,
        )
        return NeedsReviewer(coder=coder, review_id=review_id)

    def _fresh_id(self) -> int:
        while True:
            review_id = self._id_generator.generate()
            if review_id not in self._reviews:
                return review_id

    def _not_found(self, review_id: int) -> ReviewNotFound:
        logger.info(
            "Review not found",
            event_type="review_not_found",
            review_id=review_id,
        )
        return ReviewNotFound()
