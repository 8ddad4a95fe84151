"""
Request dispatcher - one lock, one engine operation per request.

Both the HTTP handlers and the timeout sweeper go through a Dispatcher, so
no operation can observe a half-applied effect of another.
"""

from __future__ import annotations

import threading
from typing import Optional

from find_reviewer.domain.engines.authentication import Authentication
from find_reviewer.domain.engines.matching_engine import MatchingEngine
from find_reviewer.domain.types import (
    EngineStats,
    HaveTimeForReview,
    KnownIdentity,
    LoadIdentity,
    NeedReviewer,
    Request,
    Response,
    SendIdentity,
    UnknownIdentity,
    WillReview,
    WontReview,
)
from find_reviewer.service.logging import Loggers, identity_context

logger = Loggers.dispatcher()


class Dispatcher:
    """Serializes access to the matching engine."""

    def __init__(self, engine: MatchingEngine, authentication: Authentication):
        self._engine = engine
        self._authentication = authentication
        self._lock = threading.Lock()

    @property
    def engine(self) -> MatchingEngine:
        return self._engine

    @property
    def authentication(self) -> Authentication:
        return self._authentication

    def dispatch(self, request: Request, session_token: Optional[str] = None) -> Response:
        """
        Apply ``request`` on behalf of the session holding ``session_token``.

        Coder identity always comes from the session, never from the body.
        Matching requests from an unknown session are answered with
        UnknownIdentity and never reach the engine.
        """
        if isinstance(request, (LoadIdentity, SendIdentity)):
            return self._authentication.process(request, session_token)

        identity = self._authentication.identify(session_token)
        if not isinstance(identity, KnownIdentity):
            logger.info(
                "Request from unknown session",
                event_type="unknown_session",
                request=type(request).__name__,
            )
            return UnknownIdentity()

        with identity_context(identity.username), self._lock:
            if isinstance(request, NeedReviewer):
                return self._engine.request_reviewer(identity.username)
            if isinstance(request, HaveTimeForReview):
                return self._engine.offer_review_time(identity.username)
            if isinstance(request, WillReview):
                return self._engine.accept_review(request.review_id)
            if isinstance(request, WontReview):
                return self._engine.decline_review(request.review_id)

        raise TypeError(f"unsupported request: {request!r}")

    def sweep(self) -> list[int]:
        """Reclaim timed-out reviews."""
        with self._lock:
            return self._engine.sweep_timeouts()

    def stats(self) -> EngineStats:
        with self._lock:
            return self._engine.stats()
