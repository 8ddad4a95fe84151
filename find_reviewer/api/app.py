"""
FastAPI Application Setup

HTTP surface of find-reviewer.

Responsibility:
    - POST /find-reviewer: decode one request, dispatch it, encode the response
    - Session cookie handling (token set on a successful SendIdentity)
    - Rejecting non-POST and malformed requests with 400 before the engine
    - GET /health with current matching load
    - Static files (the web client) under /

Does NOT contain:
    - Matching logic (MatchingEngine)
    - Locking (Dispatcher)
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool

from find_reviewer import __version__
from find_reviewer.api.dispatcher import Dispatcher
from find_reviewer.api.schemas import (
    ErrorResponse,
    HealthCheckResponse,
    decode_request,
    encode_response,
)
from find_reviewer.domain.types import KnownIdentity, SendIdentity
from find_reviewer.service.errors import MethodNotAllowedError, RequestError
from find_reviewer.service.logging import Loggers, set_request_id

logger = Loggers.api()

ENDPOINT = "/find-reviewer"
SESSION_COOKIE = "find-reviewer-token"


# ============================================================================
# MIDDLEWARE
# ============================================================================


async def request_logging_middleware(request: Request, call_next):
    """
    Log every request with method, path, status code and duration.

    A short request id is bound into the logging context so engine log
    lines can be correlated with the request that caused them.
    """
    set_request_id(str(uuid4())[:8])
    start_time = time.monotonic()
    try:
        response = await call_next(request)
        logger.info(
            "Request completed",
            event_type="request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_s=round(time.monotonic() - start_time, 4),
        )
        return response
    finally:
        set_request_id(None)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


async def request_error_handler(request: Request, exc: RequestError) -> JSONResponse:
    """Requests rejected before the engine map to 400 Bad Request."""
    logger.warning(
        "Request rejected",
        event_type="request_rejected",
        method=request.method,
        path=request.url.path,
        code=exc.code,
        reason=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(code=exc.code, message=str(exc)).model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected errors map to 500 and are logged with their traceback."""
    logger.error(
        "Unexpected error",
        event_type="internal_error",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            code="INTERNAL_SERVER_ERROR", message="An unexpected error occurred"
        ).model_dump(),
    )


# ============================================================================
# APP FACTORY
# ============================================================================


def create_app(dispatcher: Dispatcher, static_dir: Optional[str] = None) -> FastAPI:
    """
    FastAPI application factory.

    Args:
        dispatcher: Shared dispatcher guarding the matching engine
        static_dir: Directory served under / (skipped if missing)

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="find-reviewer",
        version=__version__,
        description="Matches coders who need a code review with reviewers who have time.",
    )
    app.state.dispatcher = dispatcher

    app.middleware("http")(request_logging_middleware)
    app.add_exception_handler(RequestError, request_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.post(ENDPOINT)
    async def find_reviewer(request: Request) -> JSONResponse:
        body = await request.body()
        parsed = decode_request(body)
        session_token = request.cookies.get(SESSION_COOKIE)

        # The dispatcher blocks on a thread lock; keep it off the event loop.
        result = await run_in_threadpool(dispatcher.dispatch, parsed, session_token)

        response = JSONResponse(content=encode_response(result))
        if isinstance(parsed, SendIdentity) and isinstance(result, KnownIdentity):
            response.set_cookie(SESSION_COOKIE, parsed.token, httponly=True, samesite="strict")
        return response

    @app.api_route(
        ENDPOINT,
        methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"],
        include_in_schema=False,
    )
    async def find_reviewer_wrong_method(request: Request) -> JSONResponse:
        raise MethodNotAllowedError(request.method)

    @app.get("/health", response_model=HealthCheckResponse, tags=["health"])
    async def health_check() -> HealthCheckResponse:
        stats = await run_in_threadpool(dispatcher.stats)
        return HealthCheckResponse(
            version=__version__,
            waiting=stats.waiting,
            active_reviews=stats.active_reviews,
            parked=stats.parked,
        )

    if static_dir and Path(static_dir).is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
    elif static_dir:
        logger.warning(
            "Static directory not found, web client not served",
            event_type="static_missing",
            static_dir=static_dir,
        )

    return app
