from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from fastapi import FastAPI, Request, Response

    from vacation_engine.config import Settings

logger = logging.getLogger(__name__)

CALLER_HEADERS = ["X-Company-Id", "X-User-Id", "X-Role"]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every mutating call and every failed call with its timing.

    Only the method, path, status and caller role are logged; bodies never are.
    """

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        if request.method != "GET" or response.status_code >= 400:
            logger.log(
                logging.WARNING if response.status_code >= 400 else logging.INFO,
                "%s %s -> %d in %.3fs (role=%s)",
                request.method,
                request.url.path,
                response.status_code,
                elapsed,
                request.headers.get("X-Role", "-"),
            )
        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"
        return response


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install request logging and CORS for the caller-identity headers."""
    app.add_middleware(RequestLoggingMiddleware)  # ty: ignore[invalid-argument-type]
    app.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", *CALLER_HEADERS],
        expose_headers=["X-Response-Time"],
    )
