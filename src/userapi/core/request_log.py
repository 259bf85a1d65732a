"""
Request logging.

Every request is recorded after it completes as ``METHOD PATH -> STATUS``,
both on the console through structlog and as a line appended to the log
file. Unhandled exceptions are appended to the same file.
"""

import time
from pathlib import Path
from typing import Optional

import structlog
from aiofiles import open as aio_open
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.routing import Match
from starlette.types import ASGIApp

from .metrics import MetricsCollector

logger = structlog.get_logger(__name__)


class RequestLogWriter:
    """Appends lines to the request log file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    async def write(self, line: str) -> bool:
        """
        Append one line to the log file.

        Best effort: a failed write is reported on the console only.
        Returns whether the line was written.
        """
        try:
            async with aio_open(self.path, 'a', encoding='utf-8') as f:
                await f.write(line.rstrip("\n") + "\n")
            return True
        except OSError as e:
            logger.warning(
                "Failed to append to request log",
                path=str(self.path),
                error=str(e),
            )
            return False


def route_template(request: Request) -> str:
    """
    Full path template of the app route serving the request, prefix included.

    Used as the metrics label so cardinality stays bounded.
    """
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path_format", None) or getattr(route, "path", "unmatched")
    return "unmatched"


def format_request_line(method: str, path: str, status_code: int) -> str:
    return f"{method} {path} -> {status_code}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    """
    Records method, path and final status of every request.

    Registered outermost so rejected and failing requests are logged too.
    """

    def __init__(
        self,
        app: ASGIApp,
        writer: RequestLogWriter,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        super().__init__(app)
        self.writer = writer
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration = time.perf_counter() - start_time
            await self._record(request, status_code, duration)

    async def _record(self, request: Request, status_code: int, duration: float) -> None:
        method = request.method
        path = request.url.path

        logger.info(
            format_request_line(method, path, status_code),
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=round(duration * 1000, 2),
        )

        if self.metrics is not None:
            self.metrics.record_request(method, route_template(request), status_code, duration)

        await self.writer.write(format_request_line(method, path, status_code))
