"""Per-client budget for Gemini-backed requests.

Only the routes that make the server call Gemini are metered: location
field changes and sub-mode switches (candidate listings), searches and
retries (grounded lookups).  Keystrokes on ``quick-input`` are already
collapsed by the session debouncer, and snapshot reads, catalog, health
and metrics cost nothing, so they pass through uncounted.

Budgets live in process memory; each worker keeps its own.
"""

from __future__ import annotations

import math
import re
import time
from collections import deque
from collections.abc import Callable
from typing import Final

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_SESSION: Final[str] = r"^/api/v1/sessions/[^/]+"

# (method, path pattern) of every route that issues a Gemini call.
METERED_ROUTES: Final[tuple[tuple[str, re.Pattern[str]], ...]] = (
    ("PUT", re.compile(_SESSION + r"/selection/[^/]+$")),
    ("PUT", re.compile(_SESSION + r"/sub-mode$")),
    ("POST", re.compile(_SESSION + r"/search(?:/detailed|/autocomplete|/example)?$")),
    ("POST", re.compile(_SESSION + r"/retry$")),
)

# Idle clients are dropped once this many are tracked.
_MAX_TRACKED_CLIENTS: Final[int] = 10_000


def is_metered(method: str, path: str) -> bool:
    return any(method == m and pattern.match(path) for m, pattern in METERED_ROUTES)


def client_address(request: Request, trusted_proxy_count: int) -> str:
    """Client address, read from ``X-Forwarded-For`` behind trusted proxies.

    With *trusted_proxy_count* N the rightmost N hops are proxies and the
    client is the hop just before them.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for and trusted_proxy_count > 0:
        hops = [hop.strip() for hop in forwarded_for.split(",") if hop.strip()]
        if len(hops) > trusted_proxy_count:
            return hops[-(trusted_proxy_count + 1)]
        if hops:
            return hops[0]
    if request.client:
        return request.client.host
    return "unknown"


class CallBudget:
    """At most *limit* Gemini-backed requests per client per window.

    Admission is synchronous and never awaits, so it needs no lock on a
    single event loop.
    """

    __slots__ = ("_calls", "_clock", "_limit", "_window")

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._window = window_seconds
        self._clock = clock
        self._calls: dict[str, deque[float]] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def try_acquire(self, client: str) -> float:
        """Record one call for *client*.

        Returns ``0.0`` when admitted, otherwise the seconds until the
        oldest call in the window expires.
        """
        now = self._clock()
        calls = self._expire(client, now)
        if len(calls) >= self._limit:
            return max(calls[0] + self._window - now, 0.001)
        calls.append(now)
        return 0.0

    def remaining(self, client: str) -> int:
        return max(self._limit - len(self._expire(client, self._clock())), 0)

    def _expire(self, client: str, now: float) -> deque[float]:
        if client not in self._calls and len(self._calls) >= _MAX_TRACKED_CLIENTS:
            self._forget_idle(now)
        calls = self._calls.setdefault(client, deque())
        while calls and calls[0] <= now - self._window:
            calls.popleft()
        return calls

    def _forget_idle(self, now: float) -> None:
        idle = [c for c, calls in self._calls.items() if not calls or calls[-1] <= now - self._window]
        for client in idle:
            del self._calls[client]
        logger.debug("rate_limit.forgot_idle_clients", clients=len(idle))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies a :class:`CallBudget` to the metered routes.

    Parameters
    ----------
    app:
        The ASGI application.
    max_requests_per_minute:
        Gemini-backed requests allowed per client per minute.
    trusted_proxy_count:
        Reverse proxies in front of the app; 0 uses the socket peer.
    """

    def __init__(
        self,
        app: object,
        max_requests_per_minute: int = 120,
        trusted_proxy_count: int = 0,
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._budget = CallBudget(max_requests_per_minute)
        self._trusted_proxy_count = trusted_proxy_count

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not is_metered(request.method, request.url.path):
            return await call_next(request)

        client = client_address(request, self._trusted_proxy_count)
        wait = self._budget.try_acquire(client)
        if wait:
            retry_after = math.ceil(wait)
            logger.warning(
                "rate_limit.exceeded",
                client=client,
                path=request.url.path,
                limit=self._budget.limit,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Too many lookups. Please slow down.",
                    "retry_after_seconds": retry_after,
                },
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(self._budget.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self._budget.limit)
        response.headers["X-RateLimit-Remaining"] = str(self._budget.remaining(client))
        return response
