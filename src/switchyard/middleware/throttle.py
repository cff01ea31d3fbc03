"""Fixed-window throttling middleware.

Synthesized by the composer for every route that resolves a
``ThrottlePolicy``; it is always the innermost layer, directly before
the handler.

Counting is best effort. The counter key is
``throttle:{key source}:{key value}:{window index}`` with
``window index = floor(now / window_seconds)``. When the counter store
errors or exceeds its time budget the request is let through and a
warning is logged: availability wins over strict enforcement. Limits
are only consistent across processes when the backing store increments
atomically.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import anyio

from switchyard.errors import RateLimitExceeded
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.protocol import Next

if TYPE_CHECKING:
    from switchyard.routing.declarations import ThrottlePolicy
    from switchyard.stores.protocol import CounterStore

logger = logging.getLogger("switchyard.throttle")


def default_rate_limited_response(exc: RateLimitExceeded) -> Response:
    """Plain-text 429 used when no strategy renderer is wired in."""
    return Response(
        body=exc.detail,
        status=exc.status,
        content_type="text/plain; charset=utf-8",
        headers=exc.headers,
    )


class ThrottleMiddleware:
    """Reject requests once a client exhausts its window."""

    __slots__ = ("_clock", "_render", "_store", "_timeout", "policy")

    def __init__(
        self,
        policy: ThrottlePolicy,
        store: CounterStore,
        *,
        timeout: float = 0.25,
        render: Callable[[Request, RateLimitExceeded], Awaitable[Response]] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.policy = policy
        self._store = store
        self._timeout = timeout
        self._render = render
        self._clock = clock or time.time

    def identity_key(self, request: Request) -> str:
        """Resolve the client identity for this policy.

        ``"ip"`` uses the client address. Any other key names a header;
        a missing header falls back to the client address.
        """
        key = self.policy.key
        if key.lower() != "ip":
            value = (request.headers.get(key) or "").strip()
            if value:
                return value
        return request.client_ip or "unknown"

    def counter_key(self, request: Request, now: float) -> str:
        window_index = math.floor(now / self.policy.window_seconds)
        return f"throttle:{self.policy.key.lower()}:{self.identity_key(request)}:{window_index}"

    async def __call__(self, request: Request, next: Next) -> Response:
        now = self._clock()
        key = self.counter_key(request, now)

        try:
            with anyio.fail_after(self._timeout):
                count = await self._store.get(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Counter store read failed for %s %s, allowing request: %r",
                request.method,
                request.path,
                exc,
            )
            return await next(request)

        if count >= self.policy.limit:
            window = self.policy.window_seconds
            retry_after = math.ceil((math.floor(now / window) + 1) * window - now)
            logger.debug("Throttled %s %s (key %s)", request.method, request.path, key)
            exc = RateLimitExceeded(retry_after)
            if self._render is not None:
                return await self._render(request, exc)
            return default_rate_limited_response(exc)

        try:
            with anyio.fail_after(self._timeout):
                await self._store.increment(key, self.policy.window_seconds)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Counter store increment failed for %s %s, allowing request: %r",
                request.method,
                request.path,
                exc,
            )

        return await next(request)
