"""Onion-model middleware execution.

The chain is wrapped once, innermost first, so the first middleware in
the list is the outermost layer::

    mw[0] -> mw[1] -> ... -> mw[n-1] -> endpoint

Each layer may call ``next`` and post-process the result, or return its
own response without calling ``next`` (short-circuit). There is no
re-ordering, no priority, and no retry; exceptions propagate to the
caller.
"""

from collections.abc import Callable, Sequence
from typing import Any

from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.protocol import Next


class MiddlewarePipeline:
    """A fixed middleware chain around a terminal endpoint.

    The wrapped chain holds no per-request state, so one pipeline can be
    shared by concurrent requests.
    """

    __slots__ = ("_chain", "middleware")

    def __init__(self, middleware: Sequence[Callable[..., Any]], endpoint: Next) -> None:
        self.middleware: tuple[Callable[..., Any], ...] = tuple(middleware)

        handler = endpoint
        for mw in reversed(self.middleware):
            outer = handler

            async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> Response:
                return await _mw(req, _next)

            handler = make_next
        self._chain: Next = handler

    async def __call__(self, request: Request) -> Response:
        """Run *request* through every layer and the endpoint."""
        return await self._chain(request)

    def __len__(self) -> int:
        return len(self.middleware)
