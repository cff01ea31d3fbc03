"""Switchyard exception hierarchy.

Shared across the composer, route table, dispatcher, and middleware so
every module raises and catches the same types.

Build-time errors (``ConfigurationError`` and ``RouteConflictError``)
abort table construction. ``HTTPError`` subclasses are per-request and
are rendered by the dispatch strategy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from switchyard.routing.route import ComposedRoute


class SwitchyardError(Exception):
    """Base for all switchyard-specific errors."""


class ConfigurationError(SwitchyardError):
    """Raised when route configuration is invalid.

    Typically raised while composing declarations or inserting into the
    route table, before any request is served.
    """


class RouteConflictError(ConfigurationError):
    """Two routes claim the same name or the same (method, host, shape).

    Carries both routes so the message can point at the declarations
    that need to change.
    """

    def __init__(self, message: str, *, existing: ComposedRoute, incoming: ComposedRoute) -> None:
        super().__init__(message)
        self.existing = existing
        self.incoming = incoming


@dataclass(frozen=True, slots=True)
class HTTPError(SwitchyardError):
    """An error that maps directly to an HTTP status code.

    Raised by the route table, middleware, or handlers. The dispatcher
    catches these and hands them to the dispatch strategy for rendering.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request host and path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: a route matched the host and path, but not the method.

    ``allowed`` keeps registration order (first seen, de-duplicated) and
    is rendered into the ``Allow`` header verbatim.
    """

    def __init__(self, allowed: tuple[str, ...], detail: str = "") -> None:
        allow_value = ", ".join(allowed)
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )

    @property
    def allowed(self) -> tuple[str, ...]:
        """The allowed methods, in registration order."""
        for name, value in self.headers:
            if name == "Allow":
                return tuple(m.strip() for m in value.split(",") if m.strip())
        return ()


class RateLimitExceeded(HTTPError):  # noqa: N818
    """429: the throttle window for this client is exhausted."""

    def __init__(self, retry_after: int, detail: str = "Too Many Requests") -> None:
        super().__init__(
            status=429,
            detail=detail,
            headers=(("Retry-After", str(max(1, retry_after))),),
        )

    @property
    def retry_after(self) -> int:
        """Seconds until the current window closes."""
        for name, value in self.headers:
            if name == "Retry-After":
                return int(value)
        return 1
