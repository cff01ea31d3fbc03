"""Sealed route table with registration-order matching.

Routes are inserted during the build phase, each one checked by the
``ConflictDetector``, and the table is then sealed. A sealed table is
read-only: resolving a request only reads, so any number of workers
may share one table without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING

from switchyard.config import RouterConfig
from switchyard.errors import ConfigurationError, MethodNotAllowed, NotFound
from switchyard.routing.composer import RateLimitRenderer, RouteComposer, normalize_request_host
from switchyard.routing.conflicts import ConflictDetector
from switchyard.routing.declarations import MiddlewareRef, RouteDeclaration
from switchyard.routing.route import (
    ComposedRoute,
    MethodNotAllowedOutcome,
    NotFoundOutcome,
    ResolveResult,
    RouteMatch,
)

if TYPE_CHECKING:
    from switchyard.stores.protocol import CounterStore

logger = logging.getLogger("switchyard.routing")


class RouteTable:
    """Ordered, sealable collection of ``ComposedRoute``.

    Usage::

        table = RouteTable()
        table.add(route)
        table.seal()
        outcome = table.resolve("GET", "example.com", "/users/42")
    """

    __slots__ = ("_conflicts", "_routes", "_sealed")

    def __init__(self, *, conflict_detection: bool = True) -> None:
        self._routes: list[ComposedRoute] = []
        self._conflicts = ConflictDetector(enabled=conflict_detection)
        self._sealed = False

    # -- Build phase --

    def add(self, route: ComposedRoute) -> None:
        """Insert a route. Must be called before ``seal()``.

        Raises ``ConfigurationError`` once sealed and
        ``RouteConflictError`` on a duplicate name or shape; in both cases
        the table is left exactly as it was.
        """
        if self._sealed:
            msg = (
                f"Cannot add {route.describe()}: the route table is sealed. "
                "Build a new table to change routes."
            )
            raise ConfigurationError(msg)
        self._conflicts.check(route)
        self._conflicts.record(route)
        self._routes.append(route)

    def seal(self) -> None:
        """Freeze the table. No more routes can be added."""
        self._sealed = True
        logger.debug("Sealed route table with %d routes", len(self._routes))

    @property
    def sealed(self) -> bool:
        return self._sealed

    # -- Introspection --

    @property
    def routes(self) -> tuple[ComposedRoute, ...]:
        """All routes in registration order."""
        return tuple(self._routes)

    def get(self, name: str) -> ComposedRoute | None:
        """Return the route registered under *name*, or ``None``."""
        return self._conflicts.by_name(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._conflicts.by_name(name) is not None

    def __iter__(self) -> Iterator[ComposedRoute]:
        return iter(tuple(self._routes))

    def __len__(self) -> int:
        return len(self._routes)

    def __repr__(self) -> str:
        state = "sealed" if self._sealed else "open"
        return f"<RouteTable {len(self._routes)} routes, {state}>"

    # -- Matching --

    def resolve(self, method: str, host: str, path: str) -> ResolveResult:
        """Resolve a request to a match, a 405 outcome, or a 404 outcome.

        Routes are scanned in registration order and the first route
        whose host, path, and method all match wins. Methods of routes
        that matched host and path are collected (first seen,
        de-duplicated) for the method-not-allowed outcome.
        """
        method_value = str(method or "").strip().upper()
        request_host = normalize_request_host(host)
        path_value = path or "/"

        allowed: list[str] = []
        for route in self._routes:
            if route.host is not None and route.host != request_host:
                continue
            params = route.pattern.match(path_value)
            if params is None:
                continue
            if method_value in route.methods:
                return RouteMatch(route=route, path_params=params)
            for m in route.methods:
                if m not in allowed:
                    allowed.append(m)

        if allowed:
            return MethodNotAllowedOutcome(allowed=tuple(allowed))
        return NotFoundOutcome(method=method_value, host=request_host, path=path_value)

    def match(self, method: str, path: str, *, host: str = "") -> RouteMatch:
        """Match a request, raising on failure.

        Returns a ``RouteMatch`` on success.
        Raises ``NotFound`` if no route matches the host and path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        outcome = self.resolve(method, host, path)
        match outcome:
            case RouteMatch():
                return outcome
            case MethodNotAllowedOutcome(allowed=allowed):
                raise MethodNotAllowed(allowed)
            case _:
                raise NotFound(f"No route matches {method} {path!r}")


def build_table(
    declarations: Iterable[RouteDeclaration],
    config: RouterConfig | None = None,
    *,
    counter_store: CounterStore | None = None,
    middleware_aliases: Mapping[str, MiddlewareRef] | None = None,
    base_middleware: Iterable[MiddlewareRef] = (),
    rate_limit_renderer: RateLimitRenderer | None = None,
    clock: Callable[[], float] | None = None,
) -> RouteTable:
    """Compose every declaration, insert it with conflict checks, and seal.

    Any ``ConfigurationError`` aborts the build; no partially built table
    escapes.
    """
    config = config or RouterConfig()
    composer = RouteComposer(
        config,
        counter_store=counter_store,
        middleware_aliases=middleware_aliases,
        base_middleware=base_middleware,
        rate_limit_renderer=rate_limit_renderer,
        clock=clock,
    )
    table = RouteTable(conflict_detection=config.conflict_detection)
    for declaration in declarations:
        table.add(composer.compose(declaration))
    table.seal()
    return table

