"""Switchyard application class.

Mutable during setup (route registration, groups, middleware, aliases).
Frozen on first use: the declarations are composed into a sealed
``RouteTable`` and wrapped in a ``Dispatcher``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from switchyard.config import RouterConfig
from switchyard.errors import ConfigurationError, RateLimitExceeded
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.routing.builder import Handler, RouteCollector, RouteGroup
from switchyard.routing.declarations import MiddlewareRef, ThrottlePolicy
from switchyard.routing.export import RouteRecord, export_routes
from switchyard.routing.table import RouteTable, build_table
from switchyard.server.dispatcher import Dispatcher
from switchyard.server.strategy import DispatchStrategy, HtmlStrategy

if TYPE_CHECKING:
    from switchyard.stores.protocol import CounterStore

logger = logging.getLogger("switchyard.routing")


class App:
    """The switchyard application.

    Usage::

        app = App(counter_store=MemoryCounterStore())

        @app.get("/users/{id:int}", name="users.show")
        def show_user(id: int):
            return {"id": id}

        response = await app.handle("GET", "/users/42")

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread builds the table, even when several workers hit the first
        request concurrently.
    """

    __slots__ = (
        "_aliases",
        "_clock",
        "_collector",
        "_counter_store",
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_middleware_list",
        "_strategy",
        "_table",
        "config",
    )

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        counter_store: CounterStore | None = None,
        strategy: DispatchStrategy | None = None,
        middleware_aliases: Mapping[str, MiddlewareRef] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.config: RouterConfig = config or RouterConfig()
        self._collector = RouteCollector()
        self._counter_store = counter_store
        self._strategy: DispatchStrategy = strategy or HtmlStrategy(debug=self.config.debug)
        self._aliases: dict[str, MiddlewareRef] = dict(middleware_aliases or {})
        self._middleware_list: list[MiddlewareRef] = []
        self._clock = clock
        self._freeze_lock = threading.Lock()
        self._frozen = False

        # Compiled state, set during _freeze()
        self._table: RouteTable | None = None
        self._dispatcher: Dispatcher | None = None

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: str | Iterable[str] = ("GET",),
        name: str | None = None,
        middleware: Iterable[MiddlewareRef] = (),
        where: Mapping[str, str] | None = None,
        host: str | None = None,
        throttle: ThrottlePolicy | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: Path template. Use ``{param}`` or ``{param:pattern}``.
            methods: HTTP methods. Defaults to ``GET``.
            name: Optional, globally unique route name.
            middleware: Route-level middleware (callables, classes, or aliases).
            where: Parameter constraints (param -> pattern or converter name).
            host: Restrict the route to one host.
            throttle: Fixed-window rate limit for this route.
        """
        self._check_not_frozen()
        return self._collector.route(
            path,
            methods=methods,
            name=name,
            middleware=middleware,
            where=where,
            host=host,
            throttle=throttle,
        )

    def get(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("GET",), **options)

    def post(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("POST",), **options)

    def put(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("PUT",), **options)

    def patch(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("PATCH",), **options)

    def delete(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("DELETE",), **options)

    def group(
        self,
        prefix: str = "",
        *,
        name: str | None = None,
        middleware: Iterable[MiddlewareRef] = (),
        where: Mapping[str, str] | None = None,
        host: str | None = None,
        throttle: ThrottlePolicy | None = None,
    ) -> RouteGroup:
        """Open a route group whose defaults its routes inherit::

            with app.group("/admin", name="admin.", middleware=["auth"]) as admin:
                @admin.get("/")
                def dashboard(): ...
        """
        self._check_not_frozen()
        return self._collector.group(
            prefix,
            name=name,
            middleware=middleware,
            where=where,
            host=host,
            throttle=throttle,
        )

    # -- Middleware --

    def add_middleware(self, middleware: MiddlewareRef) -> None:
        """Add app-wide middleware. Runs outside every group and route middleware."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def middleware_alias(self, name: str, middleware: MiddlewareRef) -> None:
        """Register *middleware* under a string alias usable in routes and groups."""
        self._check_not_frozen()
        self._aliases[name] = middleware

    # -- Not-found override --

    def not_found(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register the application's not-found handler via decorator.

        The handler may take ``()``, ``(request)``, or ``(request, exc)``.
        Returning ``None`` falls back to the strategy's default page.
        """
        self._check_not_frozen()
        setter = getattr(self._strategy, "set_not_found_handler", None)
        if setter is None:
            msg = f"{type(self._strategy).__name__} does not support a not-found handler."
            raise ConfigurationError(msg)
        setter(func)
        return func

    # -- Runtime --

    @property
    def strategy(self) -> DispatchStrategy:
        return self._strategy

    @property
    def table(self) -> RouteTable:
        """The sealed route table (builds it on first access)."""
        self._ensure_frozen()
        assert self._table is not None
        return self._table

    def routes(self) -> list[RouteRecord]:
        """Export the table as flat ``{methods, path, name, host, handler}`` records."""
        return export_routes(self.table)

    async def handle(
        self,
        method: str,
        path: str,
        *,
        host: str = "",
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
        client: tuple[str, int] | None = None,
    ) -> Response:
        """Dispatch one normalized request and return its response."""
        request = Request.build(method, path, host=host, headers=headers, client=client)
        return await self(request)

    async def __call__(self, request: Request) -> Response:
        self._ensure_frozen()
        assert self._dispatcher is not None
        return await self._dispatcher.dispatch(request)

    # -- Internal --

    async def _render_rate_limit(self, request: Request, exc: RateLimitExceeded) -> Response:
        return await self._strategy.render_http_error(request, exc)

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock. A configuration
        error leaves the app unfrozen.
        """
        table = build_table(
            self._collector.declarations,
            self.config,
            counter_store=self._counter_store,
            middleware_aliases=self._aliases,
            base_middleware=self._middleware_list,
            rate_limit_renderer=self._render_rate_limit,
            clock=self._clock,
        )
        self._table = table
        self._dispatcher = Dispatcher(table, self._strategy)
        self._frozen = True
        logger.debug("Built %r", table)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after its route table has been built. "
                "Register routes, groups, and middleware before the first request."
            )
            raise ConfigurationError(msg)
