"""Fluent route collection.

``RouteCollector`` gathers ``RouteDeclaration`` values through
decorators and nested groups::

    routes = RouteCollector()

    @routes.get("/", name="home")
    def home():
        return "hello"

    with routes.group("/admin", name="admin.", middleware=["auth"]) as admin:
        @admin.get("/users/{id}", name="users.show", where={"id": "int"})
        def show_user(id: int):
            return {"id": id}

        with admin.group("/reports", throttle=ThrottlePolicy(10)) as reports:
            ...

Groups only record defaults; nothing is composed until the declarations
are handed to ``build_table``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from switchyard.routing.declarations import GroupScope, MiddlewareRef, RouteDeclaration, ThrottlePolicy

type Handler = Callable[..., Any]

ANY_METHODS: tuple[str, ...] = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


class RouteGroup:
    """Registers routes under one ``GroupScope``.

    Usable directly or as a context manager; the ``with`` block is only
    a visual grouping, the scope is fixed when the group is created.
    """

    __slots__ = ("_declarations", "scope")

    def __init__(self, scope: GroupScope, declarations: list[RouteDeclaration]) -> None:
        self.scope = scope
        self._declarations = declarations

    def __enter__(self) -> RouteGroup:
        return self

    def __exit__(self, *args: object) -> None:
        return None

    # -- Registration --

    def add(
        self,
        methods: str | Iterable[str],
        path: str,
        handler: Handler,
        *,
        name: str | None = None,
        middleware: Iterable[MiddlewareRef] = (),
        where: Mapping[str, str] | None = None,
        host: str | None = None,
        throttle: ThrottlePolicy | None = None,
    ) -> RouteDeclaration:
        """Record a declaration and return it."""
        if isinstance(methods, str):
            methods = (methods,)
        declaration = RouteDeclaration(
            methods=tuple(methods),
            path=path,
            handler=handler,
            name=name,
            middleware=tuple(middleware),
            constraints=dict(where or {}),
            host=host,
            throttle=throttle,
            scope=self.scope,
        )
        self._declarations.append(declaration)
        return declaration

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
            name: Route name, prefixed by enclosing group names.
            middleware: Route-level middleware, innermost before throttling.
            where: Parameter constraints (param -> pattern or converter name).
            host: Host restriction; overrides any group host.
            throttle: Rate limit; overrides any group throttle.
        """
        middleware = tuple(middleware)

        def decorator(func: Handler) -> Handler:
            self.add(
                methods,
                path,
                func,
                name=name,
                middleware=middleware,
                where=where,
                host=host,
                throttle=throttle,
            )
            return func

        return decorator

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

    def options(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("OPTIONS",), **options)

    def any(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        """Register for every common method."""
        return self.route(path, methods=ANY_METHODS, **options)

    # -- Nesting --

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
        """Open a nested group inheriting this group's defaults."""
        scope = self.scope.child(
            prefix,
            name=name,
            middleware=middleware,
            where=where,
            host=host,
            throttle=throttle,
        )
        return RouteGroup(scope, self._declarations)


class RouteCollector(RouteGroup):
    """The root group; owns the ordered declaration list."""

    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(GroupScope(), [])

    @property
    def declarations(self) -> tuple[RouteDeclaration, ...]:
        """All declarations, in registration order."""
        return tuple(self._declarations)

    def __iter__(self) -> Iterator[RouteDeclaration]:
        return iter(tuple(self._declarations))

    def __len__(self) -> int:
        return len(self._declarations)
