"""Route composition: flatten scope inheritance into ComposedRoute records.

Each declaration is composed against its scope chain (root first):

- path:        scope prefixes outer→inner, then the declaration path
- name:        non-empty name prefixes outer→inner + own name (no own name → no name)
- middleware:  app-wide → outer scope → inner scope → declaration → throttle
- constraints: outer scope < inner scope < declaration < inline ``{id:pattern}``
- host:        nearest explicit value (declaration, then nearest scope)
- throttle:    nearest explicit value, materialized as ``ThrottleMiddleware``

Every failure surfaces here as ``ConfigurationError`` so a bad route
stops the build instead of failing at request time.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from switchyard.config import RouterConfig
from switchyard.errors import ConfigurationError, RateLimitExceeded
from switchyard.middleware.throttle import ThrottleMiddleware
from switchyard.routing.declarations import GroupScope, MiddlewareRef, RouteDeclaration, ThrottlePolicy
from switchyard.routing.path import compile_path, join_paths, parse_template
from switchyard.routing.route import ComposedRoute

if TYPE_CHECKING:
    from switchyard.http.request import Request
    from switchyard.http.response import Response
    from switchyard.stores.protocol import CounterStore

logger = logging.getLogger("switchyard.routing")

type RateLimitRenderer = Callable[[Request, RateLimitExceeded], Awaitable[Response]]


class RouteComposer:
    """Compose declarations into immutable ``ComposedRoute`` records.

    Usage::

        composer = RouteComposer(RouterConfig(), counter_store=MemoryCounterStore())
        route = composer.compose(declaration)
    """

    __slots__ = (
        "_aliases",
        "_base_middleware",
        "_clock",
        "_config",
        "_counter_store",
        "_rate_limit_renderer",
    )

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        counter_store: CounterStore | None = None,
        middleware_aliases: Mapping[str, MiddlewareRef] | None = None,
        base_middleware: Iterable[MiddlewareRef] = (),
        rate_limit_renderer: RateLimitRenderer | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._config = config or RouterConfig()
        self._counter_store = counter_store
        self._aliases: dict[str, MiddlewareRef] = dict(middleware_aliases or {})
        self._base_middleware = tuple(base_middleware)
        self._rate_limit_renderer = rate_limit_renderer
        self._clock = clock

    def compose(self, declaration: RouteDeclaration) -> ComposedRoute:
        """Flatten *declaration* and its scope chain into a ComposedRoute."""
        chain = declaration.scope_chain()
        methods = normalize_methods(declaration.methods, declaration.path)

        path = join_paths(*(scope.prefix for scope in chain), declaration.path)
        constraints = self._merge_constraints(declaration, chain, path)
        compiled = compile_path(
            path,
            constraints=constraints,
            trailing_slash=self._config.trailing_slash,
        )

        host = _normalize_host(declaration.host)
        if host is None:
            host = next((h for s in reversed(chain) if (h := _normalize_host(s.host))), None)

        throttle = declaration.throttle
        if throttle is None:
            throttle = next((s.throttle for s in reversed(chain) if s.throttle is not None), None)

        refs: list[MiddlewareRef] = list(self._base_middleware)
        for scope in chain:
            refs.extend(scope.middleware)
        refs.extend(declaration.middleware)
        middleware = [self._resolve_middleware(ref, compiled.template) for ref in refs]
        if throttle is not None:
            middleware.append(self._throttle_middleware(throttle, compiled.template))

        route = ComposedRoute(
            methods=methods,
            path=compiled.template,
            pattern=compiled,
            handler=declaration.handler,
            name=_compose_name(declaration.name, chain),
            host=host,
            middleware=tuple(middleware),
            throttle=throttle,
        )
        logger.debug("Composed route %s with %d middleware", route.describe(), len(middleware))
        return route

    def compose_all(self, declarations: Iterable[RouteDeclaration]) -> list[ComposedRoute]:
        """Compose declarations in order."""
        return [self.compose(declaration) for declaration in declarations]

    # -- Internal --

    def _merge_constraints(
        self,
        declaration: RouteDeclaration,
        chain: tuple[GroupScope, ...],
        path: str,
    ) -> dict[str, str]:
        params = {seg.value for seg in parse_template(path) if seg.is_param}
        merged: dict[str, str] = {}
        for scope in chain:
            merged.update(scope.constraints)
        unknown = sorted(set(declaration.constraints) - params)
        if unknown:
            msg = (
                f"Constraint for {', '.join(repr(n) for n in unknown)} on route {path!r} "
                f"names a parameter that is not in the path."
            )
            raise ConfigurationError(msg)
        merged.update(declaration.constraints)
        return {name: pattern for name, pattern in merged.items() if name in params}

    def _resolve_middleware(self, ref: MiddlewareRef, path: str) -> Callable[..., Any]:
        if isinstance(ref, str):
            if ref not in self._aliases:
                msg = f"Unknown middleware alias {ref!r} on route {path!r}."
                raise ConfigurationError(msg)
            return self._resolve_middleware(self._aliases[ref], path)
        if isinstance(ref, type):
            try:
                return ref()
            except TypeError as exc:
                msg = f"Middleware class {ref.__name__} on route {path!r} cannot be built without arguments."
                raise ConfigurationError(msg) from exc
        if callable(ref):
            return ref
        msg = f"Middleware {ref!r} on route {path!r} is not callable."
        raise ConfigurationError(msg)

    def _throttle_middleware(self, policy: ThrottlePolicy, path: str) -> ThrottleMiddleware:
        if self._counter_store is None:
            msg = (
                f"Route {path!r} is throttled but no counter store was supplied. "
                "Pass counter_store= when building the route table."
            )
            raise ConfigurationError(msg)
        return ThrottleMiddleware(
            policy,
            self._counter_store,
            timeout=self._config.throttle_timeout,
            render=self._rate_limit_renderer,
            clock=self._clock,
        )


def normalize_methods(methods: Iterable[str], path: str = "") -> tuple[str, ...]:
    """Upper-case, strip, and de-duplicate *methods*, preserving order."""
    if isinstance(methods, str):
        methods = (methods,)
    out: list[str] = []
    for method in methods:
        value = str(method or "").strip().upper()
        if value and value not in out:
            out.append(value)
    if not out:
        msg = f"Route {path!r} declares no HTTP methods."
        raise ConfigurationError(msg)
    return tuple(out)


def _compose_name(name: str | None, chain: tuple[GroupScope, ...]) -> str | None:
    if not name:
        return None
    prefix = "".join(scope.name_prefix for scope in chain if scope.name_prefix)
    return prefix + name


def _normalize_host(host: str | None) -> str | None:
    return normalize_request_host(host) or None


def normalize_request_host(host: str | None) -> str:
    """Lower-case *host* and drop a ``:port`` suffix (IPv6 aware)."""
    value = str(host or "").strip().lower()
    if value.startswith("["):
        end = value.find("]")
        return value[: end + 1] if end != -1 else value
    name, sep, port = value.rpartition(":")
    if sep and port.isdigit() and ":" not in name:
        return name
    return value
