"""Route declarations and group scopes: the raw build input.

Declarations are produced by whatever collects routes (the fluent
builder in ``switchyard.routing.builder``, a config loader, a decorator
scanner) and are never mutated afterwards. Scopes form a tree through
``parent`` pointers; the root has no parent.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from switchyard.errors import ConfigurationError

# A middleware callable, a middleware class, or a registered alias name
type MiddlewareRef = Callable[..., Any] | type | str


@dataclass(frozen=True, slots=True)
class ThrottlePolicy:
    """Fixed-window rate limit: *limit* requests per *window_seconds*.

    ``key`` is ``"ip"`` (client address) or the name of a request
    header such as ``"X-API-Key"``.
    """

    limit: int
    window_seconds: int = 60
    key: str = "ip"

    def __post_init__(self) -> None:
        if self.limit < 1:
            msg = f"Throttle limit must be at least 1, got {self.limit}."
            raise ConfigurationError(msg)
        if self.window_seconds < 1:
            msg = f"Throttle window must be at least 1 second, got {self.window_seconds}."
            raise ConfigurationError(msg)
        if not str(self.key or "").strip():
            msg = "Throttle key must be 'ip' or a header name."
            raise ConfigurationError(msg)


@dataclass(frozen=True, slots=True)
class GroupScope:
    """A nestable set of defaults inherited by the routes inside it."""

    prefix: str = ""
    name_prefix: str | None = None
    middleware: tuple[MiddlewareRef, ...] = ()
    constraints: Mapping[str, str] = field(default_factory=dict)
    host: str | None = None
    throttle: ThrottlePolicy | None = None
    parent: GroupScope | None = None

    def child(
        self,
        prefix: str = "",
        *,
        name: str | None = None,
        middleware: Iterable[MiddlewareRef] = (),
        where: Mapping[str, str] | None = None,
        host: str | None = None,
        throttle: ThrottlePolicy | None = None,
    ) -> GroupScope:
        """Return a new scope nested inside this one."""
        return GroupScope(
            prefix=prefix,
            name_prefix=name,
            middleware=tuple(middleware),
            constraints=dict(where or {}),
            host=host,
            throttle=throttle,
            parent=self,
        )

    def chain(self) -> tuple[GroupScope, ...]:
        """Return the scopes from the root down to (and including) this one."""
        scopes: list[GroupScope] = []
        scope: GroupScope | None = self
        while scope is not None:
            scopes.append(scope)
            scope = scope.parent
        return tuple(reversed(scopes))


@dataclass(frozen=True, slots=True)
class RouteDeclaration:
    """One route's raw, pre-composition definition."""

    methods: tuple[str, ...]
    path: str
    handler: Callable[..., Any]
    name: str | None = None
    middleware: tuple[MiddlewareRef, ...] = ()
    constraints: Mapping[str, str] = field(default_factory=dict)
    host: str | None = None
    throttle: ThrottlePolicy | None = None
    scope: GroupScope | None = None

    def scope_chain(self) -> tuple[GroupScope, ...]:
        """The enclosing scopes, outermost first (empty for a bare declaration)."""
        if self.scope is None:
            return ()
        return self.scope.chain()
