"""ComposedRoute and the match outcome frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from switchyard.routing.declarations import ThrottlePolicy
from switchyard.routing.path import CompiledPath


@dataclass(frozen=True, slots=True)
class ComposedRoute:
    """A fully resolved route.

    Created once by the composer, owned by the route table, never
    mutated. ``host`` of ``None`` matches any host. ``middleware`` is
    the complete chain, outermost first.
    """

    methods: tuple[str, ...]
    path: str
    pattern: CompiledPath
    handler: Callable[..., Any]
    name: str | None = None
    host: str | None = None
    middleware: tuple[Callable[..., Any], ...] = ()
    throttle: ThrottlePolicy | None = None

    @property
    def shape(self) -> tuple[str | None, ...]:
        """Structural path shape used for conflict detection."""
        return self.pattern.shape

    def describe(self) -> str:
        """Short human-readable label for error messages and logs."""
        methods = "|".join(self.methods)
        label = f"{methods} {self.path}"
        if self.host:
            label = f"{label} (host {self.host})"
        if self.name:
            label = f"{label} [{self.name}]"
        return label


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: ComposedRoute
    path_params: dict[str, str]


@dataclass(frozen=True, slots=True)
class MethodNotAllowedOutcome:
    """Host and path matched, the method did not.

    ``allowed`` is the first-seen, de-duplicated union of the methods of
    every host-and-path-matching route, in registration order.
    """

    allowed: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class NotFoundOutcome:
    """No route matched the host and path."""

    method: str
    host: str
    path: str


type ResolveResult = RouteMatch | MethodNotAllowedOutcome | NotFoundOutcome
