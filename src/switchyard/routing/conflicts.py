"""Build-time conflict detection for the route table.

Two checks run for every inserted route:

- **name**: a route name may be registered once (always on)
- **shape**: no two routes may share a method, a host (``None`` counts as
  its own value) and a path shape (only when enabled)

The detector owns both indices so the table stays a thin ordered list.
"""

from switchyard.errors import RouteConflictError
from switchyard.routing.route import ComposedRoute

type ShapeKey = tuple[str, str | None, tuple[str | None, ...]]


class ConflictDetector:
    """Validates routes against everything inserted before them.

    ``check()`` never mutates; ``record()`` updates the indices and must
    only be called after ``check()`` passed, so a rejected route leaves
    no trace.
    """

    __slots__ = ("_by_name", "_by_shape", "enabled")

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled
        self._by_name: dict[str, ComposedRoute] = {}
        self._by_shape: dict[ShapeKey, ComposedRoute] = {}

    def check(self, route: ComposedRoute) -> None:
        """Raise ``RouteConflictError`` if *route* collides with an earlier one."""
        if route.name is not None:
            existing = self._by_name.get(route.name)
            if existing is not None:
                msg = (
                    f"Route name {route.name!r} is already used by {existing.describe()}; "
                    f"cannot register {route.describe()}."
                )
                raise RouteConflictError(msg, existing=existing, incoming=route)

        if not self.enabled:
            return

        for key in _shape_keys(route):
            existing = self._by_shape.get(key)
            if existing is not None:
                msg = (
                    f"{route.describe()} conflicts with {existing.describe()}: "
                    f"same method {key[0]}, host and path shape."
                )
                raise RouteConflictError(msg, existing=existing, incoming=route)

    def record(self, route: ComposedRoute) -> None:
        """Add *route* to the indices."""
        if route.name is not None:
            self._by_name[route.name] = route
        for key in _shape_keys(route):
            self._by_shape.setdefault(key, route)

    def by_name(self, name: str) -> ComposedRoute | None:
        """Return the route registered under *name*, if any."""
        return self._by_name.get(name)


def _shape_keys(route: ComposedRoute) -> list[ShapeKey]:
    return [(method, route.host, route.shape) for method in route.methods]
