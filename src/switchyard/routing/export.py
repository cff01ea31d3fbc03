"""Route export and reload.

A sealed table exports as an ordered list of flat records::

    {"methods": ["GET"], "path": "/users/{id:\\d+}", "name": "users.show",
     "host": null, "handler": "myapp.views:show_user"}

Constraints live inline in ``path``, so reloading the records rebuilds
a table with the same matching order and the same conflicts. Middleware
and throttle policies are runtime wiring and are not part of a record.
"""

import importlib
import json
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from switchyard.config import RouterConfig
from switchyard.errors import ConfigurationError
from switchyard.routing.declarations import RouteDeclaration
from switchyard.routing.table import RouteTable, build_table

type RouteRecord = dict[str, Any]

_FIELDS = ("methods", "path", "name", "host", "handler")


def handler_reference(handler: Callable[..., Any]) -> str:
    """Return the importable ``module:qualname`` reference for *handler*."""
    module = getattr(handler, "__module__", None)
    qualname = getattr(handler, "__qualname__", None)
    if not module or not qualname or "<locals>" in qualname or "<lambda>" in qualname:
        msg = (
            f"Handler {handler!r} cannot be exported: only module-level functions "
            "and class attributes have an importable reference."
        )
        raise ConfigurationError(msg)
    return f"{module}:{qualname}"


def import_handler(reference: str) -> Callable[..., Any]:
    """Resolve a ``module:qualname`` reference back to the callable."""
    module_name, sep, qualname = reference.partition(":")
    if not sep or not module_name or not qualname:
        msg = f"Invalid handler reference {reference!r}; expected 'module:qualname'."
        raise ConfigurationError(msg)
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"Cannot import module {module_name!r} for handler {reference!r}."
        raise ConfigurationError(msg) from exc
    for attr in qualname.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as exc:
            msg = f"Handler {reference!r} not found: no attribute {attr!r}."
            raise ConfigurationError(msg) from exc
    if not callable(target):
        msg = f"Handler reference {reference!r} does not resolve to a callable."
        raise ConfigurationError(msg)
    return target


def export_routes(table: RouteTable) -> list[RouteRecord]:
    """Flat records for every route, in registration order."""
    return [
        {
            "methods": list(route.methods),
            "path": route.path,
            "name": route.name,
            "host": route.host,
            "handler": handler_reference(route.handler),
        }
        for route in table.routes
    ]


def load_table(
    records: Iterable[Mapping[str, Any]],
    config: RouterConfig | None = None,
    *,
    resolve_handler: Callable[[str], Callable[..., Any]] = import_handler,
) -> RouteTable:
    """Rebuild a sealed table from exported records."""
    declarations: list[RouteDeclaration] = []
    for index, record in enumerate(records):
        missing = [key for key in ("methods", "path", "handler") if key not in record]
        if missing:
            msg = f"Route record #{index} is missing {', '.join(missing)}."
            raise ConfigurationError(msg)
        extra = sorted(set(record) - set(_FIELDS))
        if extra:
            msg = f"Route record #{index} has unknown fields: {', '.join(extra)}."
            raise ConfigurationError(msg)
        handler = record["handler"]
        declarations.append(
            RouteDeclaration(
                methods=tuple(record["methods"]),
                path=record["path"],
                handler=resolve_handler(handler) if isinstance(handler, str) else handler,
                name=record.get("name"),
                host=record.get("host"),
            )
        )
    return build_table(declarations, config)


def dumps_routes(table: RouteTable, *, indent: int | None = 2) -> str:
    """Serialize the table's records as JSON."""
    return json.dumps(export_routes(table), indent=indent)


def loads_routes(
    text: str | bytes,
    config: RouterConfig | None = None,
    *,
    resolve_handler: Callable[[str], Callable[..., Any]] = import_handler,
) -> RouteTable:
    """Rebuild a sealed table from JSON produced by ``dumps_routes``."""
    try:
        records = json.loads(text)
    except ValueError as exc:
        msg = f"Route cache is not valid JSON: {exc}"
        raise ConfigurationError(msg) from exc
    if not isinstance(records, list):
        msg = "Route cache must be a JSON list of route records."
        raise ConfigurationError(msg)
    return load_table(records, config, resolve_handler=resolve_handler)
