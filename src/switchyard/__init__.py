"""Switchyard: HTTP request routing with scoped groups, conflict detection, and throttling.

Basic usage::

    from switchyard import App, ThrottlePolicy
    from switchyard.stores import MemoryCounterStore

    app = App(counter_store=MemoryCounterStore())

    @app.get("/users/{id:int}", name="users.show")
    def show_user(id: int):
        return {"id": id}

    with app.group("/api", name="api.", throttle=ThrottlePolicy(60)) as api:
        @api.post("/items", name="items.create")
        async def create_item(request):
            ...

    response = await app.handle("GET", "/users/42")
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "App",
    "ConfigurationError",
    "DispatchStrategy",
    "HTTPError",
    "HtmlStrategy",
    "JsonStrategy",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "RateLimitExceeded",
    "Request",
    "Response",
    "RouteCollector",
    "RouteConflictError",
    "RouteTable",
    "RouterConfig",
    "SwitchyardError",
    "ThrottlePolicy",
    "build_table",
    "get_request",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import switchyard`` fast while providing a clean top-level API.
    """
    if name == "App":
        from switchyard.app import App

        return App

    if name == "RouterConfig":
        from switchyard.config import RouterConfig

        return RouterConfig

    if name == "Request":
        from switchyard.http.request import Request

        return Request

    if name == "Response":
        from switchyard.http.response import Response

        return Response

    if name in ("Middleware", "Next"):
        from switchyard.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("DispatchStrategy", "HtmlStrategy", "JsonStrategy"):
        from switchyard.server import strategy as _strategy

        return getattr(_strategy, name)

    if name in ("RouteTable", "build_table"):
        from switchyard.routing import table as _table

        return getattr(_table, name)

    if name == "RouteCollector":
        from switchyard.routing.builder import RouteCollector

        return RouteCollector

    if name == "ThrottlePolicy":
        from switchyard.routing.declarations import ThrottlePolicy

        return ThrottlePolicy

    if name == "get_request":
        from switchyard.context import get_request

        return get_request

    if name in (
        "ConfigurationError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "RateLimitExceeded",
        "RouteConflictError",
        "SwitchyardError",
    ):
        from switchyard import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
