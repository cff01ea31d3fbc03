"""Request dispatch: resolve, run the route's pipeline, shape the outcome.

The dispatcher is the single entry point at request time::

    response = await dispatcher.dispatch(Request.build("GET", "/users/42"))

Every route gets one ``MiddlewarePipeline`` built up front, wrapping an
endpoint that calls the handler and coerces its result through the
strategy. Not-found, method-not-allowed, HTTP errors, and unhandled
exceptions are rendered by the strategy at this boundary.
"""

import inspect
from collections.abc import Callable
from typing import Any

from switchyard._internal.invoke import invoke
from switchyard.context import request_var
from switchyard.errors import HTTPError, MethodNotAllowed, NotFound
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.pipeline import MiddlewarePipeline
from switchyard.middleware.protocol import Next
from switchyard.routing.route import ComposedRoute, MethodNotAllowedOutcome, RouteMatch
from switchyard.routing.table import RouteTable
from switchyard.server.errors import handle_http_error, handle_internal_error
from switchyard.server.strategy import DispatchStrategy, HtmlStrategy


class Dispatcher:
    """Dispatch requests against a sealed ``RouteTable``.

    Holds no per-request state; one dispatcher serves concurrent
    requests.
    """

    __slots__ = ("_pipelines", "strategy", "table")

    def __init__(self, table: RouteTable, strategy: DispatchStrategy | None = None) -> None:
        self.table = table
        self.strategy: DispatchStrategy = strategy or HtmlStrategy()
        self._pipelines: dict[int, MiddlewarePipeline] = {
            id(route): MiddlewarePipeline(route.middleware, self._endpoint(route))
            for route in table.routes
        }

    def pipeline_for(self, route: ComposedRoute) -> MiddlewarePipeline:
        """The pipeline wrapping *route*'s handler."""
        return self._pipelines[id(route)]

    async def dispatch(self, request: Request) -> Response:
        """Handle one request and return its response.

        Routing outcomes, HTTP errors, and handler or middleware failures
        are all rendered by the strategy.
        """
        token = request_var.set(request)
        try:
            outcome = self.table.resolve(request.method, request.host, request.path)
            match outcome:
                case RouteMatch(route=route, path_params=params):
                    request = request.with_path_params(params).with_route_name(route.name)
                    request_var.set(request)
                    response = await self._pipelines[id(route)](request)
                case MethodNotAllowedOutcome(allowed=allowed):
                    raise MethodNotAllowed(allowed)
                case _:
                    raise NotFound(f"No route matches {request.method} {request.path}")
        except HTTPError as exc:
            try:
                response = await handle_http_error(exc, request, self.strategy)
            except Exception as render_exc:
                # Not-found overrides are application code
                response = await handle_internal_error(render_exc, request, self.strategy)
        except Exception as exc:
            response = await handle_internal_error(exc, request, self.strategy)
        finally:
            request_var.reset(token)
        return response

    def _endpoint(self, route: ComposedRoute) -> Next:
        handler = route.handler
        signature = _signature(handler)
        strategy = self.strategy

        async def endpoint(request: Request) -> Response:
            kwargs = build_handler_kwargs(signature, request)
            result = await invoke(handler, **kwargs)
            return strategy.coerce(result, request)

        return endpoint


def _signature(handler: Callable[..., Any]) -> inspect.Signature:
    try:
        return inspect.signature(handler, eval_str=True)
    except NameError:
        # Annotations only importable under TYPE_CHECKING
        return inspect.signature(handler)


def build_handler_kwargs(signature: inspect.Signature, request: Request) -> dict[str, Any]:
    """Build handler kwargs from its signature.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. Path parameters (by name, converted to the annotated type if possible)
    """
    kwargs: dict[str, Any] = {}
    for name, param in signature.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif name in request.path_params:
            kwargs[name] = _convert(request.path_params[name], param.annotation)
    return kwargs


def _convert(value: str, annotation: Any) -> Any:
    """Convert a captured string to *annotation*, keeping it unchanged on failure."""
    if annotation is inspect.Parameter.empty or annotation is str:
        return value
    if annotation is bool:
        return value.lower() in ("true", "1", "yes", "on")
    if isinstance(annotation, type):
        try:
            return annotation(value)
        except (ValueError, TypeError):
            return value
    return value
