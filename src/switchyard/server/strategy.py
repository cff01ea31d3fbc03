"""Dispatch strategies: table-wide rendering of outcomes and results.

A strategy decides what every non-handler outcome looks like (404,
405, HTTP errors, unhandled exceptions) and how a handler's raw return
value becomes a ``Response``. One strategy serves the whole table.

    HtmlStrategy -- HTML pages, the default
    JsonStrategy -- every outcome as JSON

An application-supplied not-found handler runs first. It may accept
zero, one ``(request)``, or two ``(request, exc)`` arguments, may be
sync or async, and declines by returning ``None``.
"""

from __future__ import annotations

import html
import inspect
import pprint
from abc import ABC, abstractmethod
from collections.abc import Callable
from http import HTTPStatus
from typing import Any, Protocol, runtime_checkable

from switchyard.errors import HTTPError, MethodNotAllowed, NotFound
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.server.negotiation import negotiate, negotiate_json

type NotFoundHandler = Callable[..., Any]

_HTML = "text/html; charset=utf-8"


@runtime_checkable
class DispatchStrategy(Protocol):
    """What the dispatcher needs from a strategy."""

    async def render_not_found(self, request: Request, exc: NotFound) -> Response: ...

    async def render_method_not_allowed(
        self, request: Request, exc: MethodNotAllowed
    ) -> Response: ...

    async def render_http_error(self, request: Request, exc: HTTPError) -> Response: ...

    async def render_exception(self, request: Request, exc: Exception) -> Response: ...

    def coerce(self, value: Any, request: Request) -> Response: ...


def status_for_exception(exc: BaseException) -> int:
    """Status code carried by *exc*.

    ``HTTPError.status`` first, then an integer ``status_code`` or
    ``status`` attribute in the 400-599 range, else 500.
    """
    if isinstance(exc, HTTPError):
        return exc.status
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool) and 400 <= value <= 599:
            return value
    return 500


def reason_phrase(status: int) -> str:
    """Standard reason phrase for *status*, or ``"Error"``."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Error"


async def call_not_found_handler(
    handler: NotFoundHandler, request: Request, exc: NotFound
) -> Any:
    """Invoke a not-found handler with introspected arguments."""
    params = list(inspect.signature(handler).parameters.values())
    if len(params) >= 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()
    if inspect.isawaitable(result):
        result = await result
    return result


class BaseStrategy(ABC):
    """Shared not-found override handling and error-message policy."""

    __slots__ = ("debug", "not_found_handler")

    def __init__(self, not_found_handler: NotFoundHandler | None = None, *, debug: bool = False) -> None:
        self.not_found_handler = not_found_handler
        self.debug = debug

    def set_not_found_handler(self, handler: NotFoundHandler | None) -> BaseStrategy:
        """Install (or clear) the application's not-found handler."""
        self.not_found_handler = handler
        return self

    def error_message(self, exc: Exception, status: int) -> str:
        """Message shown for an unhandled exception.

        Client errors show the exception text. Server errors show it
        only in debug mode.
        """
        text = str(exc)
        if status >= 500 and not self.debug:
            return reason_phrase(status)
        return text or reason_phrase(status)

    async def render_not_found(self, request: Request, exc: NotFound) -> Response:
        if self.not_found_handler is not None:
            custom = await call_not_found_handler(self.not_found_handler, request, exc)
            if isinstance(custom, Response):
                return custom
            if custom is not None:
                return self.wrap_not_found(custom, request)
        return self.default_not_found(request, exc)

    async def render_exception(self, request: Request, exc: Exception) -> Response:
        if isinstance(exc, HTTPError):
            return await self.render_http_error(request, exc)
        status = status_for_exception(exc)
        return self.error_response(status, self.error_message(exc, status))

    # -- Strategy-specific hooks --

    @abstractmethod
    def coerce(self, value: Any, request: Request) -> Response: ...

    @abstractmethod
    def wrap_not_found(self, value: Any, request: Request) -> Response: ...

    @abstractmethod
    def default_not_found(self, request: Request, exc: NotFound) -> Response: ...

    @abstractmethod
    async def render_method_not_allowed(self, request: Request, exc: MethodNotAllowed) -> Response: ...

    @abstractmethod
    async def render_http_error(self, request: Request, exc: HTTPError) -> Response: ...

    @abstractmethod
    def error_response(self, status: int, message: str) -> Response: ...


class HtmlStrategy(BaseStrategy):
    """HTML pages for every outcome; handler results via ``negotiate``."""

    __slots__ = ()

    def coerce(self, value: Any, request: Request) -> Response:
        return negotiate(value)

    def wrap_not_found(self, value: Any, request: Request) -> Response:
        if isinstance(value, str):
            return Response(body=value, status=404, content_type=_HTML)
        body = f'<!doctype html><meta charset="utf-8"><pre>{html.escape(pprint.pformat(value))}</pre>'
        return Response(body=body, status=404, content_type=_HTML)

    def default_not_found(self, request: Request, exc: NotFound) -> Response:
        return _page(404, "404 Not Found", html.escape(request.path))

    async def render_method_not_allowed(self, request: Request, exc: MethodNotAllowed) -> Response:
        allowed = ", ".join(exc.allowed)
        page = _page(405, "405 Method Not Allowed", f"Allowed: {html.escape(allowed)}")
        return page.with_header("Allow", allowed)

    async def render_http_error(self, request: Request, exc: HTTPError) -> Response:
        title = f"{exc.status} {reason_phrase(exc.status)}"
        page = _page(exc.status, title, html.escape(exc.detail or reason_phrase(exc.status)))
        for name, value in exc.headers:
            page = page.with_header(name, value)
        return page

    def error_response(self, status: int, message: str) -> Response:
        body = (
            '<!doctype html><meta charset="utf-8"><title>Error</title>'
            f"<h1>{status} Error</h1><pre>{html.escape(message)}</pre>"
        )
        return Response(body=body, status=status, content_type=_HTML)


class JsonStrategy(BaseStrategy):
    """JSON for every outcome.

    Errors are ``{"status_code": ..., "error": ...}``; handler scalars
    are wrapped as ``{"data": value}``.
    """

    __slots__ = ()

    def coerce(self, value: Any, request: Request) -> Response:
        return negotiate_json(value)

    def wrap_not_found(self, value: Any, request: Request) -> Response:
        if isinstance(value, (dict, list)):
            return Response.json(value, status=404)
        return Response.json({"message": str(value)}, status=404)

    def default_not_found(self, request: Request, exc: NotFound) -> Response:
        return Response.json(
            {"status_code": 404, "error": "Not Found", "path": request.path},
            status=404,
        )

    async def render_method_not_allowed(self, request: Request, exc: MethodNotAllowed) -> Response:
        allowed = ", ".join(exc.allowed)
        payload = {"status_code": 405, "error": "Method Not Allowed", "allowed": allowed}
        return Response.json(payload, status=405).with_header("Allow", allowed)

    async def render_http_error(self, request: Request, exc: HTTPError) -> Response:
        payload: dict[str, Any] = {
            "status_code": exc.status,
            "error": exc.detail or reason_phrase(exc.status),
        }
        for name, value in exc.headers:
            if name.lower() == "retry-after":
                payload["retry_after"] = int(value) if value.isdigit() else value
        response = Response.json(payload, status=exc.status)
        for name, value in exc.headers:
            response = response.with_header(name, value)
        return response

    def error_response(self, status: int, message: str) -> Response:
        return Response.json({"status_code": status, "error": message}, status=status)


def _page(status: int, title: str, paragraph: str) -> Response:
    body = (
        f'<!doctype html><meta charset="utf-8"><title>{title}</title>'
        f"<h1>{title}</h1><p>{paragraph}</p>"
    )
    return Response(body=body, status=status, content_type=_HTML)
