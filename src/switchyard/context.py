"""Request-scoped context via ContextVar.

Handlers and middleware receive the request explicitly. ``get_request``
is a convenience facade for code further down the call stack; the
dispatcher sets ``request_var`` for the duration of each dispatch and
resets it afterwards.

``ContextVar`` is task-local under asyncio and thread-local under
free-threading. No locks needed.
"""

from contextvars import ContextVar

from switchyard.http.request import Request

request_var: ContextVar[Request] = ContextVar("switchyard_request")
"""The current request. Set by the dispatcher before the pipeline runs."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()
