"""Error boundary for switchyard requests.

Maps ``HTTPError`` exceptions and unexpected failures to responses
through the dispatch strategy. Failures are isolated to the request
that raised them.
"""

import logging

from switchyard.errors import HTTPError, MethodNotAllowed, NotFound
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.server.strategy import DispatchStrategy

logger = logging.getLogger("switchyard.server")


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    strategy: DispatchStrategy,
) -> Response:
    """Render an HTTPError with the strategy hook matching its kind."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    match exc:
        case NotFound():
            return await strategy.render_not_found(request, exc)
        case MethodNotAllowed():
            return await strategy.render_method_not_allowed(request, exc)
        case _:
            return await strategy.render_http_error(request, exc)


async def handle_internal_error(
    exc: Exception,
    request: Request,
    strategy: DispatchStrategy,
) -> Response:
    """Log an unexpected exception and render it."""
    logger.exception("Unhandled error in %s %s", request.method, request.path)
    try:
        return await strategy.render_exception(request, exc)
    except Exception:
        logger.exception("Error rendering failed for %s %s", request.method, request.path)
        return Response(body="Internal Server Error", status=500, content_type="text/plain; charset=utf-8")
