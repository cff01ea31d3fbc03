"""Middleware protocol, pipeline, and built-in middleware.

    async def my_middleware(request: Request, next: Next) -> Response:
        response = await next(request)
        return response.with_header("X-Served-By", "switchyard")
"""

from switchyard.middleware.pipeline import MiddlewarePipeline
from switchyard.middleware.protocol import Middleware, Next
from switchyard.middleware.security_headers import SecurityHeadersConfig, SecurityHeadersMiddleware
from switchyard.middleware.throttle import ThrottleMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "Next",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "ThrottleMiddleware",
]
