"""Security headers middleware: X-Frame-Options, X-Content-Type-Options, Referrer-Policy.

Headers are applied only to ``text/html`` responses. JSON, binary,
and plain-text responses pass through untouched.
"""

from dataclasses import dataclass

from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class SecurityHeadersConfig:
    """Header values applied to HTML responses. ``None`` skips a header."""

    x_frame_options: str = "DENY"
    x_content_type_options: str = "nosniff"
    referrer_policy: str = "strict-origin-when-cross-origin"
    content_security_policy: str | None = None
    strict_transport_security: str | None = None

    def pairs(self) -> tuple[tuple[str, str], ...]:
        candidates = (
            ("X-Frame-Options", self.x_frame_options),
            ("X-Content-Type-Options", self.x_content_type_options),
            ("Referrer-Policy", self.referrer_policy),
            ("Content-Security-Policy", self.content_security_policy),
            ("Strict-Transport-Security", self.strict_transport_security),
        )
        return tuple((name, value) for name, value in candidates if value)


class SecurityHeadersMiddleware:
    """Add security headers to HTML responses.

    Usage::

        app.add_middleware(SecurityHeadersMiddleware())

    A header the handler already set is left as it is::

        app.add_middleware(SecurityHeadersMiddleware(SecurityHeadersConfig(
            x_frame_options="SAMEORIGIN",
        )))
    """

    __slots__ = ("config",)

    def __init__(self, config: SecurityHeadersConfig | None = None) -> None:
        self.config = config or SecurityHeadersConfig()

    async def __call__(self, request: Request, next: Next) -> Response:
        response = await next(request)
        if not response.content_type.startswith("text/html"):
            return response
        for name, value in self.config.pairs():
            if response.header(name) is None:
                response = response.with_header(name, value)
        return response
