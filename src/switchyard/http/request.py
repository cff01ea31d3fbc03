"""Immutable HTTP request.

The request is honest about what it is: received data that doesn't
change. Routing produces new values through ``with_*`` methods instead
of mutating a shared object.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from switchyard.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """A normalized, immutable HTTP request.

    Holds only what routing and dispatch need: method, host, path, the
    headers used for throttle keys and middleware, and the client
    address. Body parsing is left to the application.
    """

    method: str
    path: str
    host: str = ""
    headers: Headers = field(default_factory=Headers)
    client: tuple[str, int] | None = None
    path_params: dict[str, str] = field(default_factory=dict)
    route_name: str | None = None

    # -- Computed properties --

    @property
    def client_ip(self) -> str | None:
        """The client address, if the server supplied one."""
        if self.client:
            return self.client[0]
        return None

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    # -- Transformations --

    def with_path_params(self, path_params: Mapping[str, str]) -> Request:
        """Return a new Request carrying the captured path parameters."""
        return replace(self, path_params=dict(path_params))

    def with_route_name(self, name: str | None) -> Request:
        """Return a new Request tagged with the matched route's name."""
        return replace(self, route_name=name)

    def with_header(self, name: str, value: str) -> Request:
        """Return a new Request with an additional header."""
        return replace(self, headers=Headers((*self.headers.raw, (name, value))))

    # -- Factory --

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        host: str = "",
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
        client: tuple[str, int] | None = None,
    ) -> Request:
        """Create a normalized Request.

        The method is upper-cased, an empty path becomes ``/`` and, when
        no explicit host is given, the ``Host`` header is used.
        """
        header_map = Headers.of(headers)
        resolved_host = host or header_map.get("host") or ""
        return cls(
            method=str(method or "").strip().upper(),
            path=path or "/",
            host=resolved_host,
            headers=header_map,
            client=tuple(client) if client else None,  # type: ignore[arg-type]
        )
