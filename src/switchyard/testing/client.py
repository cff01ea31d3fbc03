"""Async test client for switchyard applications.

Uses the same Request and Response types as production.
No wrapper translation layer.
"""

from __future__ import annotations

from collections.abc import Mapping

from switchyard.app import App
from switchyard.http.request import Request
from switchyard.http.response import Response


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for switchyard applications.

    Sends requests straight to ``App.__call__``; no HTTP involved.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
    """

    __slots__ = ("app", "client_addr", "host")

    def __init__(
        self,
        app: App,
        *,
        host: str = "testserver",
        client: tuple[str, int] = ("127.0.0.1", 50000),
    ) -> None:
        self.app = app
        self.host = host
        self.client_addr = client

    async def __aenter__(self) -> TestClient:
        self.app._ensure_frozen()
        return self

    async def __aexit__(self, *args: object) -> None:
        return None

    async def request(
        self,
        method: str,
        path: str,
        *,
        host: str | None = None,
        headers: Mapping[str, str] | None = None,
        client: tuple[str, int] | None = None,
    ) -> Response:
        """Send a request with any method."""
        request = Request.build(
            method,
            path,
            host=host if host is not None else self.host,
            headers=headers,
            client=client or self.client_addr,
        )
        return await self.app(request)

    async def get(self, path: str, **kwargs: object) -> Response:
        """Send a GET request."""
        return await self.request("GET", path, **kwargs)  # type: ignore[arg-type]

    async def post(self, path: str, **kwargs: object) -> Response:
        """Send a POST request."""
        return await self.request("POST", path, **kwargs)  # type: ignore[arg-type]

    async def put(self, path: str, **kwargs: object) -> Response:
        """Send a PUT request."""
        return await self.request("PUT", path, **kwargs)  # type: ignore[arg-type]

    async def patch(self, path: str, **kwargs: object) -> Response:
        """Send a PATCH request."""
        return await self.request("PATCH", path, **kwargs)  # type: ignore[arg-type]

    async def delete(self, path: str, **kwargs: object) -> Response:
        """Send a DELETE request."""
        return await self.request("DELETE", path, **kwargs)  # type: ignore[arg-type]
