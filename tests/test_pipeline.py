"""Tests for switchyard.middleware.pipeline: onion ordering and short-circuit."""

import pytest

from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.pipeline import MiddlewarePipeline


def _recorder(label: str, trace: list[str]):
    async def mw(request, next):
        trace.append(f"{label}:in")
        response = await next(request)
        trace.append(f"{label}:out")
        return response.with_header("X-Seen", label)

    return mw


class TestMiddlewarePipeline:
    @pytest.mark.anyio
    async def test_onion_order(self) -> None:
        trace: list[str] = []

        async def endpoint(request: Request) -> Response:
            trace.append("handler")
            return Response("ok")

        pipeline = MiddlewarePipeline([_recorder("a", trace), _recorder("b", trace)], endpoint)
        response = await pipeline(Request.build("GET", "/"))

        assert trace == ["a:in", "b:in", "handler", "b:out", "a:out"]
        assert response.headers == (("X-Seen", "b"), ("X-Seen", "a"))

    @pytest.mark.anyio
    async def test_short_circuit(self) -> None:
        trace: list[str] = []

        async def deny(request, next):
            trace.append("deny")
            return Response("forbidden", status=403)

        async def endpoint(request: Request) -> Response:
            trace.append("handler")
            return Response("ok")

        pipeline = MiddlewarePipeline([_recorder("outer", trace), deny, _recorder("inner", trace)], endpoint)
        response = await pipeline(Request.build("GET", "/"))

        assert response.status == 403
        assert trace == ["outer:in", "deny", "outer:out"]

    @pytest.mark.anyio
    async def test_empty_chain_calls_endpoint(self) -> None:
        async def endpoint(request: Request) -> Response:
            return Response(request.path)

        pipeline = MiddlewarePipeline([], endpoint)
        assert len(pipeline) == 0
        assert (await pipeline(Request.build("GET", "/x"))).text == "/x"

    @pytest.mark.anyio
    async def test_middleware_can_replace_request(self) -> None:
        async def tag(request, next):
            return await next(request.with_header("X-Tag", "yes"))

        async def endpoint(request: Request) -> Response:
            return Response(request.headers.get("x-tag", "no"))

        pipeline = MiddlewarePipeline([tag], endpoint)
        assert (await pipeline(Request.build("GET", "/"))).text == "yes"

    @pytest.mark.anyio
    async def test_errors_propagate(self) -> None:
        calls = 0

        async def endpoint(request: Request) -> Response:
            nonlocal calls
            calls += 1
            raise RuntimeError("boom")

        pipeline = MiddlewarePipeline([_recorder("a", [])], endpoint)
        with pytest.raises(RuntimeError, match="boom"):
            await pipeline(Request.build("GET", "/"))
        assert calls == 1

    @pytest.mark.anyio
    async def test_pipeline_is_reusable(self) -> None:
        async def endpoint(request: Request) -> Response:
            return Response(request.path)

        pipeline = MiddlewarePipeline([_recorder("a", [])], endpoint)
        first = await pipeline(Request.build("GET", "/one"))
        second = await pipeline(Request.build("GET", "/two"))
        assert (first.text, second.text) == ("/one", "/two")
