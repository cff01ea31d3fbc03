"""Tests for switchyard.http: headers, requests, and responses."""

from switchyard.http.headers import Headers
from switchyard.http.request import Request
from switchyard.http.response import Response


class TestHeaders:
    def test_case_insensitive(self) -> None:
        headers = Headers.of({"X-Api-Key": "abc"})
        assert headers["x-api-key"] == "abc"
        assert "X-API-KEY" in headers
        assert headers.get("missing") is None

    def test_multiple_values(self) -> None:
        headers = Headers.of([("X-Forwarded-For", "a"), ("x-forwarded-for", "b")])
        assert headers["X-Forwarded-For"] == "a"
        assert headers.get_list("x-forwarded-for") == ["a", "b"]
        assert len(headers) == 1
        assert list(headers) == ["x-forwarded-for"]

    def test_of_passthrough(self) -> None:
        headers = Headers.of({"a": "1"})
        assert Headers.of(headers) is headers
        assert len(Headers.of(None)) == 0


class TestRequest:
    def test_build_normalizes(self) -> None:
        request = Request.build("get", "", headers={"Host": "example.com"}, client=("1.2.3.4", 80))
        assert request.method == "GET"
        assert request.path == "/"
        assert request.host == "example.com"
        assert request.client_ip == "1.2.3.4"

    def test_explicit_host_wins(self) -> None:
        request = Request.build("GET", "/", host="a.test", headers={"Host": "b.test"})
        assert request.host == "a.test"

    def test_with_methods_return_new_values(self) -> None:
        request = Request.build("GET", "/users/1")
        routed = request.with_path_params({"id": "1"}).with_route_name("users.show")
        assert routed.path_params == {"id": "1"}
        assert routed.route_name == "users.show"
        assert request.path_params == {}
        assert request.route_name is None

    def test_with_header(self) -> None:
        request = Request.build("GET", "/", headers={"content-type": "text/plain"})
        tagged = request.with_header("X-Tag", "1")
        assert tagged.headers["x-tag"] == "1"
        assert tagged.content_type == "text/plain"
        assert "x-tag" not in request.headers

    def test_no_client(self) -> None:
        assert Request.build("GET", "/").client_ip is None


class TestResponse:
    def test_defaults(self) -> None:
        response = Response("hi")
        assert response.status == 200
        assert response.content_type == "text/html; charset=utf-8"
        assert response.body_bytes == b"hi"

    def test_chaining_is_immutable(self) -> None:
        base = Response("hi")
        changed = base.with_status(201).with_header("X-A", "1").with_headers({"X-B": "2"})
        assert base.status == 200
        assert base.headers == ()
        assert changed.status == 201
        assert changed.header("x-a") == "1"
        assert changed.header("X-B") == "2"

    def test_content_type_header(self) -> None:
        response = Response("{}").with_content_type("application/json")
        assert response.header("Content-Type") == "application/json"

    def test_json_factory(self) -> None:
        response = Response.json({"a": [1, 2]}, status=202)
        assert response.status == 202
        assert response.content_type.startswith("application/json")
        assert response.json_body() == {"a": [1, 2]}

    def test_text_from_bytes(self) -> None:
        assert Response(b"caf\xc3\xa9").text == "café"
