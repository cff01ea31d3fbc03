"""Tests for switchyard.routing.composer: scope inheritance and precedence."""

import pytest

from switchyard.config import RouterConfig
from switchyard.errors import ConfigurationError
from switchyard.middleware.throttle import ThrottleMiddleware
from switchyard.routing.composer import RouteComposer, normalize_methods
from switchyard.routing.declarations import GroupScope, RouteDeclaration, ThrottlePolicy
from switchyard.routing.route import RouteMatch
from switchyard.routing.table import build_table
from switchyard.stores.memory import MemoryCounterStore


def _handler() -> str:
    return "ok"


async def mw_a(request, next):
    return await next(request)


async def mw_b(request, next):
    return await next(request)


async def mw_c(request, next):
    return await next(request)


async def mw_app(request, next):
    return await next(request)


class TestIdentity:
    def test_root_only_declaration_keeps_its_fields(self) -> None:
        decl = RouteDeclaration(
            methods=("GET", "POST"),
            path="/users/{id}",
            handler=_handler,
            name="users.show",
            middleware=(mw_a,),
            constraints={"id": r"\d+"},
            host="example.com",
        )
        route = RouteComposer().compose(decl)
        assert route.methods == ("GET", "POST")
        assert route.path == r"/users/{id:\d+}"
        assert route.name == "users.show"
        assert route.host == "example.com"
        assert route.middleware == (mw_a,)
        assert route.throttle is None
        assert route.handler is _handler

    def test_empty_root_scope_changes_nothing(self) -> None:
        bare = RouteDeclaration(methods=("GET",), path="/a", handler=_handler, name="a")
        scoped = RouteDeclaration(
            methods=("GET",), path="/a", handler=_handler, name="a", scope=GroupScope()
        )
        composer = RouteComposer()
        assert composer.compose(bare) == composer.compose(scoped)


class TestPath:
    def test_prefixes_outer_to_inner(self) -> None:
        outer = GroupScope(prefix="/api/")
        inner = outer.child("//v1/")
        decl = RouteDeclaration(methods=("GET",), path="/users/", handler=_handler, scope=inner)
        assert RouteComposer().compose(decl).path == "/api/v1/users"

    def test_empty_child_path_is_group_path(self) -> None:
        scope = GroupScope().child("/admin")
        decl = RouteDeclaration(methods=("GET",), path="", handler=_handler, scope=scope)
        assert RouteComposer().compose(decl).path == "/admin"


class TestName:
    def test_prefixes_concatenate(self) -> None:
        scope = GroupScope().child("/admin", name="admin.").child("/users", name="users.")
        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, name="index", scope=scope)
        assert RouteComposer().compose(decl).name == "admin.users.index"

    def test_unnamed_declaration_stays_unnamed(self) -> None:
        scope = GroupScope().child("/admin", name="admin.")
        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, scope=scope)
        assert RouteComposer().compose(decl).name is None


class TestMiddlewareOrder:
    def test_outer_inner_declaration_then_throttle(self) -> None:
        scope = GroupScope(middleware=(mw_a,)).child("/x", middleware=(mw_b,))
        decl = RouteDeclaration(
            methods=("GET",),
            path="/y",
            handler=_handler,
            middleware=(mw_c,),
            throttle=ThrottlePolicy(limit=5),
            scope=scope,
        )
        composer = RouteComposer(counter_store=MemoryCounterStore(), base_middleware=(mw_app,))
        route = composer.compose(decl)
        assert route.middleware[:4] == (mw_app, mw_a, mw_b, mw_c)
        assert isinstance(route.middleware[4], ThrottleMiddleware)
        assert len(route.middleware) == 5

    def test_class_reference_is_instantiated(self) -> None:
        class Stamp:
            async def __call__(self, request, next):
                return await next(request)

        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, middleware=(Stamp,))
        route = RouteComposer().compose(decl)
        assert isinstance(route.middleware[0], Stamp)

    def test_alias_is_resolved(self) -> None:
        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, middleware=("auth",))
        route = RouteComposer(middleware_aliases={"auth": mw_a}).compose(decl)
        assert route.middleware == (mw_a,)

    def test_unknown_alias(self) -> None:
        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, middleware=("nope",))
        with pytest.raises(ConfigurationError, match="Unknown middleware alias"):
            RouteComposer().compose(decl)

    def test_class_needing_arguments(self) -> None:
        class NeedsArg:
            def __init__(self, value: str) -> None:
                self.value = value

        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, middleware=(NeedsArg,))
        with pytest.raises(ConfigurationError, match="without arguments"):
            RouteComposer().compose(decl)

    def test_non_callable_reference(self) -> None:
        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, middleware=(42,))  # type: ignore[arg-type]
        with pytest.raises(ConfigurationError, match="not callable"):
            RouteComposer().compose(decl)


class TestConstraints:
    def test_declaration_overrides_scope(self) -> None:
        scope = GroupScope().child("/users", where={"id": "[a-z]+"})
        decl = RouteDeclaration(
            methods=("GET",), path="/{id}", handler=_handler, constraints={"id": r"\d+"}, scope=scope
        )
        route = RouteComposer().compose(decl)
        assert route.pattern.match("/users/42") == {"id": "42"}
        assert route.pattern.match("/users/abc") is None

    def test_inner_scope_overrides_outer(self) -> None:
        scope = GroupScope(constraints={"id": "[a-z]+"}).child("/users", where={"id": r"\d+"})
        decl = RouteDeclaration(methods=("GET",), path="/{id}", handler=_handler, scope=scope)
        route = RouteComposer().compose(decl)
        assert route.pattern.match("/users/42") is not None
        assert route.pattern.match("/users/abc") is None

    def test_scope_constraint_for_absent_param_is_ignored(self) -> None:
        scope = GroupScope().child("/x", where={"slug": "[a-z]+"})
        decl = RouteDeclaration(methods=("GET",), path="/{id}", handler=_handler, scope=scope)
        route = RouteComposer().compose(decl)
        assert route.path == "/x/{id}"

    def test_declaration_constraint_for_absent_param(self) -> None:
        decl = RouteDeclaration(
            methods=("GET",), path="/{id}", handler=_handler, constraints={"slug": "[a-z]+"}
        )
        with pytest.raises(ConfigurationError, match="not in the path"):
            RouteComposer().compose(decl)

    def test_unconstrained_uses_default(self) -> None:
        decl = RouteDeclaration(methods=("GET",), path="/{id}", handler=_handler)
        route = RouteComposer().compose(decl)
        assert route.pattern.match("/anything-goes") == {"id": "anything-goes"}
        assert route.pattern.match("/a/b") is None


class TestHostAndThrottle:
    def test_declaration_host_wins(self) -> None:
        scope = GroupScope(host="outer.test").child("/x", host="inner.test")
        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, host="Own.Test", scope=scope)
        assert RouteComposer().compose(decl).host == "own.test"

    def test_nearest_scope_host(self) -> None:
        scope = GroupScope(host="outer.test").child("/x", host="inner.test").child("/y")
        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, scope=scope)
        assert RouteComposer().compose(decl).host == "inner.test"

    def test_host_port_dropped(self) -> None:
        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, host="API.test:8080")
        route = RouteComposer().compose(decl)
        assert route.host == "api.test"
        table = build_table([decl])
        assert isinstance(table.resolve("GET", "api.test:8080", "/"), RouteMatch)

    def test_no_host_is_wildcard(self) -> None:
        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, scope=GroupScope().child("/x"))
        assert RouteComposer().compose(decl).host is None

    def test_nearest_throttle(self) -> None:
        outer = ThrottlePolicy(limit=100)
        inner = ThrottlePolicy(limit=10)
        scope = GroupScope(throttle=outer).child("/x", throttle=inner).child("/y")
        decl = RouteDeclaration(methods=("GET",), path="/", handler=_handler, scope=scope)
        route = RouteComposer(counter_store=MemoryCounterStore()).compose(decl)
        assert route.throttle is inner

    def test_throttle_without_store_fails_at_build(self) -> None:
        decl = RouteDeclaration(
            methods=("GET",), path="/", handler=_handler, throttle=ThrottlePolicy(limit=1)
        )
        with pytest.raises(ConfigurationError, match="no counter store"):
            RouteComposer().compose(decl)

    def test_throttle_timeout_from_config(self) -> None:
        decl = RouteDeclaration(
            methods=("GET",), path="/", handler=_handler, throttle=ThrottlePolicy(limit=1)
        )
        composer = RouteComposer(RouterConfig(throttle_timeout=1.5), counter_store=MemoryCounterStore())
        throttle = composer.compose(decl).middleware[-1]
        assert isinstance(throttle, ThrottleMiddleware)
        assert throttle._timeout == 1.5


class TestMethods:
    def test_normalized(self) -> None:
        assert normalize_methods(["get", " Post ", "GET"]) == ("GET", "POST")

    def test_single_string(self) -> None:
        assert normalize_methods("delete") == ("DELETE",)

    def test_empty_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="no HTTP methods"):
            normalize_methods([], "/x")

    def test_empty_declaration_rejected(self) -> None:
        decl = RouteDeclaration(methods=(), path="/", handler=_handler)
        with pytest.raises(ConfigurationError):
            RouteComposer().compose(decl)


class TestThrottlePolicy:
    def test_invalid_limit(self) -> None:
        with pytest.raises(ConfigurationError):
            ThrottlePolicy(limit=0)

    def test_invalid_window(self) -> None:
        with pytest.raises(ConfigurationError):
            ThrottlePolicy(limit=1, window_seconds=0)

    def test_blank_key(self) -> None:
        with pytest.raises(ConfigurationError):
            ThrottlePolicy(limit=1, key=" ")
