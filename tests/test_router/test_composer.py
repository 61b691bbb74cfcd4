"""Unit tests for declarative route composition (nod.router.composer).

Tests cover:
- effective_middlewares / effective_roles set and order semantics
- RouteDefinition / RouterConfig construction from camelCase and snake_case
- MiddlewareRegistry registration and freezing
- DeclarativeRouter chain building: dropping, duplication, role gate placement
- Strict mode and unresolved-name reporting
- Express- and Hono-shaped binding adapters
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from nod.router.composer import (
    ROLE_CHECK,
    DeclarativeRouter,
    HttpMethod,
    MiddlewareRegistry,
    RegistryFrozenError,
    RouteDefinition,
    RouterConfig,
    UnresolvedMiddlewareError,
    create_router,
    effective_middlewares,
    effective_roles,
)
from nod.router.role_gate import RoleGate


pytestmark = pytest.mark.unit


def handler(request):
    return "ok"


def named(name: str):
    """Middleware stub that identifies itself by name."""
    def middleware(request, call_next=None):
        return name
    middleware.__name__ = name
    return middleware


def route(**kwargs) -> RouteDefinition:
    kwargs.setdefault("method", "GET")
    kwargs.setdefault("path", "/x")
    kwargs.setdefault("handler", handler)
    return RouteDefinition(**kwargs)


@pytest.fixture
def registry() -> MiddlewareRegistry:
    return MiddlewareRegistry({
        "auth": named("auth"),
        "audit": named("audit"),
        "rateLimit": named("rateLimit"),
    })


# ---------------------------------------------------------------------------
# Effective middleware / roles
# ---------------------------------------------------------------------------


class TestEffectiveMiddlewares:
    def test_disabled_removed(self):
        config = RouterConfig(default_middlewares=["auth", "audit"])
        assert effective_middlewares(route(disabled=["audit"]), config) == ["auth"]

    def test_enabled_appended(self):
        config = RouterConfig(default_middlewares=["auth"])
        assert effective_middlewares(route(enabled=["rateLimit"]), config) == ["auth", "rateLimit"]

    def test_order_preserved_in_each_segment(self):
        config = RouterConfig(default_middlewares=["a", "b", "c", "d"])
        r = route(disabled=["b"], enabled=["z", "y"])
        assert effective_middlewares(r, config) == ["a", "c", "d", "z", "y"]

    def test_duplicate_kept(self):
        config = RouterConfig(default_middlewares=["auth"])
        assert effective_middlewares(route(enabled=["auth"]), config) == ["auth", "auth"]

    def test_disabled_does_not_affect_enabled(self):
        config = RouterConfig(default_middlewares=["auth"])
        r = route(disabled=["auth"], enabled=["auth"])
        assert effective_middlewares(r, config) == ["auth"]

    def test_disabled_unknown_name_ignored(self):
        config = RouterConfig(default_middlewares=["auth"])
        assert effective_middlewares(route(disabled=["nope"]), config) == ["auth"]


class TestEffectiveRoles:
    def test_roles_override(self):
        config = RouterConfig(default_roles=["user"])
        r = route(roles=["admin", "superAdmin"])
        assert effective_roles(r, config) == ["admin", "superAdmin"]

    def test_roles_ignore_exclude(self):
        config = RouterConfig(default_roles=["user"])
        r = route(roles=["admin"], exclude_roles=["admin"])
        assert effective_roles(r, config) == ["admin"]

    def test_exclude_from_defaults(self):
        config = RouterConfig(default_roles=["user", "editor"])
        assert set(effective_roles(route(exclude_roles=["editor"]), config)) == {"user"}

    def test_defaults_when_no_override(self):
        config = RouterConfig(default_roles=["user", "editor"])
        assert effective_roles(route(), config) == ["user", "editor"]

    def test_empty_roles_is_explicit_override(self):
        config = RouterConfig(default_roles=["user"])
        assert effective_roles(route(roles=[]), config) == []


# ---------------------------------------------------------------------------
# Route data
# ---------------------------------------------------------------------------


class TestRouteData:
    def test_method_coerced(self):
        assert route(method="post").method is HttpMethod.POST

    def test_invalid_method(self):
        with pytest.raises(ValueError):
            route(method="TRACE")

    def test_binder_name(self):
        assert HttpMethod.DELETE.binder_name == "delete"

    def test_lists_become_tuples(self):
        r = route(disabled=["a"], enabled=["b"], roles=["c"], exclude_roles=["d"])
        assert r.disabled == ("a",)
        assert r.enabled == ("b",)
        assert r.roles == ("c",)
        assert r.exclude_roles == ("d",)

    def test_roles_default_none(self):
        assert route().roles is None

    def test_route_from_camel_case(self):
        r = RouteDefinition.from_dict({
            "method": "PATCH",
            "path": "/p",
            "handler": handler,
            "excludeRoles": ["editor"],
        })
        assert r.method is HttpMethod.PATCH
        assert r.exclude_roles == ("editor",)
        assert r.roles is None

    def test_config_from_dict(self):
        config = RouterConfig.from_dict({
            "defaultMiddlewares": ["auth"],
            "default_roles": ["user"],
            "routes": [{"method": "GET", "path": "/a", "handler": handler}],
        })
        assert config.default_middlewares == ("auth",)
        assert config.default_roles == ("user",)
        assert config.routes[0].path == "/a"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestMiddlewareRegistry:
    def test_register_and_get(self):
        reg = MiddlewareRegistry()
        mw = named("auth")
        assert reg.register("auth", mw) is reg
        assert reg.get("auth") is mw
        assert "auth" in reg
        assert len(reg) == 1
        assert reg.names() == ["auth"]

    def test_get_missing(self):
        assert MiddlewareRegistry().get("nope") is None

    def test_register_replaces(self):
        reg = MiddlewareRegistry()
        second = named("b")
        reg.register("x", named("a")).register("x", second)
        assert reg.get("x") is second

    def test_frozen_rejects_registration(self):
        reg = MiddlewareRegistry()
        reg.freeze()
        assert reg.frozen is True
        with pytest.raises(RegistryFrozenError):
            reg.register("late", named("late"))


# ---------------------------------------------------------------------------
# DeclarativeRouter
# ---------------------------------------------------------------------------


class TestBuildChain:
    def test_disabled_scenario(self, registry):
        router = DeclarativeRouter(RouterConfig(default_middlewares=["auth", "audit"]), registry)
        bound = router.build_chain(route(disabled=["audit"]))
        assert bound.middleware_names == ("auth",)
        assert [m.__name__ for m in bound.chain] == ["auth"]

    def test_enabled_scenario(self, registry):
        router = DeclarativeRouter(RouterConfig(default_middlewares=["auth"]), registry)
        bound = router.build_chain(route(enabled=["rateLimit"]))
        assert bound.middleware_names == ("auth", "rateLimit")

    def test_duplicate_in_chain(self, registry):
        router = DeclarativeRouter(RouterConfig(default_middlewares=["auth"]), registry)
        bound = router.build_chain(route(enabled=["auth"]))
        assert bound.middleware_names == ("auth", "auth")
        assert bound.chain[0] is bound.chain[1]

    def test_unregistered_dropped(self, registry):
        router = DeclarativeRouter(RouterConfig(default_middlewares=["auth", "ghost"]), registry)
        bound = router.build_chain(route(enabled=["phantom"]))
        assert bound.middleware_names == ("auth",)
        assert bound.dropped == ("ghost", "phantom")

    def test_role_gate_last(self, registry):
        config = RouterConfig(default_middlewares=["auth"], default_roles=["user"])
        bound = DeclarativeRouter(config, registry).build_chain(route(enabled=["audit"]))
        assert bound.middleware_names == ("auth", "audit", ROLE_CHECK)
        gate = bound.chain[-1]
        assert isinstance(gate, RoleGate)
        assert gate.allowed_roles == ("user",)
        assert bound.roles == ("user",)

    def test_no_gate_without_roles(self, registry):
        bound = DeclarativeRouter(RouterConfig(default_middlewares=["auth"]), registry).build_chain(route())
        assert ROLE_CHECK not in bound.middleware_names
        assert not any(isinstance(m, RoleGate) for m in bound.chain)

    def test_empty_roles_removes_gate(self, registry):
        config = RouterConfig(default_roles=["user"])
        bound = DeclarativeRouter(config, registry).build_chain(route(roles=[]))
        assert bound.chain == ()

    def test_registered_role_check_factory_used(self, registry):
        seen = []

        def role_check(roles):
            seen.append(roles)
            return named("roleCheck")

        registry.register(ROLE_CHECK, role_check)
        bound = DeclarativeRouter(RouterConfig(), registry).build_chain(route(roles=["admin", "superAdmin"]))
        assert seen == [["admin", "superAdmin"]]
        assert bound.chain[-1].__name__ == "roleCheck"

    def test_custom_gate_factory(self, registry):
        factory = MagicMock(return_value=named("gate"))
        router = DeclarativeRouter(RouterConfig(), registry, role_gate_factory=factory)
        router.build_chain(route(roles=["admin"]))
        factory.assert_called_once_with(["admin"])

    def test_handlers_end_with_handler(self, registry):
        bound = DeclarativeRouter(RouterConfig(default_middlewares=["auth"]), registry).build_chain(route())
        assert bound.handlers[-1] is handler
        assert len(bound.handlers) == 2


class TestBind:
    def test_bind_freezes_registry(self, registry):
        router = DeclarativeRouter(RouterConfig(routes=[route()]), registry)
        router.bind()
        with pytest.raises(RegistryFrozenError):
            router.register_middleware("late", named("late"))

    def test_bind_keeps_route_order(self, registry):
        config = RouterConfig(routes=[route(path="/a"), route(path="/b"), route(path="/c")])
        bound = DeclarativeRouter(config, registry).bind()
        assert [b.path for b in bound] == ["/a", "/b", "/c"]

    def test_unresolved_names(self, registry):
        config = RouterConfig(
            default_middlewares=["auth", "ghost"],
            routes=[route(enabled=["phantom", "ghost"]), route(enabled=["audit"])],
        )
        router = DeclarativeRouter(config, registry)
        assert router.unresolved_names() == ["ghost", "phantom"]

    def test_strict_raises_with_all_names(self, registry):
        config = RouterConfig(
            default_middlewares=["ghost"],
            routes=[route(enabled=["phantom"])],
        )
        with pytest.raises(UnresolvedMiddlewareError) as exc_info:
            DeclarativeRouter(config, registry, strict=True).bind()
        assert exc_info.value.names == ["ghost", "phantom"]

    def test_strict_passes_when_resolved(self, registry):
        config = RouterConfig(default_middlewares=["auth"], routes=[route()])
        bound = DeclarativeRouter(config, registry, strict=True).bind()
        assert bound[0].middleware_names == ("auth",)

    def test_lenient_by_default(self, registry):
        config = RouterConfig(default_middlewares=["ghost"], routes=[route()])
        bound = DeclarativeRouter(config, registry).bind()
        assert bound[0].chain == ()


class TestAdapters:
    def test_apply_to_express(self, registry):
        config = RouterConfig(
            default_middlewares=["auth"],
            routes=[
                route(method="GET", path="/public", disabled=["auth"]),
                route(method="POST", path="/admin", roles=["admin"]),
            ],
        )
        express = MagicMock()
        DeclarativeRouter(config, registry).apply_to_express(express)

        express.get.assert_called_once_with("/public", handler)
        args = express.post.call_args.args
        assert args[0] == "/admin"
        assert args[1] is registry.get("auth")
        assert isinstance(args[2], RoleGate)
        assert args[3] is handler

    def test_apply_to_hono(self, registry):
        config = RouterConfig(routes=[route(method="PUT", path="/item", enabled=["audit"])])
        app = MagicMock()
        DeclarativeRouter(config, registry).apply_to_hono(app)
        app.on.assert_called_once_with("PUT", "/item", registry.get("audit"), handler)

    def test_apply_custom_binder(self, registry):
        seen = []
        config = RouterConfig(routes=[route(path="/a"), route(path="/b")])
        DeclarativeRouter(config, registry).apply(lambda b: seen.append(b.path))
        assert seen == ["/a", "/b"]


class TestCreateRouter:
    def test_from_mapping(self):
        auth = named("auth")
        router = create_router(
            {
                "defaultMiddlewares": ["auth"],
                "defaultRoles": [],
                "routes": [{"method": "GET", "path": "/a", "handler": handler}],
            },
            {"auth": auth},
        )
        bound = router.bind()
        assert bound[0].chain == (auth,)

    def test_strict_flag(self):
        router = create_router({"defaultMiddlewares": ["ghost"], "routes": []}, strict=True)
        with pytest.raises(UnresolvedMiddlewareError):
            router.bind()
