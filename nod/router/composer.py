"""Declarative route composition.

Routes are described as data: method, path, handler and optional overrides of
the router-wide default middlewares and roles. ``DeclarativeRouter`` turns
each definition into a concrete, ordered middleware chain:

1. default middlewares minus the route's ``disabled`` names (order kept)
2. plus the route's ``enabled`` names, appended without de-duplication
3. roles: the route's ``roles`` if given, else default roles minus
   ``exclude_roles``
4. a role gate appended last when the effective role set is non-empty
5. names without a registered callable are dropped (or reported, in strict
   mode)

Usage::

    registry = MiddlewareRegistry()
    registry.register("jwtAuth", jwt_auth)

    router = DeclarativeRouter(
        RouterConfig.from_dict({
            "defaultMiddlewares": ["jwtAuth"],
            "defaultRoles": [],
            "routes": [
                {"method": "GET", "path": "/public", "handler": public,
                 "disabled": ["jwtAuth"]},
                {"method": "POST", "path": "/admin", "handler": admin,
                 "roles": ["admin", "superAdmin"]},
            ],
        }),
        registry,
    )
    router.apply_to_express(express_router)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from .role_gate import RoleGate

logger = logging.getLogger(__name__)

Middleware = Callable[..., Any]
Handler = Callable[..., Any]
RoleGateFactory = Callable[[list[str]], Middleware]

ROLE_CHECK = "roleCheck"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RouterError(Exception):
    """Base class for declarative router errors."""


class RegistryFrozenError(RouterError):
    """Raised when registering middleware after routes have been bound."""


class UnresolvedMiddlewareError(RouterError):
    """Raised in strict mode when referenced middleware names are unregistered."""

    def __init__(self, names: Iterable[str]) -> None:
        self.names = list(names)
        super().__init__(f"Unregistered middleware: {', '.join(self.names)}")


# ---------------------------------------------------------------------------
# Route data
# ---------------------------------------------------------------------------


class HttpMethod(str, Enum):
    """HTTP methods a declarative route may use."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @property
    def binder_name(self) -> str:
        """Lowercase method name used by Express/Hono routing objects."""
        return self.value.lower()


def _names(values: Optional[Iterable[str]]) -> tuple[str, ...]:
    return tuple(values) if values is not None else ()


@dataclass(frozen=True)
class RouteDefinition:
    """A single declaratively described route.

    ``roles`` is ``None`` when the route does not override the default roles;
    an empty tuple is an explicit override that removes every role check.
    """

    method: HttpMethod
    path: str
    handler: Handler
    disabled: tuple[str, ...] = ()
    enabled: tuple[str, ...] = ()
    roles: Optional[tuple[str, ...]] = None
    exclude_roles: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        method = self.method
        if not isinstance(method, HttpMethod):
            method = HttpMethod(str(method).upper())
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "disabled", _names(self.disabled))
        object.__setattr__(self, "enabled", _names(self.enabled))
        object.__setattr__(self, "exclude_roles", _names(self.exclude_roles))
        if self.roles is not None:
            object.__setattr__(self, "roles", tuple(self.roles))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RouteDefinition":
        """Build from a mapping with camelCase or snake_case keys."""
        return cls(
            method=data["method"],
            path=data["path"],
            handler=data["handler"],
            disabled=data.get("disabled") or (),
            enabled=data.get("enabled") or (),
            roles=data.get("roles"),
            exclude_roles=data.get("excludeRoles", data.get("exclude_roles")) or (),
        )


@dataclass(frozen=True)
class RouterConfig:
    """Router-wide defaults and the route list.

    The order of ``default_middlewares`` is the execution order.
    """

    default_middlewares: tuple[str, ...] = ()
    default_roles: tuple[str, ...] = ()
    routes: tuple[RouteDefinition, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "default_middlewares", _names(self.default_middlewares))
        object.__setattr__(self, "default_roles", _names(self.default_roles))
        object.__setattr__(self, "routes", tuple(self.routes))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RouterConfig":
        """Build from a mapping with camelCase or snake_case keys."""
        routes = [
            r if isinstance(r, RouteDefinition) else RouteDefinition.from_dict(r)
            for r in data.get("routes", ())
        ]
        return cls(
            default_middlewares=data.get("defaultMiddlewares", data.get("default_middlewares")) or (),
            default_roles=data.get("defaultRoles", data.get("default_roles")) or (),
            routes=tuple(routes),
        )


def effective_middlewares(route: RouteDefinition, config: RouterConfig) -> list[str]:
    """Defaults minus ``route.disabled``, then ``route.enabled`` appended.

    Names listed in both the defaults and ``enabled`` appear twice.
    """
    disabled = set(route.disabled)
    names = [name for name in config.default_middlewares if name not in disabled]
    names.extend(route.enabled)
    return names


def effective_roles(route: RouteDefinition, config: RouterConfig) -> list[str]:
    """``route.roles`` when given, else defaults minus ``route.exclude_roles``."""
    if route.roles is not None:
        return list(route.roles)
    excluded = set(route.exclude_roles)
    return [role for role in config.default_roles if role not in excluded]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class MiddlewareRegistry:
    """Name to middleware map, written during startup and read afterwards."""

    def __init__(self, middlewares: Optional[Mapping[str, Middleware]] = None) -> None:
        self._middlewares: dict[str, Middleware] = {}
        self._frozen = False
        for name, middleware in (middlewares or {}).items():
            self.register(name, middleware)

    def register(self, name: str, middleware: Middleware) -> "MiddlewareRegistry":
        """Register *middleware* under *name*, replacing any previous entry.

        Raises:
            RegistryFrozenError: the registry has already been read by a bind.
        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register '{name}': registry is frozen")
        self._middlewares[name] = middleware
        return self

    def get(self, name: str) -> Optional[Middleware]:
        return self._middlewares.get(name)

    def freeze(self) -> None:
        """Reject further registrations."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def names(self) -> list[str]:
        return list(self._middlewares)

    def __contains__(self, name: object) -> bool:
        return name in self._middlewares

    def __len__(self) -> int:
        return len(self._middlewares)


# ---------------------------------------------------------------------------
# Bound routes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BoundRoute:
    """A route with its resolved middleware chain."""

    method: HttpMethod
    path: str
    handler: Handler
    chain: tuple[Middleware, ...] = ()
    middleware_names: tuple[str, ...] = ()
    roles: tuple[str, ...] = ()
    dropped: tuple[str, ...] = field(default=(), compare=False)

    @property
    def handlers(self) -> tuple[Callable[..., Any], ...]:
        """Chain followed by the route handler, in call order."""
        return (*self.chain, self.handler)


# ---------------------------------------------------------------------------
# DeclarativeRouter
# ---------------------------------------------------------------------------


class DeclarativeRouter:
    """Builds and binds middleware chains for a ``RouterConfig``.

    Args:
        config: Defaults and routes.
        registry: Middleware registry; a fresh one is created when omitted.
        strict: Raise ``UnresolvedMiddlewareError`` at bind time instead of
            silently dropping unregistered names.
        role_gate_factory: Builds the role middleware from a role list when no
            ``roleCheck`` factory is registered.
    """

    def __init__(
        self,
        config: RouterConfig,
        registry: Optional[MiddlewareRegistry] = None,
        *,
        strict: bool = False,
        role_gate_factory: RoleGateFactory = RoleGate,
    ) -> None:
        self.config = config
        self.registry = registry if registry is not None else MiddlewareRegistry()
        self.strict = strict
        self.role_gate_factory = role_gate_factory

    def register_middleware(self, name: str, middleware: Middleware) -> "DeclarativeRouter":
        """Shortcut for ``self.registry.register``; returns the router for chaining."""
        self.registry.register(name, middleware)
        return self

    def unresolved_names(self) -> list[str]:
        """Every referenced middleware name with no registered callable, in first-seen order."""
        seen: dict[str, None] = {}
        referenced = list(self.config.default_middlewares)
        for route in self.config.routes:
            referenced.extend(route.enabled)
        for name in referenced:
            if name not in self.registry:
                seen.setdefault(name, None)
        return list(seen)

    def build_chain(self, route: RouteDefinition) -> BoundRoute:
        """Resolve the middleware chain for a single route."""
        names = effective_middlewares(route, self.config)
        roles = effective_roles(route, self.config)

        chain: list[Middleware] = []
        resolved: list[str] = []
        dropped: list[str] = []
        for name in names:
            middleware = self.registry.get(name)
            if middleware is None:
                dropped.append(name)
                continue
            chain.append(middleware)
            resolved.append(name)

        if dropped:
            logger.debug(
                "%s %s: dropping unregistered middleware %s",
                route.method.value, route.path, dropped,
            )

        if roles:
            factory = self.registry.get(ROLE_CHECK) or self.role_gate_factory
            chain.append(factory(list(roles)))
            resolved.append(ROLE_CHECK)

        return BoundRoute(
            method=route.method,
            path=route.path,
            handler=route.handler,
            chain=tuple(chain),
            middleware_names=tuple(resolved),
            roles=tuple(roles),
            dropped=tuple(dropped),
        )

    def bind(self) -> list[BoundRoute]:
        """Freeze the registry and resolve every route, in declaration order.

        Raises:
            UnresolvedMiddlewareError: in strict mode, when any referenced
                name is unregistered.
        """
        self.registry.freeze()
        if self.strict:
            missing = self.unresolved_names()
            if missing:
                raise UnresolvedMiddlewareError(missing)
        return [self.build_chain(route) for route in self.config.routes]

    def apply(self, binder: Callable[[BoundRoute], Any]) -> list[BoundRoute]:
        """Bind every route and hand each one to *binder*."""
        bound = self.bind()
        for route in bound:
            logger.debug("Binding %s %s (%s)", route.method.value, route.path,
                         ", ".join(route.middleware_names) or "no middleware")
            binder(route)
        return bound

    def apply_to_express(self, router: Any) -> list[BoundRoute]:
        """Bind onto an Express-style router: ``router.get(path, *chain, handler)``."""
        return self.apply(
            lambda r: getattr(router, r.method.binder_name)(r.path, *r.handlers)
        )

    def apply_to_hono(self, app: Any) -> list[BoundRoute]:
        """Bind onto a Hono-style app: ``app.on(METHOD, path, *chain, handler)``."""
        return self.apply(lambda r: app.on(r.method.value, r.path, *r.handlers))


def create_router(
    config: RouterConfig | Mapping[str, Any],
    middlewares: Optional[Mapping[str, Middleware]] = None,
    *,
    strict: bool = False,
) -> DeclarativeRouter:
    """Build a ``DeclarativeRouter`` with *middlewares* registered."""
    if not isinstance(config, RouterConfig):
        config = RouterConfig.from_dict(config)
    return DeclarativeRouter(config, MiddlewareRegistry(middlewares), strict=strict)
