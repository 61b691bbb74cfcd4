"""Declarative routing runtime embedded in generated projects.

Quick usage::

    from nod.router import MiddlewareRegistry, RouterConfig, create_router

    router = create_router(
        {"defaultMiddlewares": ["jwtAuth"], "defaultRoles": [], "routes": routes},
        {"jwtAuth": jwt_auth},
    )
    router.apply_to_express(app_router)
"""

from nod.router.composer import (
    ROLE_CHECK,
    BoundRoute,
    DeclarativeRouter,
    HttpMethod,
    MiddlewareRegistry,
    RegistryFrozenError,
    RouteDefinition,
    RouterConfig,
    RouterError,
    UnresolvedMiddlewareError,
    create_router,
    effective_middlewares,
    effective_roles,
)
from nod.router.role_gate import (
    AuthenticationRequired,
    AuthorizationError,
    InsufficientPermissions,
    RoleGate,
    get_principal,
    resolve_role,
)

__all__ = [
    "AuthenticationRequired",
    "AuthorizationError",
    "BoundRoute",
    "DeclarativeRouter",
    "HttpMethod",
    "InsufficientPermissions",
    "MiddlewareRegistry",
    "ROLE_CHECK",
    "RegistryFrozenError",
    "RoleGate",
    "RouteDefinition",
    "RouterConfig",
    "RouterError",
    "UnresolvedMiddlewareError",
    "create_router",
    "effective_middlewares",
    "effective_roles",
    "get_principal",
    "resolve_role",
]
