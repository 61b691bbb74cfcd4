"""Role-based access middleware for declaratively configured routes.

A ``RoleGate`` is synthesized by ``DeclarativeRouter`` for every route whose
effective role set is non-empty and always runs last in the chain, after the
authentication middleware that attaches the principal to the request.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Callable, Optional


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class AuthorizationError(Exception):
    """Base class for request authorization failures.

    Attributes:
        status_code: HTTP status the framework boundary should answer with.
    """

    status_code: int = 403
    default_message: str = "Forbidden"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> tuple[int, dict[str, str]]:
        """Return ``(status_code, json_body)`` for the HTTP layer."""
        return self.status_code, {"error": self.message}


class AuthenticationRequired(AuthorizationError):
    """No authenticated principal on the request (HTTP 401)."""

    status_code = 401
    default_message = "Authentication required"


class InsufficientPermissions(AuthorizationError):
    """The principal's role is not allowed on this route (HTTP 403)."""

    status_code = 403
    default_message = "Insufficient permissions"

    def __init__(
        self,
        role: Optional[str] = None,
        allowed_roles: Iterable[str] = (),
        message: Optional[str] = None,
    ) -> None:
        self.role = role
        self.allowed_roles = tuple(allowed_roles)
        super().__init__(message)


# ---------------------------------------------------------------------------
# Principal helpers
# ---------------------------------------------------------------------------


def _lookup(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def get_principal(request: Any) -> Any:
    """Return the authenticated principal attached to *request*, if any.

    Looks at ``request.user`` (attribute or mapping key), then
    ``request.state.user``.
    """
    principal = _lookup(request, "user")
    if principal is None:
        principal = _lookup(_lookup(request, "state"), "user")
    return principal


def resolve_role(principal: Any) -> Optional[str]:
    """Role of *principal*: ``role``, falling back to ``user_metadata.role``."""
    role = _lookup(principal, "role")
    if not role:
        role = _lookup(_lookup(principal, "user_metadata"), "role")
    return role or None


# ---------------------------------------------------------------------------
# RoleGate
# ---------------------------------------------------------------------------


class RoleGate:
    """Middleware allowing only principals whose role is in ``allowed_roles``.

    Called as ``gate(request, call_next)``; ``call_next`` is optional so the
    gate can also be used as a plain check.
    """

    def __init__(self, allowed_roles: Iterable[str]) -> None:
        self.allowed_roles: tuple[str, ...] = tuple(allowed_roles)
        self._allowed = frozenset(self.allowed_roles)

    def check(self, request: Any) -> None:
        """Raise unless *request* carries a principal with an allowed role.

        Raises:
            AuthenticationRequired: no principal on the request.
            InsufficientPermissions: the principal's role is missing or not allowed.
        """
        principal = get_principal(request)
        if principal is None:
            raise AuthenticationRequired()
        role = resolve_role(principal)
        if role is None or role not in self._allowed:
            raise InsufficientPermissions(role, self.allowed_roles)

    def __call__(self, request: Any, call_next: Optional[Callable[[Any], Any]] = None) -> Any:
        self.check(request)
        if call_next is not None:
            return call_next(request)
        return None

    def __repr__(self) -> str:
        return f"RoleGate({list(self.allowed_roles)!r})"
