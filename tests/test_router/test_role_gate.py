"""Unit tests for the role gate middleware (nod.router.role_gate)."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from nod.router.role_gate import (
    AuthenticationRequired,
    AuthorizationError,
    InsufficientPermissions,
    RoleGate,
    get_principal,
    resolve_role,
)


pytestmark = pytest.mark.unit


def request_with(user) -> SimpleNamespace:
    return SimpleNamespace(user=user)


# ---------------------------------------------------------------------------
# Principal helpers
# ---------------------------------------------------------------------------


class TestPrincipal:
    def test_attribute_user(self):
        user = {"role": "admin"}
        assert get_principal(request_with(user)) is user

    def test_mapping_request(self):
        user = {"role": "admin"}
        assert get_principal({"user": user}) is user

    def test_state_user(self):
        user = {"role": "admin"}
        req = SimpleNamespace(state=SimpleNamespace(user=user))
        assert get_principal(req) is user

    def test_missing(self):
        assert get_principal(SimpleNamespace()) is None

    def test_role_attribute(self):
        assert resolve_role({"role": "admin"}) == "admin"

    def test_role_from_user_metadata(self):
        assert resolve_role({"user_metadata": {"role": "editor"}}) == "editor"

    def test_top_level_role_wins(self):
        principal = {"role": "admin", "user_metadata": {"role": "editor"}}
        assert resolve_role(principal) == "admin"

    def test_object_principal(self):
        principal = SimpleNamespace(role=None, user_metadata=SimpleNamespace(role="user"))
        assert resolve_role(principal) == "user"

    def test_no_role(self):
        assert resolve_role({}) is None


# ---------------------------------------------------------------------------
# RoleGate
# ---------------------------------------------------------------------------


class TestRoleGate:
    def test_allowed_role_passes(self):
        call_next = MagicMock(return_value="response")
        req = request_with({"role": "admin"})
        assert RoleGate(["admin", "superAdmin"])(req, call_next) == "response"
        call_next.assert_called_once_with(req)

    def test_no_principal_is_401(self):
        with pytest.raises(AuthenticationRequired) as exc_info:
            RoleGate(["admin"])(request_with(None))
        assert exc_info.value.status_code == 401
        assert exc_info.value.to_response() == (401, {"error": "Authentication required"})

    def test_wrong_role_is_403(self):
        call_next = MagicMock()
        with pytest.raises(InsufficientPermissions) as exc_info:
            RoleGate(["admin"])(request_with({"role": "user"}), call_next)
        err = exc_info.value
        assert err.status_code == 403
        assert err.role == "user"
        assert err.allowed_roles == ("admin",)
        assert err.to_response() == (403, {"error": "Insufficient permissions"})
        call_next.assert_not_called()

    def test_missing_role_is_403(self):
        with pytest.raises(InsufficientPermissions):
            RoleGate(["admin"]).check(request_with({"id": "u1"}))

    def test_metadata_role_allowed(self):
        RoleGate(["editor"]).check(request_with({"user_metadata": {"role": "editor"}}))

    def test_without_call_next(self):
        assert RoleGate(["admin"])(request_with({"role": "admin"})) is None

    def test_errors_share_base(self):
        assert issubclass(AuthenticationRequired, AuthorizationError)
        assert issubclass(InsufficientPermissions, AuthorizationError)

    def test_repr(self):
        assert repr(RoleGate(("admin", "user"))) == "RoleGate(['admin', 'user'])"
