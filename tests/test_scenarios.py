"""End-to-end behaviour of AccessControlService on a controllable clock."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from aumos_rbac import (
    AccessControlService,
    DuplicateError,
    ManualClock,
    NotFoundError,
    Permission,
    PermissionAction,
    Role,
)

_START = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(_START)


@pytest.fixture()
def acl(clock: ManualClock) -> AccessControlService:
    return AccessControlService(clock=clock, load_defaults=False)


class TestScenarios:
    def test_read_permission_granted_delete_denied(self, acl: AccessControlService) -> None:
        acl.add_permission(Permission(id="read-all", name="Read All", action=PermissionAction.READ))
        acl.add_role(Role(id="user", name="User", permissions=("read-all",)))
        acl.assign_role("u1", "user")
        assert acl.has_permission("u1", PermissionAction.READ) is True
        assert acl.has_permission("u1", PermissionAction.DELETE) is False

    def test_wildcard_permission_grants_any_action(self, acl: AccessControlService) -> None:
        acl.add_permission(Permission(id="admin-all", name="Admin All", action=PermissionAction.ALL))
        acl.add_role(Role(id="admin", name="Admin", permissions=("admin-all",)))
        acl.assign_role("u1", "admin")
        assert acl.has_permission("u1", PermissionAction.CREATE) is True
        assert acl.has_permission("u1", PermissionAction.READ) is True

    def test_already_expired_assignment_is_inactive(
        self, acl: AccessControlService, clock: ManualClock
    ) -> None:
        acl.add_permission(Permission(id="admin-all", name="Admin All", action=PermissionAction.ALL))
        acl.add_role(Role(id="admin", name="Admin", permissions=("admin-all",)))
        acl.assign_role("u1", "admin", expires_at=clock.now() - timedelta(seconds=1))
        assert acl.has_role("u1", "admin") is False

    def test_second_assignment_is_duplicate(self, acl: AccessControlService) -> None:
        acl.add_role(Role(id="admin", name="Admin"))
        acl.assign_role("u1", "admin")
        with pytest.raises(DuplicateError) as exc_info:
            acl.assign_role("u1", "admin")
        assert "admin" in str(exc_info.value)
        assert "u1" in str(exc_info.value)

    def test_revocation_not_served_from_cache(self, acl: AccessControlService) -> None:
        acl.add_permission(Permission(id="read-all", name="Read All", action=PermissionAction.READ))
        acl.add_role(Role(id="user", name="User", permissions=("read-all",)))
        acl.assign_role("u1", "user")
        assert acl.config.cache_enabled is True
        assert acl.has_permission("u1", PermissionAction.READ) is True
        acl.revoke_role("u1", "user")
        assert acl.has_permission("u1", PermissionAction.READ) is False


class TestProperties:
    @pytest.mark.parametrize("role_id", ["ghost", "ADMIN", ""])
    def test_unknown_role_not_found(self, role_id: str) -> None:
        acl = AccessControlService()
        with pytest.raises(NotFoundError):
            acl.assign_role("u1", role_id)

    def test_expired_assignment_still_blocks_reassignment(
        self, acl: AccessControlService, clock: ManualClock
    ) -> None:
        acl.add_role(Role(id="r", name="R"))
        acl.assign_role("u1", "r", expires_at=clock.now() + timedelta(minutes=1))
        clock.advance(minutes=2)
        with pytest.raises(DuplicateError):
            acl.assign_role("u1", "r")

    def test_revoke_unassigned_not_found(self, acl: AccessControlService) -> None:
        acl.add_role(Role(id="r", name="R"))
        with pytest.raises(NotFoundError):
            acl.revoke_role("u1", "r")

    def test_roles_drop_out_at_expiry_instant(
        self, acl: AccessControlService, clock: ManualClock
    ) -> None:
        acl.add_role(Role(id="r", name="R"))
        acl.assign_role("u1", "r", expires_at=clock.now() + timedelta(seconds=30))
        assert [role.id for role in acl.get_user_roles("u1")] == ["r"]
        clock.advance(seconds=30)
        assert acl.get_user_roles("u1") == []

    def test_expired_admin_loses_cached_grant(
        self, acl: AccessControlService, clock: ManualClock
    ) -> None:
        acl.add_permission(Permission(id="admin-all", name="Admin All", action=PermissionAction.ALL))
        acl.add_role(Role(id="admin", name="Admin", permissions=("admin-all",)))
        acl.assign_role("u1", "admin", expires_at=clock.now() + timedelta(seconds=30))
        assert acl.has_permission("u1", PermissionAction.DELETE) is True
        clock.advance(seconds=60)
        assert [role.id for role in acl.get_user_roles("u1")] == []
        assert acl.has_permission("u1", PermissionAction.DELETE) is False

    def test_repeated_checks_agree(self, acl: AccessControlService) -> None:
        acl.add_permission(Permission(id="p", name="P", action=PermissionAction.UPDATE))
        acl.add_role(Role(id="r", name="R", permissions=("p",)))
        acl.assign_role("u1", "r")
        first = acl.check_permission("u1", "update")
        second = acl.check_permission("u1", "update")
        assert first.granted == second.granted is True

    def test_assignment_visible_immediately_with_cache(self, acl: AccessControlService) -> None:
        acl.add_permission(Permission(id="p", name="P", action=PermissionAction.CREATE))
        acl.add_role(Role(id="r", name="R", permissions=("p",)))
        assert acl.has_permission("u1", "create") is False
        acl.assign_role("u1", "r")
        assert acl.has_permission("u1", "create") is True

    def test_upsert_later_call_wins(self, acl: AccessControlService) -> None:
        acl.add_role(Role(id="r", name="First"))
        acl.add_role(Role(id="r", name="Second"))
        acl.add_permission(Permission(id="p", name="P1", action=PermissionAction.READ))
        acl.add_permission(Permission(id="p", name="P2", action=PermissionAction.DELETE))
        assert acl.registry.role_count == 1
        assert acl.registry.get_role("r").name == "Second"  # type: ignore[union-attr]
        assert acl.registry.permission_count == 1
        assert acl.registry.get_permission("p").action is PermissionAction.DELETE  # type: ignore[union-attr]
