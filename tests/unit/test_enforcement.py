"""Tests for the enforcement adapter."""

from unittest.mock import MagicMock

import pytest

from omnicrm.core.rbac.enforcement import (
    ENFORCEMENT_TABLE,
    EnforcementAdapter,
    required_permission,
)
from omnicrm.core.rbac.overrides import OverrideEffect, PermissionOverride, Principal
from omnicrm.core.rbac.permissions import is_valid_permission
from omnicrm.core.rbac.roles import Role, RoleRegistry


@pytest.fixture
def adapter():
    return EnforcementAdapter(RoleRegistry.default())


class TestEnforcementTable:
    """Test the per-resource operation table."""

    def test_every_required_key_is_in_catalog(self):
        for resource, operations in ENFORCEMENT_TABLE.items():
            for operation, permission in operations.items():
                if permission is not None:
                    assert is_valid_permission(permission), f"{resource}.{operation}"

    def test_reads_are_unrestricted(self):
        for resource in ("contacts", "companies", "segments", "deals", "pipelines"):
            assert required_permission(resource, "list") is None
            assert required_permission(resource, "get") is None

    def test_resource_specific_mutations(self):
        assert required_permission("contacts", "update_tags") == "contacts.edit"
        assert required_permission("deals", "close_lost") == "deals.edit"
        assert required_permission("pipelines", "delete_stage") == "pipelines.edit"
        assert required_permission("users", "set_permissions") == "permissions.manage"

    def test_settings_lookups_use_their_own_keys(self):
        for resource in ("tags", "statuses", "lead_sources"):
            assert required_permission(resource, "list") is None
            assert required_permission(resource, "create") == f"{resource}.create"
            assert required_permission(resource, "update") == f"{resource}.edit"
            assert required_permission(resource, "delete") == f"{resource}.delete"

    def test_every_mutating_catalog_module_is_enforced(self):
        enforced = {p for ops in ENFORCEMENT_TABLE.values() for p in ops.values() if p}
        for module in ("tags", "statuses", "lead_sources"):
            for action in ("create", "edit", "delete"):
                assert f"{module}.{action}" in enforced

    def test_unconfigured_pair_raises(self):
        with pytest.raises(KeyError):
            required_permission("contacts", "teleport")
        with pytest.raises(KeyError):
            required_permission("invoices", "create")


class TestEnforcementAdapter:
    """Test gating of operations."""

    def test_member_create_denied(self, adapter):
        decision = adapter.check_operation(Principal(role_slug="member"), "contacts", "create")
        assert not decision.allowed
        assert decision.to_response() == {
            "error": "INSUFFICIENT_PERMISSIONS",
            "required_permission": "contacts.create",
        }

    def test_operation_not_invoked_on_deny(self, adapter):
        func = MagicMock()
        result = adapter.execute(Principal(role_slug="member"), "contacts", "create", func, name="x")
        assert not result.allowed
        assert result.value is None
        func.assert_not_called()

    def test_operation_invoked_on_allow(self, adapter):
        func = MagicMock(return_value={"id": 1})
        result = adapter.execute(Principal(role_slug="admin"), "contacts", "create", func, name="x")
        assert result.allowed
        assert result.value == {"id": 1}
        func.assert_called_once_with(name="x")

    def test_grant_allows(self, adapter):
        principal = Principal(
            role_slug="member",
            overrides=(PermissionOverride("contacts.create", OverrideEffect.GRANT),),
        )
        assert adapter.check_operation(principal, "contacts", "create").allowed

    def test_revoke_denies_admin(self, adapter):
        principal = Principal(
            role_slug="admin",
            overrides=(PermissionOverride("contacts.delete", OverrideEffect.REVOKE),),
        )
        decision = adapter.check_operation(principal, "contacts", "delete")
        assert not decision.allowed
        assert decision.required_permission == "contacts.delete"

    def test_read_allowed_for_role_without_permissions(self):
        adapter = EnforcementAdapter(RoleRegistry.from_roles([Role(slug="empty", name="Empty")]))
        func = MagicMock(return_value=[])
        result = adapter.execute(Principal(role_slug="empty"), "contacts", "list", func)
        assert result.allowed
        func.assert_called_once_with()

    def test_registry_consulted_on_every_check(self):
        registry = MagicMock()
        registry.get_role_permissions.side_effect = [frozenset(), frozenset({"deals.edit"})]
        adapter = EnforcementAdapter(registry)
        principal = Principal(role_slug="custom")

        assert not adapter.check(principal, "deals.edit").allowed
        assert adapter.check(principal, "deals.edit").allowed
        assert registry.get_role_permissions.call_count == 2

    def test_denial_is_logged(self, adapter, caplog):
        with caplog.at_level("WARNING", logger="omnicrm.core.rbac.enforcement"):
            adapter.check(Principal(role_slug="member"), "deals.delete")
        assert "deals.delete" in caplog.text
