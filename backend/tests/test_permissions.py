"""Tests for the permission catalog and role defaults."""

import pytest

from jobmarket.auth.permissions import (
    ALL_PERMISSIONS,
    PERMISSION_LABELS,
    ROLE_DEFAULTS,
    ROLES,
    defaults_for_role,
    list_all_permissions,
    permission_label,
    unknown_permissions,
)
from jobmarket.services.legacy_access import LEGACY_FLAG_PERMISSIONS


@pytest.mark.unit
class TestCatalog:

    def test_catalog_matches_labels(self):
        assert list_all_permissions() == frozenset(PERMISSION_LABELS)

    def test_labels_are_non_empty(self):
        assert all(permission_label(p) for p in ALL_PERMISSIONS)

    def test_unknown_permissions_keeps_input_order(self):
        assert unknown_permissions(["view_jobs", "fly_rockets", "edit_jobs", "juggle"]) == [
            "fly_rockets",
            "juggle",
        ]


@pytest.mark.unit
class TestRoleDefaults:

    def test_every_role_has_defaults(self):
        assert set(ROLES) == set(ROLE_DEFAULTS)

    def test_owner_and_admin_alias_full_catalog(self):
        assert defaults_for_role("owner") is ALL_PERMISSIONS
        assert defaults_for_role("admin") is ALL_PERMISSIONS

    def test_unknown_role_gets_nothing(self):
        assert defaults_for_role("janitor") == frozenset()
        assert defaults_for_role(None) == frozenset()
        assert defaults_for_role("") == frozenset()

    def test_role_lookup_is_case_insensitive(self):
        assert defaults_for_role("Manager") == defaults_for_role("manager")

    def test_role_defaults_reference_only_catalog_entries(self):
        for role, permissions in ROLE_DEFAULTS.items():
            assert not unknown_permissions(permissions), role

    def test_delegate_has_no_defaults(self):
        assert "delegate" in ROLES
        assert defaults_for_role("delegate") == frozenset()

    def test_staff_cannot_edit_jobs(self):
        staff = defaults_for_role("staff")
        assert "view_jobs" in staff
        assert "edit_jobs" not in staff

    def test_roles_narrow_from_manager_to_staff(self):
        assert defaults_for_role("staff") <= defaults_for_role("manager")
        assert defaults_for_role("supervisor") <= defaults_for_role("manager")
        assert "manage_permissions" not in defaults_for_role("manager")


@pytest.mark.unit
def test_legacy_mapping_targets_catalog_entries():
    for flag, permissions in LEGACY_FLAG_PERMISSIONS.items():
        assert not unknown_permissions(permissions), flag
