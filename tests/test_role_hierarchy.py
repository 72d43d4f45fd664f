# tests/test_role_hierarchy.py

"""
Tests for the static role hierarchy and the action/page defaults.
"""

import pytest
from types import SimpleNamespace

from tarl_access.config.role_hierarchy import (
    ROLE_HIERARCHY,
    can_create_users,
    filter_roles_by_hierarchy,
    get_creatable_roles,
    get_default_actions_for_page,
    normalize_page_name,
)


@pytest.mark.parametrize("role", ["", "superuser", "Admin", "DIRECTOR", "guest", "student"])
def test_unknown_role_creates_nothing(role):
    """Roles missing from the table (lookup is case-sensitive) get an empty set."""
    assert get_creatable_roles(role) == []
    assert can_create_users(role) is False


@pytest.mark.parametrize("role", sorted(ROLE_HIERARCHY))
def test_known_role_gets_exactly_configured_list(role):
    assert get_creatable_roles(role) == ROLE_HIERARCHY[role]


def test_configured_hierarchy():
    assert get_creatable_roles("admin") == ["director", "partner", "coordinator", "collector", "intern"]
    assert get_creatable_roles("director") == ["teacher", "coordinator", "collector"]
    assert get_creatable_roles("partner") == ["teacher", "coordinator", "collector"]
    for leaf in ("teacher", "coordinator", "collector", "intern"):
        assert get_creatable_roles(leaf) == []


def test_lookup_is_not_transitive():
    """Admin may create directors, and directors may create teachers, but admin may not create teachers."""
    assert "teacher" in get_creatable_roles("director")
    assert "teacher" not in get_creatable_roles("admin")


def test_returned_list_is_a_copy():
    roles = get_creatable_roles("director")
    roles.append("admin")
    assert "admin" not in get_creatable_roles("director")


def test_filter_accepts_names_dicts_and_objects():
    all_roles = ["admin", "director", "teacher", "coordinator", "intern"]
    assert filter_roles_by_hierarchy("director", all_roles) == ["teacher", "coordinator"]

    records = [{"id": 1, "name": "admin"}, {"id": 4, "name": "teacher"}, {"id": 6, "name": "collector"}]
    assert filter_roles_by_hierarchy("partner", records) == [records[1], records[2]]

    objects = [SimpleNamespace(id=2, name="director"), SimpleNamespace(id=7, name="intern")]
    assert filter_roles_by_hierarchy("admin", objects) == objects


def test_filter_for_leaf_or_unknown_role_is_empty():
    all_roles = list(ROLE_HIERARCHY)
    assert filter_roles_by_hierarchy("teacher", all_roles) == []
    assert filter_roles_by_hierarchy("nobody", all_roles) == []


def test_can_create_users():
    assert can_create_users("admin")
    assert can_create_users("director")
    assert can_create_users("partner")
    assert not can_create_users("intern")


def test_default_actions_for_pages():
    assert get_default_actions_for_page("Reports") == ["view", "export"]
    assert get_default_actions_for_page("  Settings ") == ["view", "update"]
    assert get_default_actions_for_page("Schools") == ["view", "create", "update", "delete", "export"]
    assert get_default_actions_for_page("Training Programs") == ["view"]


def test_normalize_page_name():
    assert normalize_page_name("Training   Programs") == "training_programs"
