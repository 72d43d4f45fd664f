# tests/test_action_permissions.py

"""
Tests for page x role x action permissions and the action check.
"""

import pytest
from fastapi import HTTPException

from tarl_access.modules.action_permissions.service import ActionPermissionService
from tarl_access.modules.audit.schemas import ChangedBy


ADMIN = ChangedBy(user_id="admin-user", username="Admin User", role="admin")


@pytest.fixture
def service(fake_db):
    return ActionPermissionService(fake_db)


def test_update_creates_then_updates_row(service, fake_db):
    """First write creates the row, second write flips it in place"""
    service.update_action_permission(2, "teacher", "create", True, ADMIN)
    service.update_action_permission(2, "teacher", "create", False, ADMIN)

    rows = fake_db.rows("page_action_permissions", page_id=2, role="teacher", action_name="create")
    assert len(rows) == 1
    assert rows[0]["is_allowed"] is False

    logs = fake_db.rows("permission_audit_log")
    assert [log["action_type"] for log in logs] == [
        "action_permission_created_granted",
        "action_permission_revoked",
    ]
    assert logs[1]["description"].endswith("(was granted)")
    assert logs[1]["role_affected"] == "teacher"


def test_update_rejects_unknown_action(service, fake_db):
    with pytest.raises(HTTPException) as exc:
        service.update_action_permission(2, "teacher", "approve", True, ADMIN)
    assert exc.value.status_code == 400
    assert fake_db.rows("page_action_permissions") == []


def test_update_unknown_page_or_role(service):
    with pytest.raises(HTTPException) as exc:
        service.update_action_permission(99, "teacher", "view", True, ADMIN)
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        service.update_action_permission(2, "ghost", "view", True, ADMIN)
    assert exc.value.status_code == 404
    assert exc.value.detail == "Role not found"


def test_bulk_update_writes_once(service, fake_db):
    fake_db.seed("page_action_permissions", [
        {"page_id": 2, "role": "director", "action_name": "view", "is_allowed": False},
    ])
    fake_db.calls.clear()

    result = service.bulk_update(2, "director", {"view": True, "create": True, "delete": False}, ADMIN)

    assert fake_db.writes("page_action_permissions") == ["upsert"]
    stored = {r["action_name"]: r["is_allowed"] for r in fake_db.rows("page_action_permissions", role="director")}
    assert stored == {"view": True, "create": True, "delete": False}
    assert result.actions == {"view": True, "create": True, "delete": False}
    assert len(fake_db.rows("permission_audit_log")) == 3


def test_bulk_update_requires_actions(service):
    with pytest.raises(HTTPException) as exc:
        service.bulk_update(2, "director", {}, ADMIN)
    assert exc.value.status_code == 400


def test_explicit_action_row_wins(service, fake_db):
    fake_db.seed("role_page_permissions", [{"role": "teacher", "page_id": 2, "is_allowed": True}])
    fake_db.seed("page_action_permissions", [
        {"page_id": 2, "role": "teacher", "action_name": "view", "is_allowed": False},
        {"page_id": 2, "role": "teacher", "action_name": "export", "is_allowed": True},
    ])
    assert service.can_perform_action("teacher", "Schools", "view") is False
    assert service.can_perform_action("teacher", "Schools", "export") is True


def test_view_falls_back_to_page_access(service, fake_db):
    fake_db.seed("role_page_permissions", [
        {"role": "teacher", "page_id": 2, "is_allowed": True},
        {"role": "teacher", "page_id": 3, "is_allowed": False},
    ])
    assert service.can_perform_action("teacher", "Schools", "view") is True
    assert service.can_perform_action("teacher", "Users", "view") is False
    # No fallback for anything but view
    assert service.can_perform_action("teacher", "Schools", "create") is False


def test_check_denies_unknown_inputs(service):
    assert service.can_perform_action(None, "Schools", "view") is False
    assert service.can_perform_action("teacher", "Nowhere", "view") is False
    assert service.can_perform_action("teacher", "Schools", "fly") is False


def test_user_action_permissions_cover_accessible_pages_with_action_rows(service, fake_db):
    fake_db.seed("role_page_permissions", [
        {"role": "director", "page_id": 1, "is_allowed": True},
        {"role": "director", "page_id": 4, "is_allowed": True},
        {"role": "director", "page_id": 2, "is_allowed": False},
    ])
    fake_db.seed("page_action_permissions", [
        {"page_id": 4, "role": "director", "action_name": "export", "is_allowed": True},
        # Page 2 is not accessible, so this row is hidden
        {"page_id": 2, "role": "director", "action_name": "update", "is_allowed": True},
    ])

    result = service.get_user_action_permissions("director")

    # Dashboard is accessible but has no action rows, so it is left out
    assert [p.page_name for p in result] == ["Reports"]
    reports = result[0]
    assert reports.actions["export"] is True
    assert reports.actions["view"] is False
    assert set(reports.actions) == {"view", "create", "update", "delete", "export", "bulk_update"}


def test_user_without_role_has_no_actions(service):
    assert service.get_user_action_permissions(None) == []


# ------------------------------------------------------------------
# Routes
# ------------------------------------------------------------------
def test_update_route_requires_admin(client, login_as):
    login_as("director-user")
    response = client.put("/api/v1/action-permissions", json={
        "page_id": 2, "role": "teacher", "action_name": "view", "is_allowed": True
    })
    assert response.status_code == 403


def test_update_route_and_grouped_listing(client, login_as):
    login_as("admin-user")
    response = client.put("/api/v1/action-permissions", json={
        "page_id": 2, "role": "teacher", "action_name": "update", "is_allowed": True
    })
    assert response.status_code == 200
    assert response.json()["page_name"] == "Schools"

    listing = client.get("/api/v1/action-permissions").json()
    assert listing["available_actions"] == ["view", "create", "update", "delete", "export", "bulk_update"]
    assert listing["permissions"]["Schools"]["roles"]["teacher"]["actions"] == {"update": True}


def test_check_uses_current_users_role(client, login_as, fake_db):
    fake_db.seed("role_page_permissions", [{"role": "teacher", "page_id": 1, "is_allowed": True}])
    login_as("teacher-user")

    response = client.post("/api/v1/action-permissions/check", json={"page_name": "Dashboard", "action_name": "view"})
    assert response.status_code == 200
    assert response.json() == {
        "can_perform": True, "role": "teacher", "page_name": "Dashboard", "action_name": "view"
    }

    response = client.get("/api/v1/action-permissions/check", params={"page_name": "Dashboard", "actions": "view, delete"})
    assert response.json()["permissions"] == {"view": True, "delete": False}


def test_get_check_requires_an_action(client, login_as):
    login_as("teacher-user")
    response = client.get("/api/v1/action-permissions/check", params={"page_name": "Dashboard", "actions": " , "})
    assert response.status_code == 400
    assert response.json()["detail"] == "At least one action is required"


def test_my_action_permissions_route(client, login_as, fake_db):
    fake_db.seed("role_page_permissions", [
        {"role": "intern", "page_id": 1, "is_allowed": True},
        {"role": "intern", "page_id": 4, "is_allowed": True},
    ])
    fake_db.seed("page_action_permissions", [
        {"page_id": 1, "role": "intern", "action_name": "view", "is_allowed": False},
    ])
    login_as("intern-user")

    response = client.get("/api/v1/action-permissions/me")
    assert response.status_code == 200
    body = response.json()
    assert [p["page_name"] for p in body] == ["Dashboard"]
    assert not any(body[0]["actions"].values())


def test_default_actions_route(client, login_as):
    login_as("teacher-user")
    response = client.get("/api/v1/action-permissions/defaults/Reports")
    assert response.json() == {"page_name": "Reports", "actions": ["view", "export"]}
