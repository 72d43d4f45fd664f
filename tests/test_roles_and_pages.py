# tests/test_roles_and_pages.py

"""
Tests for role and page management endpoints.
"""

import pytest


@pytest.mark.parametrize("user_id,expected", [
    ("admin-user", {"director", "partner", "coordinator", "collector", "intern"}),
    ("director-user", {"teacher", "coordinator", "collector"}),
    ("teacher-user", set()),
    ("intern-user", set()),
    # Authenticated but no profile, so no role
    ("ghost-user", set()),
])
def test_creatable_roles(client, login_as, user_id, expected):
    login_as(user_id)
    response = client.get("/api/v1/roles/creatable")
    assert response.status_code == 200
    body = response.json()
    assert {role["name"] for role in body["roles"]} == expected
    assert body["can_create_users"] is bool(expected)


def test_hierarchy_endpoint(client, login_as):
    login_as("teacher-user")
    hierarchy = client.get("/api/v1/roles/hierarchy").json()["hierarchy"]
    assert hierarchy["director"] == ["teacher", "coordinator", "collector"]
    assert hierarchy["intern"] == []


def test_list_roles_ordered_by_name(client, login_as):
    login_as("teacher-user")
    names = [role["name"] for role in client.get("/api/v1/roles").json()]
    assert names == sorted(names)
    assert len(names) == 7


def test_role_writes_require_admin(client, login_as):
    login_as("director-user")
    assert client.post("/api/v1/roles", json={"name": "auditor"}).status_code == 403
    assert client.delete("/api/v1/roles/4").status_code == 403


def test_create_duplicate_role(client, login_as):
    login_as("admin-user")
    assert client.post("/api/v1/roles", json={"name": "auditor"}).status_code == 201
    response = client.post("/api/v1/roles", json={"name": "auditor"})
    assert response.status_code == 400


def test_rename_role_moves_permissions_and_users(client, login_as, fake_db):
    fake_db.seed("roles", [{"id": 8, "name": "auditor"}])
    fake_db.seed("user_profiles", [
        {"id": "auditor-user", "email": "auditor@example.com", "full_name": "Ann Auditor", "role": "auditor"},
    ])
    fake_db.seed("role_page_permissions", [{"role": "auditor", "page_id": 4, "is_allowed": True}])
    fake_db.seed("page_action_permissions", [
        {"page_id": 4, "role": "auditor", "action_name": "export", "is_allowed": True},
    ])
    login_as("admin-user")

    response = client.put("/api/v1/roles/8", json={"name": "inspector"})

    assert response.status_code == 200
    assert response.json()["name"] == "inspector"
    assert len(fake_db.rows("role_page_permissions", role="inspector")) == 1
    assert len(fake_db.rows("page_action_permissions", role="inspector")) == 1
    assert fake_db.rows("user_profiles", id="auditor-user")[0]["role"] == "inspector"

    # The renamed role's users keep their access
    login_as("auditor-user")
    assert [p["page_name"] for p in client.get("/api/v1/action-permissions/me").json()] == ["Reports"]


def test_hierarchy_roles_cannot_be_renamed(client, login_as, fake_db):
    fake_db.seed("role_page_permissions", [{"role": "director", "page_id": 1, "is_allowed": True}])
    login_as("admin-user")

    response = client.put("/api/v1/roles/2", json={"name": "principal"})

    assert response.status_code == 400
    assert fake_db.rows("roles", id=2)[0]["name"] == "director"
    assert fake_db.rows("user_profiles", id="director-user")[0]["role"] == "director"
    assert len(fake_db.rows("role_page_permissions", role="director")) == 1

    # Description-only updates are still allowed
    response = client.put("/api/v1/roles/2", json={"name": "director", "description": "School director"})
    assert response.status_code == 200
    assert response.json()["description"] == "School director"


def test_delete_role_cascades(client, login_as, fake_db):
    fake_db.seed("roles", [{"id": 8, "name": "auditor"}])
    fake_db.seed("role_page_permissions", [
        {"role": "auditor", "page_id": 1, "is_allowed": True},
        {"role": "teacher", "page_id": 1, "is_allowed": True},
    ])
    login_as("admin-user")

    assert client.delete("/api/v1/roles/8").status_code == 204
    assert fake_db.rows("roles", name="auditor") == []
    assert fake_db.rows("role_page_permissions", role="auditor") == []
    assert len(fake_db.rows("role_page_permissions", role="teacher")) == 1
    assert client.get("/api/v1/roles/8").status_code == 404


def test_hierarchy_roles_cannot_be_deleted(client, login_as, fake_db):
    login_as("admin-user")
    assert client.delete("/api/v1/roles/7").status_code == 400
    assert fake_db.rows("roles", name="intern") != []


def test_create_page_validates_path(client, login_as):
    login_as("admin-user")
    response = client.post("/api/v1/pages", json={"page_name": "Assessments", "page_path": "assessments"})
    assert response.status_code == 422

    response = client.post("/api/v1/pages", json={"page_name": "Assessments", "page_path": "/assessments"})
    assert response.status_code == 201
    assert client.post("/api/v1/pages", json={"page_name": "Assessments", "page_path": "/x"}).status_code == 400


def test_delete_page_cascades(client, login_as, fake_db):
    fake_db.seed("role_page_permissions", [{"role": "teacher", "page_id": 4, "is_allowed": True}])
    fake_db.seed("page_action_permissions", [
        {"page_id": 4, "role": "teacher", "action_name": "export", "is_allowed": True},
    ])
    login_as("admin-user")

    assert client.delete("/api/v1/pages/4").status_code == 204
    assert fake_db.rows("role_page_permissions", page_id=4) == []
    assert fake_db.rows("page_action_permissions", page_id=4) == []
    assert [p["page_name"] for p in client.get("/api/v1/pages").json()] == ["Dashboard", "Schools", "Users"]


def test_update_page_requires_fields(client, login_as):
    login_as("admin-user")
    assert client.put("/api/v1/pages/1", json={}).status_code == 400
    response = client.put("/api/v1/pages/1", json={"page_name": "Home"})
    assert response.status_code == 200
    assert response.json()["page_name"] == "Home"
