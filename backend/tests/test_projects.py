"""
Tests for project, membership and project activity endpoints.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.models.activity_log import ActivityLog
from secrets_manager.models.project import ProjectRole, UserProjectRole
from secrets_manager.models.secret import Secret

from tests.factories import add_member, create_test_project, create_test_secret


async def create_project(client: AsyncClient, headers: dict, name: str = "Billing") -> dict:
    response = await client.post("/api/projects", json={"name": name}, headers=headers)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_creator_becomes_project_admin(client: AsyncClient, db_session: AsyncSession, test_user, auth_headers):
    """A regular user who creates a project can immediately add secrets to it."""
    project = await create_project(client, auth_headers)

    membership = await db_session.execute(
        select(UserProjectRole).where(UserProjectRole.project_id == project["id"])
    )
    role = membership.scalar_one()
    assert role.user_id == test_user.id
    assert role.role == "admin"

    response = await client.post(
        "/api/secrets",
        json={"name": "DB_URL", "value": "postgres://", "project_id": project["id"]},
        headers=auth_headers
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_list_projects_scoped_to_membership(
    client: AsyncClient, db_session: AsyncSession, test_user, auth_headers, admin_headers
):
    mine = await create_project(client, auth_headers, "Mine")
    await create_test_project(db_session, name="Not Mine")

    own = await client.get("/api/projects", headers=auth_headers)
    everything = await client.get("/api/projects", headers=admin_headers)

    assert [p["id"] for p in own.json()] == [mine["id"]]
    assert len(everything.json()) == 2


@pytest.mark.asyncio
async def test_non_member_cannot_view_project(client: AsyncClient, db_session: AsyncSession, auth_headers):
    project = await create_test_project(db_session)

    response = await client.get(f"/api/projects/{project.id}", headers=auth_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_viewer_cannot_update_project(
    client: AsyncClient, db_session: AsyncSession, test_user, auth_headers
):
    project = await create_test_project(db_session)
    await add_member(db_session, test_user, project, ProjectRole.VIEWER)

    viewed = await client.get(f"/api/projects/{project.id}", headers=auth_headers)
    updated = await client.put(f"/api/projects/{project.id}", json={"name": "Renamed"}, headers=auth_headers)

    assert viewed.status_code == 200
    assert updated.status_code == 403


@pytest.mark.asyncio
async def test_update_project(client: AsyncClient, auth_headers):
    project = await create_project(client, auth_headers)

    response = await client.put(
        f"/api/projects/{project['id']}",
        json={"description": "Invoices and payouts"},
        headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Billing"
    assert response.json()["description"] == "Invoices and payouts"


@pytest.mark.asyncio
async def test_missing_project_for_global_admin(client: AsyncClient, admin_headers):
    response = await client.get("/api/projects/9999", headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_project_removes_secrets_from_store(
    client: AsyncClient, db_session: AsyncSession, auth_headers, credential_store
):
    project = await create_project(client, auth_headers)
    for name in ("A", "B"):
        await client.post(
            "/api/secrets",
            json={"name": name, "value": "v", "project_id": project["id"]},
            headers=auth_headers
        )
    assert len(credential_store) == 2

    response = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert len(credential_store) == 0
    secrets = await db_session.execute(select(Secret))
    assert secrets.scalars().all() == []
    follow_up = await client.get(f"/api/projects/{project['id']}", headers=auth_headers)
    assert follow_up.status_code == 403


@pytest.mark.asyncio
async def test_delete_project_stops_at_store_failure(
    client: AsyncClient, db_session: AsyncSession, auth_headers, credential_store
):
    project = await create_project(client, auth_headers)
    await client.post(
        "/api/secrets",
        json={"name": "A", "value": "v", "project_id": project["id"]},
        headers=auth_headers
    )
    credential_store.fail_delete = True

    response = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers)

    assert response.status_code == 500
    still_there = await client.get(f"/api/projects/{project['id']}", headers=auth_headers)
    assert still_there.status_code == 200


@pytest.mark.asyncio
async def test_assign_role_upserts(
    client: AsyncClient, db_session: AsyncSession, auth_headers, other_user
):
    project = await create_project(client, auth_headers)
    payload = {"user_id": other_user.id, "project_id": project["id"], "role": "viewer"}

    first = await client.post("/api/user-projects", json=payload, headers=auth_headers)
    second = await client.post(
        "/api/user-projects", json={**payload, "role": "editor"}, headers=auth_headers
    )

    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["role"] == "editor"

    members = await client.get(f"/api/projects/{project['id']}/users", headers=auth_headers)
    roles = {m["user"]["username"]: m["role"] for m in members.json()}
    assert roles == {"testuser": "admin", "otheruser": "editor"}


@pytest.mark.asyncio
async def test_assign_role_unknown_user(client: AsyncClient, auth_headers):
    project = await create_project(client, auth_headers)

    response = await client.post(
        "/api/user-projects",
        json={"user_id": 9999, "project_id": project["id"], "role": "viewer"},
        headers=auth_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_assign_role_invalid_role(client: AsyncClient, auth_headers, other_user):
    project = await create_project(client, auth_headers)

    response = await client.post(
        "/api/user-projects",
        json={"user_id": other_user.id, "project_id": project["id"], "role": "owner"},
        headers=auth_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_editor_cannot_assign_roles(
    client: AsyncClient, db_session: AsyncSession, test_user, auth_headers, other_user
):
    project = await create_test_project(db_session)
    await add_member(db_session, test_user, project, ProjectRole.EDITOR)

    response = await client.post(
        "/api/user-projects",
        json={"user_id": other_user.id, "project_id": project.id, "role": "admin"},
        headers=auth_headers
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_change_role_requires_membership(client: AsyncClient, auth_headers, other_user):
    project = await create_project(client, auth_headers)

    response = await client.put(
        "/api/user-projects",
        json={"user_id": other_user.id, "project_id": project["id"], "role": "editor"},
        headers=auth_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_change_role(client: AsyncClient, db_session: AsyncSession, auth_headers, other_user):
    project = await create_project(client, auth_headers)
    await client.post(
        "/api/user-projects",
        json={"user_id": other_user.id, "project_id": project["id"]},
        headers=auth_headers
    )

    response = await client.put(
        "/api/user-projects",
        json={"user_id": other_user.id, "project_id": project["id"], "role": "editor"},
        headers=auth_headers
    )

    assert response.status_code == 200
    assert response.json()["role"] == "editor"


@pytest.mark.asyncio
async def test_removed_last_admin_is_denied(client: AsyncClient, db_session: AsyncSession, test_user, auth_headers):
    """Removing the only admin is allowed and leaves the former admin locked out."""
    project = await create_project(client, auth_headers)

    removed = await client.delete(f"/api/user-projects/{test_user.id}/{project['id']}", headers=auth_headers)
    assert removed.status_code == 200

    for method, path in [
        ("GET", f"/api/projects/{project['id']}"),
        ("GET", f"/api/projects/{project['id']}/secrets"),
        ("PUT", f"/api/projects/{project['id']}"),
        ("DELETE", f"/api/projects/{project['id']}"),
    ]:
        kwargs = {"json": {"name": "x"}} if method == "PUT" else {}
        response = await client.request(method, path, headers=auth_headers, **kwargs)
        assert response.status_code == 403, (method, path)

    secret = await client.post(
        "/api/secrets",
        json={"name": "LATE", "value": "v", "project_id": project["id"]},
        headers=auth_headers
    )
    assert secret.status_code == 403


@pytest.mark.asyncio
async def test_membership_changes_are_recorded(
    client: AsyncClient, db_session: AsyncSession, auth_headers, other_user
):
    project = await create_project(client, auth_headers)
    await client.post(
        "/api/user-projects",
        json={"user_id": other_user.id, "project_id": project["id"], "role": "viewer"},
        headers=auth_headers
    )
    await client.delete(f"/api/user-projects/{other_user.id}/{project['id']}", headers=auth_headers)

    result = await db_session.execute(select(ActivityLog).order_by(ActivityLog.id))
    assert [log.action for log in result.scalars().all()] == ["created", "assigned", "updated"]


@pytest.mark.asyncio
async def test_project_activity_follows_secret_lifecycle(
    client: AsyncClient, db_session: AsyncSession, auth_headers
):
    project = await create_project(client, auth_headers)
    created = await client.post(
        "/api/secrets",
        json={"name": "TOKEN", "value": "v", "project_id": project["id"]},
        headers=auth_headers
    )
    secret_id = created.json()["id"]

    before = await client.get(f"/api/projects/{project['id']}/activity-logs", headers=auth_headers)
    assert ("secret", secret_id) in {(e["resource_type"], e["resource_id"]) for e in before.json()}

    await client.delete(f"/api/secrets/{secret_id}", headers=auth_headers)

    after = await client.get(f"/api/projects/{project['id']}/activity-logs", headers=auth_headers)
    assert after.status_code == 200
    assert all(e["resource_type"] == "project" for e in after.json())


@pytest.mark.asyncio
async def test_project_activity_requires_membership(client: AsyncClient, db_session: AsyncSession, auth_headers):
    project = await create_test_project(db_session)

    response = await client.get(f"/api/projects/{project.id}/activity-logs", headers=auth_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_listing_project_secrets_is_recorded(
    client: AsyncClient, db_session: AsyncSession, test_user, auth_headers, credential_store
):
    project = await create_test_project(db_session)
    await add_member(db_session, test_user, project, ProjectRole.VIEWER)
    await create_test_secret(db_session, project, credential_store)

    response = await client.get(f"/api/projects/{project.id}/secrets", headers=auth_headers)

    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["DB_PASSWORD"]
    result = await db_session.execute(select(ActivityLog))
    log = result.scalar_one()
    assert (log.action, log.resource_type, log.resource_id) == ("viewed", "project", project.id)


@pytest.mark.asyncio
async def test_delete_project_records_each_removed_secret(
    client: AsyncClient, db_session: AsyncSession, auth_headers, credential_store
):
    """Secrets removed before a failure stay recorded even though the project survives."""
    project = await create_project(client, auth_headers, "Payments")
    created = {}
    for name in ("A", "B"):
        response = await client.post(
            "/api/secrets",
            json={"name": name, "value": "v", "project_id": project["id"]},
            headers=auth_headers
        )
        created[name] = response.json()
    credential_store.fail_delete_paths.add(created["B"]["ssm_path"])

    response = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers)

    assert response.status_code == 500
    remaining = await db_session.execute(select(Secret.name))
    assert remaining.scalars().all() == ["B"]
    result = await db_session.execute(
        select(ActivityLog).where(ActivityLog.action == "deleted")
    )
    deleted = [(log.resource_type, log.resource_id) for log in result.scalars().all()]
    assert deleted == [("secret", created["A"]["id"])]


@pytest.mark.asyncio
async def test_delete_project_records_secrets_and_project(
    client: AsyncClient, db_session: AsyncSession, auth_headers
):
    project = await create_project(client, auth_headers)
    created = await client.post(
        "/api/secrets",
        json={"name": "A", "value": "v", "project_id": project["id"]},
        headers=auth_headers
    )

    response = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers)

    assert response.status_code == 200
    result = await db_session.execute(
        select(ActivityLog).where(ActivityLog.action == "deleted").order_by(ActivityLog.id)
    )
    deleted = [(log.resource_type, log.resource_id) for log in result.scalars().all()]
    assert deleted == [("secret", created.json()["id"]), ("project", project["id"])]
