from conftest import PASSWORD, auth, count_rows, reload
from app.models.comment import Comment
from app.models.enums import Role
from app.models.project import project_members
from app.models.tasks import Task
from app.models.user import User


async def test_register_and_login(client):
    response = await client.post(
        "/register",
        json={"name": "Ada", "email": "ada@example.com", "password": "s3cret-pass", "role": "admin"},
    )
    assert response.status_code == 201
    # Self-registration ignores a requested role
    assert response.json()["role"] == "user"

    response = await client.post("/token", data={"username": "ada@example.com", "password": "s3cret-pass"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.json()["email"] == "ada@example.com"


async def test_duplicate_email_rejected(client, make_user):
    existing = await make_user()
    response = await client.post(
        "/register", json={"name": "Dup", "email": existing.email, "password": "another-pass"}
    )
    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "email"


async def test_bad_credentials(client, make_user):
    user = await make_user()
    response = await client.post("/token", data={"username": user.email, "password": "wrong-password"})
    assert response.status_code == 401
    response = await client.post("/token", data={"username": user.email, "password": PASSWORD})
    assert response.status_code == 200


async def test_invalid_token(client):
    response = await client.get("/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


async def test_user_management_is_admin_only(client, make_user):
    admin = await make_user(Role.ADMIN)
    user = await make_user()
    payload = {"name": "New Manager", "email": "nm@example.com", "password": "password123", "role": "manager"}

    assert (await client.post("/users", json=payload, headers=auth(user))).status_code == 403
    response = await client.post("/users", json=payload, headers=auth(admin))
    assert response.status_code == 201
    assert response.json()["role"] == "manager"
    new_id = response.json()["user_id"]

    assert (await client.put(f"/users/{new_id}", json={"role": "user"}, headers=auth(user))).status_code == 403
    response = await client.put(f"/users/{new_id}", json={"role": "user"}, headers=auth(admin))
    assert response.json()["role"] == "user"

    assert (await client.get(f"/users/{new_id}", headers=auth(user))).status_code == 403
    response = await client.get(f"/users/{new_id}", headers=auth(admin))
    assert response.status_code == 200
    assert response.json()["email"] == "nm@example.com"
    assert (await client.get("/users/999999", headers=auth(admin))).status_code == 404


async def test_list_users_with_filters(client, make_user):
    admin = await make_user(Role.ADMIN, name="Root")
    await make_user(Role.MANAGER, name="Maria Keller")
    viewer = await make_user(name="Sam")

    response = await client.get("/users", headers=auth(viewer))
    assert response.json()["meta"]["total"] == 3
    assert len(response.json()["data"]) == 3

    response = await client.get("/users", params={"filter[role]": "manager"}, headers=auth(viewer))
    assert [u["name"] for u in response.json()["data"]] == ["Maria Keller"]

    response = await client.get("/users", params={"filter[name]": "roo"}, headers=auth(viewer))
    assert [u["user_id"] for u in response.json()["data"]] == [admin.user_id]


async def test_list_users_sorted_and_paginated(client, make_user):
    viewer = await make_user(name="Carla")
    await make_user(name="Anna")
    await make_user(name="Bruno")

    response = await client.get("/users", params={"sort": "name", "per_page": 2}, headers=auth(viewer))
    body = response.json()
    assert [u["name"] for u in body["data"]] == ["Anna", "Bruno"]
    assert body["meta"] == {"page": 1, "per_page": 2, "total": 3}

    response = await client.get("/users", params={"sort": "-name", "page": 2, "per_page": 2}, headers=auth(viewer))
    assert [u["name"] for u in response.json()["data"]] == ["Anna"]

    response = await client.get("/users", params={"sort": "password"}, headers=auth(viewer))
    assert response.status_code == 422


async def test_delete_user_cleans_up(client, db, make_user, make_project, make_task, make_comment):
    admin = await make_user(Role.ADMIN)
    manager = await make_user(Role.MANAGER)
    leaving = await make_user()
    project = await make_project(manager, members=[leaving])
    task = await make_task(project, manager, assignee=leaving)
    await make_comment(leaving, task)

    response = await client.delete(f"/users/{leaving.user_id}", headers=auth(admin))
    assert response.status_code == 204

    assert await reload(db, User, leaving.user_id) is None
    assert (await reload(db, Task, task.task_id)).assigned_to_id is None
    assert await count_rows(db, Comment, Comment.user_id == leaving.user_id) == 0
    rows = await db.execute(project_members.select().where(project_members.c.user_id == leaving.user_id))
    assert rows.all() == []


async def test_cannot_delete_user_who_manages_projects(client, make_user, make_project):
    admin = await make_user(Role.ADMIN)
    manager = await make_user(Role.MANAGER)
    await make_project(manager)

    response = await client.delete(f"/users/{manager.user_id}", headers=auth(admin))
    assert response.status_code == 422
