from datetime import date, timedelta

from conftest import auth, count_rows, reload
from app.models.email import EmailLog
from app.models.enums import Role, TaskStatus, TaskPriority
from app.models.tasks import Task


def ids(response):
    return [t["task_id"] for t in response.json()["data"]]


async def test_requires_authentication(client):
    response = await client.get("/tasks")
    assert response.status_code == 401


async def test_list_filters_by_status_and_priority(client, make_user, make_project, make_task):
    manager = await make_user(Role.MANAGER)
    project = await make_project(manager)
    match = await make_task(project, manager, status=TaskStatus.TODO, priority=TaskPriority.HIGH)
    await make_task(project, manager, status=TaskStatus.TODO, priority=TaskPriority.LOW)
    await make_task(project, manager, status=TaskStatus.DONE, priority=TaskPriority.HIGH)

    response = await client.get(
        "/tasks",
        params={"filter[status]": "todo", "filter[priority]": "high"},
        headers=auth(manager),
    )
    assert response.status_code == 200
    assert ids(response) == [match.task_id]
    assert response.json()["meta"]["total"] == 1


async def test_title_filter_is_partial_and_case_insensitive(client, make_user, make_project, make_task):
    manager = await make_user(Role.MANAGER)
    project = await make_project(manager)
    hit = await make_task(project, manager, title="Write Release Notes")
    await make_task(project, manager, title="Fix login")

    response = await client.get("/tasks", params={"filter[title]": "release"}, headers=auth(manager))
    assert ids(response) == [hit.task_id]


async def test_sort_by_priority_rank(client, make_user, make_project, make_task):
    manager = await make_user(Role.MANAGER)
    project = await make_project(manager)
    low = await make_task(project, manager, priority=TaskPriority.LOW)
    high = await make_task(project, manager, priority=TaskPriority.HIGH)
    medium = await make_task(project, manager, priority=TaskPriority.MEDIUM)

    response = await client.get("/tasks", params={"sort": "-priority"}, headers=auth(manager))
    assert ids(response) == [high.task_id, medium.task_id, low.task_id]


async def test_sort_outside_allow_list_is_rejected(client, make_user):
    manager = await make_user(Role.MANAGER)
    response = await client.get("/tasks", params={"sort": "deleted_at"}, headers=auth(manager))
    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "sort"


async def test_pagination(client, make_user, make_project, make_task):
    manager = await make_user(Role.MANAGER)
    project = await make_project(manager)
    for _ in range(5):
        await make_task(project, manager)

    response = await client.get("/tasks", params={"page": 2, "per_page": 2}, headers=auth(manager))
    body = response.json()
    assert len(body["data"]) == 2
    assert body["meta"] == {"page": 2, "per_page": 2, "total": 5}


async def test_member_creates_task_in_own_project(client, db, make_user, make_project):
    manager = await make_user(Role.MANAGER)
    member = await make_user()
    project = await make_project(manager, members=[member])

    response = await client.post(
        "/tasks",
        json={
            "title": "<b>Draft</b> plan",
            "project_id": project.project_id,
            "due_date": str(date.today() + timedelta(days=3)),
            "assigned_to_id": member.user_id,
        },
        headers=auth(member),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Draft plan"
    assert body["status"] == "todo"
    assert body["priority"] == "medium"
    assert body["created_by_id"] == member.user_id
    assert body["assignee"]["user_id"] == member.user_id

    assert await count_rows(db, EmailLog, EmailLog.task_id == body["task_id"]) == 1


async def test_outsider_cannot_create_task(client, make_user, make_project):
    manager = await make_user(Role.MANAGER)
    outsider = await make_user()
    project = await make_project(manager)

    response = await client.post(
        "/tasks",
        json={"title": "Nope", "project_id": project.project_id, "due_date": str(date.today())},
        headers=auth(outsider),
    )
    assert response.status_code == 403


async def test_create_validation(client, make_user, make_project):
    manager = await make_user(Role.MANAGER)
    stranger = await make_user()
    project = await make_project(manager)
    base = {"title": "T", "project_id": project.project_id, "due_date": str(date.today())}

    missing_project = await client.post("/tasks", json={**base, "project_id": 9999}, headers=auth(stranger))
    assert missing_project.status_code == 422
    assert missing_project.json()["detail"]["field"] == "project_id"

    past = await client.post(
        "/tasks", json={**base, "due_date": str(date.today() - timedelta(days=1))}, headers=auth(manager)
    )
    assert past.status_code == 422
    assert past.json()["detail"]["field"] == "due_date"

    not_member = await client.post(
        "/tasks", json={**base, "assigned_to_id": stranger.user_id}, headers=auth(manager)
    )
    assert not_member.status_code == 422
    assert not_member.json()["detail"]["field"] == "assigned_to_id"


async def test_show_requires_view(client, make_user, make_project, make_task):
    manager = await make_user(Role.MANAGER)
    outsider = await make_user()
    project = await make_project(manager)
    task = await make_task(project, manager)

    assert (await client.get(f"/tasks/{task.task_id}", headers=auth(manager))).status_code == 200
    assert (await client.get(f"/tasks/{task.task_id}", headers=auth(outsider))).status_code == 403
    assert (await client.get("/tasks/9999", headers=auth(manager))).status_code == 404


async def test_assignment_walkthrough(client, db, make_user, make_project, make_task):
    m = await make_user(Role.MANAGER)
    u = await make_user()
    u2 = await make_user()
    p = await make_project(m, members=[u, u2])
    t = await make_task(p, m)

    response = await client.patch(f"/tasks/{t.task_id}", json={"status": "in_progress"}, headers=auth(u))
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"
    assert response.json()["assigned_to_id"] is None

    response = await client.patch(f"/tasks/{t.task_id}", json={"assigned_to_id": u.user_id}, headers=auth(u))
    assert response.status_code == 200
    assert response.json()["assigned_to_id"] == u.user_id

    response = await client.patch(f"/tasks/{t.task_id}", json={"assigned_to_id": u2.user_id}, headers=auth(u2))
    assert response.status_code == 403

    stored = await reload(db, Task, t.task_id)
    assert stored.assigned_to_id == u.user_id
    assert stored.status == TaskStatus.IN_PROGRESS
    assert await count_rows(db, EmailLog, EmailLog.task_id == t.task_id) == 1


async def test_manager_cannot_update_foreign_project_task(client, make_user, make_project, make_task):
    owner = await make_user(Role.MANAGER)
    other = await make_user(Role.MANAGER)
    project = await make_project(owner)
    task = await make_task(project, owner)

    response = await client.patch(f"/tasks/{task.task_id}", json={"title": "x"}, headers=auth(other))
    assert response.status_code == 403


async def test_editable_filter(client, make_user, make_project, make_task):
    m = await make_user(Role.MANAGER)
    u = await make_user()
    u2 = await make_user()
    p = await make_project(m, members=[u, u2])
    open_task = await make_task(p, m)
    own = await make_task(p, m, assignee=u)
    await make_task(p, m, assignee=u2)

    response = await client.get("/tasks", params={"filter[editable]": "true"}, headers=auth(u))
    assert sorted(ids(response)) == sorted([open_task.task_id, own.task_id])


async def test_moving_task_requires_rights_in_destination(client, make_user, make_project, make_task):
    m = await make_user(Role.MANAGER)
    u = await make_user()
    home = await make_project(m, members=[u])
    elsewhere = await make_project(m)
    task = await make_task(home, m, assignee=u)

    response = await client.patch(
        f"/tasks/{task.task_id}", json={"project_id": elsewhere.project_id}, headers=auth(u)
    )
    assert response.status_code == 403


async def test_export_csv_uses_visible_rows(client, make_user, make_project, make_task):
    m = await make_user(Role.MANAGER)
    u = await make_user()
    mine = await make_project(m, members=[u], title="Visible")
    hidden = await make_project(m, title="Hidden")
    await make_task(mine, m, assignee=u, title="Shown task")
    await make_task(hidden, m, title="Secret task")

    response = await client.get("/tasks/export", headers=auth(u))
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0] == "ID,Title,Status,Priority,Assigned User Name,Project Title,Due Date"
    assert len(lines) == 2
    assert "Shown task" in lines[1] and "Visible" in lines[1]
