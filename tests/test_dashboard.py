from datetime import datetime, timezone

from conftest import auth
from app.models.enums import Role, TaskStatus, TaskPriority


async def test_stats_for_admin_and_member(client, make_user, make_project, make_task):
    admin = await make_user(Role.ADMIN)
    manager = await make_user(Role.MANAGER)
    member = await make_user()
    project = await make_project(manager, members=[member])
    await make_project(manager)

    await make_task(project, manager, assignee=member, status=TaskStatus.DONE, priority=TaskPriority.HIGH)
    await make_task(project, manager, assignee=member, status=TaskStatus.TODO)
    await make_task(project, manager, assignee=member, status=TaskStatus.REVIEW)
    await make_task(project, manager, status=TaskStatus.TODO)
    await make_task(project, manager, assignee=member, deleted_at=datetime.now(timezone.utc))

    response = await client.get("/dashboard/stats", headers=auth(admin))
    stats = response.json()
    assert stats["total_tasks"] == 4
    assert stats["total_projects"] == 2
    assert stats["tasks_by_status"]["todo"] == 2
    assert stats["completion_rate"] == 25.0

    response = await client.get("/dashboard/stats", headers=auth(member))
    stats = response.json()
    assert stats["total_tasks"] == 3
    assert stats["total_projects"] == 1
    assert stats["tasks_by_priority"] == {"low": 0, "medium": 2, "high": 1}
    assert stats["completion_rate"] == 33.33
