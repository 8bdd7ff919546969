"""
List queries must return exactly the rows the item-level rules admit.

Every actor is checked against every row, trashed rows included, so a rule
change that touches only one side shows up here.
"""
from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from app.models.enums import Role, TaskStatus, TaskPriority
from app.models.project import Project
from app.models.tasks import Task
from app.policies.engine import Action, decide
from app.services.query import (
    ProjectFilters, TaskFilters, TrashedFilter, build_project_query, build_task_query,
)


@pytest.fixture
async def graph(db, make_user, make_project, make_task):
    admin = await make_user(Role.ADMIN)
    m1 = await make_user(Role.MANAGER)
    m2 = await make_user(Role.MANAGER)
    u1 = await make_user()
    u2 = await make_user()
    u3 = await make_user()
    plain_owner = await make_user()

    p1 = await make_project(m1, members=[u1, u2])
    p2 = await make_project(m2, members=[u1])
    p3 = await make_project(plain_owner, members=[u3])
    p4 = await make_project(m1)

    await make_task(p1, m1)
    await make_task(p1, m1, assignee=u1, priority=TaskPriority.HIGH)
    await make_task(p1, m1, assignee=u2, status=TaskStatus.DONE)
    await make_task(p2, m2, assignee=u1)
    await make_task(p2, m2)
    await make_task(p3, plain_owner, assignee=u3)
    await make_task(p3, plain_owner)
    await make_task(p4, m1)
    trashed = await make_task(p1, m1, assignee=u1)
    trashed.deleted_at = datetime.now(timezone.utc)
    await db.commit()

    return [admin, m1, m2, u1, u2, u3, plain_owner]


async def fetch(db, query):
    result = await db.execute(query.execution_options(populate_existing=True))
    return result.scalars().all()


async def test_task_list_matches_view_rule(db, graph):
    every_task = await fetch(db, select(Task))
    for actor in graph:
        listed = {t.task_id for t in await fetch(db, build_task_query(actor, TaskFilters(trashed=TrashedFilter.WITH)))}
        expected = {t.task_id for t in every_task if decide(actor, Action.VIEW, t).allowed}
        assert listed == expected, f"{actor.email} ({actor.role})"


async def test_editable_list_matches_update_rule(db, graph):
    every_task = await fetch(db, select(Task))
    for actor in graph:
        filters = TaskFilters(trashed=TrashedFilter.WITH, editable=True)
        listed = {t.task_id for t in await fetch(db, build_task_query(actor, filters))}
        expected = {
            t.task_id for t in every_task
            if decide(actor, Action.VIEW, t).allowed and decide(actor, Action.UPDATE, t).allowed
        }
        assert listed == expected, f"{actor.email} ({actor.role})"


async def test_project_list_matches_view_rule(db, graph):
    every_project = await fetch(db, select(Project))
    for actor in graph:
        listed = {p.project_id for p in await fetch(db, build_project_query(actor, ProjectFilters()))}
        expected = {p.project_id for p in every_project if decide(actor, Action.VIEW, p).allowed}
        assert listed == expected, f"{actor.email} ({actor.role})"


async def test_plain_user_sees_projects_they_manage(db, graph):
    plain_owner = graph[-1]
    listed = await fetch(db, build_project_query(plain_owner, ProjectFilters()))
    assert [p.manager_id for p in listed] == [plain_owner.user_id]


async def test_plain_user_sees_tasks_of_member_projects_only(db, graph):
    u3 = graph[5]
    listed = await fetch(db, build_task_query(u3))
    assert len(listed) == 2
    assert all(t.project.has_member(u3) for t in listed)
