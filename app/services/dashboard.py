from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import Role, TaskStatus, TaskPriority
from app.models.project import Project, project_members
from app.models.tasks import Task
from app.models.user import User


async def get_stats(db: AsyncSession, actor: User) -> dict:
    """
    Admins get global counts. Everyone else gets the tasks assigned to them
    and the projects they are a member of. Trashed tasks are not counted.
    """
    task_scope = [Task.deleted_at.is_(None)]
    project_query = select(func.count()).select_from(Project)

    if Role(actor.role) != Role.ADMIN:
        task_scope.append(Task.assigned_to_id == actor.user_id)
        project_query = project_query.where(
            Project.project_id.in_(
                select(project_members.c.project_id).where(project_members.c.user_id == actor.user_id)
            )
        )

    by_status = dict((await db.execute(
        select(Task.status, func.count()).where(*task_scope).group_by(Task.status)
    )).all())
    by_priority = dict((await db.execute(
        select(Task.priority, func.count()).where(*task_scope).group_by(Task.priority)
    )).all())

    total_tasks = sum(by_status.values())
    done = by_status.get(TaskStatus.DONE, 0)

    return {
        "total_tasks": total_tasks,
        "total_projects": await db.scalar(project_query),
        "tasks_by_status": {s.value: by_status.get(s, 0) for s in TaskStatus},
        "tasks_by_priority": {p.value: by_priority.get(p, 0) for p in TaskPriority},
        "completion_rate": round(done / total_tasks * 100, 2) if total_tasks else 0,
    }
