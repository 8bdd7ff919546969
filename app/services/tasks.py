import logging
from datetime import date

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFound, ValidationFailed
from app.models.project import Project
from app.models.tasks import Task
from app.models.user import User
from app.policies.engine import Action, authorize
from app.schemas.task import TaskCreate, TaskUpdate
from app.services.query import TrashedFilter, TaskFilters, apply_trashed, build_task_query, paginate

logger = logging.getLogger(__name__)


async def get_task(db: AsyncSession, task_id: int, trashed: TrashedFilter = TrashedFilter.WITHOUT) -> Task:
    """Load a task with its project, manager and members; trashed tasks only when asked."""
    query = apply_trashed(select(Task).where(Task.task_id == task_id), Task, trashed)
    result = await db.execute(query.execution_options(populate_existing=True))
    task = result.scalars().first()
    if not task:
        raise NotFound("Task not found")
    return task


async def list_tasks(
    db: AsyncSession,
    actor: User,
    filters: TaskFilters,
    sort: str | None,
    page: int,
    per_page: int,
) -> tuple[list[Task], int]:
    query = build_task_query(actor, filters, sort)
    total = await db.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    result = await db.execute(paginate(query, page, per_page))
    return list(result.scalars().all()), total


async def _load_project(db: AsyncSession, project_id: int | None) -> Project | None:
    if project_id is None:
        return None
    result = await db.execute(select(Project).where(Project.project_id == project_id))
    return result.scalars().first()


def _check_assignee(project: Project, assigned_to_id: int | None):
    if assigned_to_id is None:
        return
    if not any(m.user_id == assigned_to_id for m in project.members):
        raise ValidationFailed("The assigned user must be a member of the project.", field="assigned_to_id")


async def create_task(db: AsyncSession, task_data: TaskCreate, actor: User) -> Task:
    project = await _load_project(db, task_data.project_id)
    authorize(actor, Action.CREATE, resource=Task, context=project)

    if project is None:
        raise ValidationFailed("The selected project does not exist.", field="project_id")
    if task_data.due_date < date.today():
        raise ValidationFailed("The due date cannot be in the past.", field="due_date")
    _check_assignee(project, task_data.assigned_to_id)

    new_task = Task(
        **task_data.model_dump(),
        created_by_id=actor.user_id,
    )
    db.add(new_task)
    await db.flush()
    logger.info("Task %s created in project %s by user %s", new_task.task_id, project.project_id, actor.user_id)
    return new_task


async def update_task(db: AsyncSession, task: Task, update_data: TaskUpdate, actor: User) -> Task:
    """
    Apply a partial update. Only fields present in the request are touched,
    so an explicit ``assigned_to_id: null`` unassigns while an absent one
    leaves the assignee alone.
    """
    authorize(actor, Action.UPDATE, task)

    changes = update_data.model_dump(exclude_unset=True)
    for required in ("title", "status", "priority", "project_id"):
        if required in changes and changes[required] is None:
            raise ValidationFailed(f"The {required} field cannot be null.", field=required)

    project = task.project
    if "project_id" in changes and changes["project_id"] != task.project_id:
        project = await _load_project(db, changes["project_id"])
        if project is None:
            raise ValidationFailed("The selected project does not exist.", field="project_id")
        authorize(actor, Action.CREATE, resource=Task, context=project)

    if "due_date" in changes and changes["due_date"] is not None and changes["due_date"] < date.today():
        raise ValidationFailed("The due date cannot be in the past.", field="due_date")

    # Moving projects revalidates the current assignee against the new members
    assignee_id = changes.get("assigned_to_id", task.assigned_to_id)
    if "assigned_to_id" in changes or project is not task.project:
        _check_assignee(project, assignee_id)

    for key, value in changes.items():
        setattr(task, key, value)

    await db.flush()
    logger.info("Task %s updated by user %s: %s", task.task_id, actor.user_id, sorted(changes))
    return task
