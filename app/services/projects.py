import logging
from datetime import date

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFound, ValidationFailed
from app.models.comment import Comment
from app.models.enums import CommentableType
from app.models.project import Project, project_members
from app.models.tasks import Task
from app.models.user import User
from app.policies.engine import Action, authorize
from app.schemas.project import ProjectCreate, ProjectUpdate
from app.services.query import ProjectFilters, build_project_query, paginate

logger = logging.getLogger(__name__)


async def get_project(db: AsyncSession, project_id: int) -> Project:
    result = await db.execute(
        select(Project)
        .where(Project.project_id == project_id)
        .execution_options(populate_existing=True)
    )
    project = result.scalars().first()
    if not project:
        raise NotFound("Project not found")
    return project


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.user_id == user_id))
    return result.scalars().first()


async def count_related(db: AsyncSession, project_ids: list[int]) -> dict[int, tuple[int, int]]:
    """(members, active tasks) per project id."""
    if not project_ids:
        return {}

    members = await db.execute(
        select(project_members.c.project_id, func.count())
        .where(project_members.c.project_id.in_(project_ids))
        .group_by(project_members.c.project_id)
    )
    tasks = await db.execute(
        select(Task.project_id, func.count())
        .where(Task.project_id.in_(project_ids), Task.deleted_at.is_(None))
        .group_by(Task.project_id)
    )
    member_counts = dict(members.all())
    task_counts = dict(tasks.all())
    return {pid: (member_counts.get(pid, 0), task_counts.get(pid, 0)) for pid in project_ids}


async def list_projects(
    db: AsyncSession,
    actor: User,
    filters: ProjectFilters,
    sort: str | None,
    page: int,
    per_page: int,
) -> tuple[list[Project], int]:
    query = build_project_query(actor, filters, sort)
    total = await db.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    result = await db.execute(paginate(query, page, per_page))
    return list(result.scalars().all()), total


async def _check_manager(db: AsyncSession, manager_id: int):
    if await get_user(db, manager_id) is None:
        raise ValidationFailed("The selected manager does not exist.", field="manager_id")


async def create_project(db: AsyncSession, project_data: ProjectCreate, actor: User) -> Project:
    authorize(actor, Action.CREATE, resource=Project)

    if project_data.deadline <= date.today():
        raise ValidationFailed("The deadline must be a date after today.", field="deadline")

    data = project_data.model_dump()
    if data.get("manager_id") is None:
        data["manager_id"] = actor.user_id
    else:
        await _check_manager(db, data["manager_id"])

    project = Project(**data)
    db.add(project)
    await db.flush()
    logger.info("Project %s created by user %s", project.project_id, actor.user_id)
    return project


async def update_project(db: AsyncSession, project: Project, update_data: ProjectUpdate, actor: User) -> Project:
    authorize(actor, Action.UPDATE, project)

    changes = update_data.model_dump(exclude_unset=True)
    for required in ("title", "deadline", "status", "manager_id"):
        if required in changes and changes[required] is None:
            raise ValidationFailed(f"The {required} field cannot be null.", field=required)

    if "deadline" in changes and changes["deadline"] != project.deadline and changes["deadline"] <= date.today():
        raise ValidationFailed("The deadline must be a date after today.", field="deadline")
    if "manager_id" in changes and changes["manager_id"] != project.manager_id:
        await _check_manager(db, changes["manager_id"])

    for key, value in changes.items():
        setattr(project, key, value)

    await db.flush()
    logger.info("Project %s updated by user %s: %s", project.project_id, actor.user_id, sorted(changes))
    return project


async def delete_project(db: AsyncSession, project: Project, actor: User):
    """
    Delete a project together with all of its tasks (active and trashed),
    the comments on the project and on those tasks, and its memberships.
    """
    authorize(actor, Action.DELETE, project)

    project_id = project.project_id
    task_ids = select(Task.task_id).where(Task.project_id == project_id).scalar_subquery()

    comments = await db.execute(
        delete(Comment).where(
            (
                (Comment.commentable_type == CommentableType.PROJECT)
                & (Comment.commentable_id == project_id)
            )
            | (
                (Comment.commentable_type == CommentableType.TASK)
                & Comment.commentable_id.in_(task_ids)
            )
        ).execution_options(synchronize_session=False)
    )
    tasks = await db.execute(delete(Task).where(Task.project_id == project_id))
    # Membership rows go with the loaded members collection
    await db.delete(project)
    await db.flush()

    logger.info(
        "Project %s deleted by user %s (%s tasks, %s comments)",
        project_id, actor.user_id, tasks.rowcount, comments.rowcount,
    )


async def add_member(db: AsyncSession, project: Project, user_id: int, actor: User) -> Project:
    """Add ``user_id`` to the project. Adding an existing member is a no-op."""
    authorize(actor, Action.UPDATE, project)

    user = await get_user(db, user_id)
    if user is None:
        raise ValidationFailed("The selected user does not exist.", field="user_id")

    if not project.has_member(user):
        project.members.append(user)
        await db.flush()
        logger.info("User %s added to project %s by user %s", user_id, project.project_id, actor.user_id)
    return project


async def remove_member(db: AsyncSession, project: Project, user_id: int, actor: User) -> Project:
    authorize(actor, Action.UPDATE, project)

    user = await get_user(db, user_id)
    if user is None:
        raise NotFound("User not found")

    if project.has_member(user):
        project.members = [m for m in project.members if m.user_id != user_id]
        await db.flush()
        logger.info("User %s removed from project %s by user %s", user_id, project.project_id, actor.user_id)
    return project
