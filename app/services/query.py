"""
List queries scoped to what the actor may see.

Every list starts from ``visibility_predicate`` for the resource and then
narrows with the caller's explicit filters, so a listed row is always one the
item-level ``view`` rule would admit.
"""
import enum
from dataclasses import dataclass

from sqlalchemy import select, case

from app.errors import ValidationFailed
from app.models.enums import Role, TaskStatus, TaskPriority, ProjectStatus, PRIORITY_RANK
from app.models.project import Project
from app.models.tasks import Task
from app.models.user import User
from app.policies.engine import Action, build_predicate, visibility_predicate


class TrashedFilter(str, enum.Enum):
    WITHOUT = "without"  # active only (default)
    WITH = "with"        # active and trashed
    ONLY = "only"        # trashed only


def apply_trashed(query, model, mode: TrashedFilter):
    if mode == TrashedFilter.WITHOUT:
        return query.where(model.deleted_at.is_(None))
    if mode == TrashedFilter.ONLY:
        return query.where(model.deleted_at.is_not(None))
    return query


priority_rank = case(
    *((Task.priority == priority, rank) for priority, rank in PRIORITY_RANK.items()),
    else_=0,
)

TASK_SORTS = {
    "due_date": Task.due_date,
    "priority": priority_rank,
    "created_at": Task.created_at,
    "title": Task.title,
}

PROJECT_SORTS = {
    "deadline": Project.deadline,
    "created_at": Project.created_at,
}

USER_SORTS = {
    "name": User.name,
    "created_at": User.created_at,
}


def parse_sort(raw: str | None, allowed: dict) -> list:
    """
    Turn ``"-due_date,priority"`` into ORDER BY clauses.

    Only names in ``allowed`` are accepted; anything else is rejected rather
    than passed to the database.
    """
    if not raw:
        return []

    clauses = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        descending = part.startswith("-")
        name = part.lstrip("-")
        column = allowed.get(name)
        if column is None:
            raise ValidationFailed(
                f"Requested sort '{name}' is not allowed. Allowed sorts are {', '.join(sorted(allowed))}.",
                field="sort",
            )
        clauses.append(column.desc() if descending else column.asc())
    return clauses


@dataclass
class TaskFilters:
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    project_id: int | None = None
    assigned_to: int | None = None
    title: str | None = None
    trashed: TrashedFilter = TrashedFilter.WITHOUT
    editable: bool = False


@dataclass
class ProjectFilters:
    status: ProjectStatus | None = None
    title: str | None = None


@dataclass
class UserFilters:
    role: Role | None = None
    name: str | None = None
    email: str | None = None


def build_task_query(actor, filters: TaskFilters | None = None, sort: str | None = None):
    filters = filters or TaskFilters()

    query = select(Task).where(visibility_predicate(actor, Task))
    query = apply_trashed(query, Task, filters.trashed)

    if filters.status is not None:
        query = query.where(Task.status == filters.status)
    if filters.priority is not None:
        query = query.where(Task.priority == filters.priority)
    if filters.project_id is not None:
        query = query.where(Task.project_id == filters.project_id)
    if filters.assigned_to is not None:
        query = query.where(Task.assigned_to_id == filters.assigned_to)
    if filters.title:
        query = query.where(Task.title.icontains(filters.title, autoescape=True))
    if filters.editable:
        query = query.where(build_predicate(actor, Action.UPDATE, Task))

    return query.order_by(*parse_sort(sort, TASK_SORTS), Task.task_id)


def build_project_query(actor, filters: ProjectFilters | None = None, sort: str | None = None):
    filters = filters or ProjectFilters()

    query = select(Project).where(visibility_predicate(actor, Project))

    if filters.status is not None:
        query = query.where(Project.status == filters.status)
    if filters.title:
        query = query.where(Project.title.icontains(filters.title, autoescape=True))

    return query.order_by(*parse_sort(sort, PROJECT_SORTS), Project.project_id)


def paginate(query, page: int, per_page: int):
    return query.limit(per_page).offset((page - 1) * per_page)


def build_user_query(filters: UserFilters | None = None, sort: str | None = None):
    """Account directory; any authenticated user may browse it."""
    filters = filters or UserFilters()

    query = select(User)
    if filters.role is not None:
        query = query.where(User.role == filters.role)
    if filters.name:
        query = query.where(User.name.icontains(filters.name, autoescape=True))
    if filters.email:
        query = query.where(User.email.icontains(filters.email, autoescape=True))

    return query.order_by(*parse_sort(sort, USER_SORTS), User.user_id)
