from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db, get_current_user, Pagination
from app.models.enums import TaskStatus, TaskPriority, CommentableType
from app.models.tasks import Task as TaskModel
from app.models.user import User as UserModel
from app.policies.engine import Action, authorize
from app.schemas.comment import Comment as CommentSchema, CommentCreate
from app.schemas.common import Page, PageMeta
from app.schemas.task import TaskCreate, TaskUpdate, Task as TaskSchema
from app.services import comments as comment_service
from app.services import tasks as task_service
from app.services.export import generate_tasks_csv
from app.services.lifecycle import TaskState, transition
from app.services.notifications import notify_task_assigned
from app.services.query import TaskFilters, TrashedFilter

router = APIRouter(prefix="/tasks", tags=["tasks"])


def task_filters(
    status_filter: TaskStatus | None = Query(None, alias="filter[status]"),
    priority: TaskPriority | None = Query(None, alias="filter[priority]"),
    project_id: int | None = Query(None, alias="filter[project_id]"),
    assigned_to: int | None = Query(None, alias="filter[assigned_to]"),
    title: str | None = Query(None, alias="filter[title]"),
    trashed: TrashedFilter = Query(TrashedFilter.WITHOUT, alias="filter[trashed]"),
    editable: bool = Query(False, alias="filter[editable]"),
) -> TaskFilters:
    return TaskFilters(
        status=status_filter,
        priority=priority,
        project_id=project_id,
        assigned_to=assigned_to,
        title=title,
        trashed=trashed,
        editable=editable,
    )


@router.get("", response_model=Page[TaskSchema])
async def list_tasks(
    filters: TaskFilters = Depends(task_filters),
    sort: str | None = None,
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    authorize(current_user, Action.VIEW_ANY, resource=TaskModel)
    tasks, total = await task_service.list_tasks(
        db, current_user, filters, sort, pagination.page, pagination.per_page
    )
    return {
        "data": tasks,
        "meta": PageMeta(page=pagination.page, per_page=pagination.per_page, total=total),
    }


# Declared before /{task_id} so "export" is not parsed as an id
@router.get("/export")
async def export_tasks(
    filters: TaskFilters = Depends(task_filters),
    sort: str | None = None,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    authorize(current_user, Action.VIEW_ANY, resource=TaskModel)
    csv_data = await generate_tasks_csv(db, current_user, filters, sort)
    return PlainTextResponse(
        content=csv_data,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=tasks.csv"}
    )


@router.post("", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user)
):
    task = await task_service.create_task(db, task_data, current_user)
    await db.commit()
    task = await task_service.get_task(db, task.task_id)
    if task.assigned_to_id is not None:
        await notify_task_assigned(task)
    return task


@router.get("/{task_id}", response_model=TaskSchema)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    task = await task_service.get_task(db, task_id)
    authorize(current_user, Action.VIEW, task)
    return task


@router.patch("/{task_id}", response_model=TaskSchema)
async def update_task(
    task_id: int,
    update_data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    task = await task_service.get_task(db, task_id)
    previous_assignee = task.assigned_to_id
    await task_service.update_task(db, task, update_data, current_user)
    await db.commit()

    task = await task_service.get_task(db, task_id)
    if task.assigned_to_id is not None and task.assigned_to_id != previous_assignee:
        await notify_task_assigned(task)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    task = await task_service.get_task(db, task_id, TrashedFilter.WITH)
    await transition(db, task, TaskState.ACTIVE, TaskState.TRASHED, current_user)
    await db.commit()
    return None


@router.post("/{task_id}/restore", response_model=TaskSchema)
async def restore_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    task = await task_service.get_task(db, task_id, TrashedFilter.WITH)
    await transition(db, task, TaskState.TRASHED, TaskState.ACTIVE, current_user)
    await db.commit()
    return await task_service.get_task(db, task_id)


@router.delete("/{task_id}/force-delete", status_code=status.HTTP_204_NO_CONTENT)
async def force_delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    task = await task_service.get_task(db, task_id, TrashedFilter.WITH)
    await transition(db, task, TaskState.TRASHED, TaskState.PURGED, current_user)
    await db.commit()
    return None


@router.get("/{task_id}/comments", response_model=Page[CommentSchema])
async def list_task_comments(
    task_id: int,
    sort: str | None = None,
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    commentable = await comment_service.resolve_commentable(db, CommentableType.TASK, task_id)
    comments, total = await comment_service.list_comments(
        db, commentable, current_user, sort, pagination.page, pagination.per_page
    )
    return {
        "data": comments,
        "meta": PageMeta(page=pagination.page, per_page=pagination.per_page, total=total),
    }


@router.post("/{task_id}/comments", response_model=CommentSchema, status_code=status.HTTP_201_CREATED)
async def add_task_comment(
    task_id: int,
    comment_data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    commentable = await comment_service.resolve_commentable(db, CommentableType.TASK, task_id)
    comment = await comment_service.create_comment(db, commentable, comment_data.body, current_user)
    await db.commit()
    return await comment_service.get_comment(db, comment.comment_id)
