from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import get_db, get_current_user, Pagination
from app.models.enums import ProjectStatus, CommentableType
from app.models.project import Project
from app.models.user import User as UserModel
from app.policies.engine import Action, authorize
from app.schemas.comment import Comment as CommentSchema, CommentCreate
from app.schemas.common import Page, PageMeta, Message
from app.schemas.project import (
    Project as ProjectSchema, ProjectDetail, ProjectCreate, ProjectUpdate, MemberAdd,
)
from app.services import comments as comment_service
from app.services import projects as project_service
from app.services.query import ProjectFilters

router = APIRouter(prefix="/projects", tags=["projects"])


async def _with_counts(db: AsyncSession, projects, schema=ProjectSchema):
    counts = await project_service.count_related(db, [p.project_id for p in projects])
    return [
        schema.model_validate(p).model_copy(
            update={"members_count": counts[p.project_id][0], "tasks_count": counts[p.project_id][1]}
        )
        for p in projects
    ]


@router.get("", response_model=Page[ProjectSchema])
async def list_projects(
    status_filter: ProjectStatus | None = Query(None, alias="filter[status]"),
    title: str | None = Query(None, alias="filter[title]"),
    sort: str | None = None,
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    authorize(current_user, Action.VIEW_ANY, resource=Project)
    filters = ProjectFilters(status=status_filter, title=title)
    projects, total = await project_service.list_projects(
        db, current_user, filters, sort, pagination.page, pagination.per_page
    )
    return {
        "data": await _with_counts(db, projects),
        "meta": PageMeta(page=pagination.page, per_page=pagination.per_page, total=total),
    }


@router.post("", response_model=ProjectSchema, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    project = await project_service.create_project(db, project_data, current_user)
    await db.commit()
    project = await project_service.get_project(db, project.project_id)
    return (await _with_counts(db, [project]))[0]


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    project = await project_service.get_project(db, project_id)
    authorize(current_user, Action.VIEW, project)
    return (await _with_counts(db, [project], ProjectDetail))[0]


@router.put("/{project_id}", response_model=ProjectSchema)
async def update_project(
    project_id: int,
    update_data: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    project = await project_service.get_project(db, project_id)
    await project_service.update_project(db, project, update_data, current_user)
    await db.commit()
    project = await project_service.get_project(db, project_id)
    return (await _with_counts(db, [project]))[0]


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    project = await project_service.get_project(db, project_id)
    await project_service.delete_project(db, project, current_user)
    await db.commit()
    return None


@router.post("/{project_id}/members", response_model=Message)
async def add_member(
    project_id: int,
    member: MemberAdd,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    project = await project_service.get_project(db, project_id)
    await project_service.add_member(db, project, member.user_id, current_user)
    await db.commit()
    return {"message": "User invited to project successfully."}


@router.delete("/{project_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    project_id: int,
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    project = await project_service.get_project(db, project_id)
    await project_service.remove_member(db, project, user_id, current_user)
    await db.commit()
    return None


@router.get("/{project_id}/comments", response_model=Page[CommentSchema])
async def list_project_comments(
    project_id: int,
    sort: str | None = None,
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    commentable = await comment_service.resolve_commentable(db, CommentableType.PROJECT, project_id)
    comments, total = await comment_service.list_comments(
        db, commentable, current_user, sort, pagination.page, pagination.per_page
    )
    return {
        "data": comments,
        "meta": PageMeta(page=pagination.page, per_page=pagination.per_page, total=total),
    }


@router.post("/{project_id}/comments", response_model=CommentSchema, status_code=status.HTTP_201_CREATED)
async def add_project_comment(
    project_id: int,
    comment_data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    commentable = await comment_service.resolve_commentable(db, CommentableType.PROJECT, project_id)
    comment = await comment_service.create_comment(db, commentable, comment_data.body, current_user)
    await db.commit()
    return await comment_service.get_comment(db, comment.comment_id)
