import logging

from sqlalchemy import select, delete, update, exists, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFound, ValidationFailed
from app.models.comment import Comment
from app.models.enums import Role
from app.models.project import Project, project_members
from app.models.tasks import Task
from app.models.user import User
from app.schemas.user import UserRegister, UserUpdate
from app.services.query import UserFilters, build_user_query, paginate
from app.utils.security import get_password_hash

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User).where(User.user_id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalars().first()
    if not user:
        raise NotFound("User not found")
    return user


async def list_users(
    db: AsyncSession,
    filters: UserFilters,
    sort: str | None,
    page: int,
    per_page: int,
) -> tuple[list[User], int]:
    query = build_user_query(filters, sort)
    total = await db.scalar(select(func.count()).select_from(query.order_by(None).subquery()))
    result = await db.execute(paginate(query, page, per_page))
    return list(result.scalars().all()), total


async def _email_taken(db: AsyncSession, email: str, exclude_id: int | None = None) -> bool:
    query = select(User.user_id).where(User.email == email)
    if exclude_id is not None:
        query = query.where(User.user_id != exclude_id)
    return bool(await db.scalar(select(query.exists())))


async def create_user(db: AsyncSession, user_data: UserRegister, role: Role = Role.USER) -> User:
    if await _email_taken(db, user_data.email):
        raise ValidationFailed("The email has already been taken.", field="email")

    new_user = User(
        **user_data.model_dump(exclude={"password", "role"}),
        role=role,
        hashed_password=get_password_hash(user_data.password),
    )
    db.add(new_user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ValidationFailed("The email has already been taken.", field="email")
    logger.info("User %s created with role %s", new_user.user_id, role.value)
    return new_user


async def update_user(db: AsyncSession, user: User, update_data: UserUpdate) -> User:
    changes = update_data.model_dump(exclude_unset=True)
    for required in ("name", "email", "password", "role"):
        if required in changes and changes[required] is None:
            raise ValidationFailed(f"The {required} field cannot be null.", field=required)

    if "email" in changes and await _email_taken(db, changes["email"], exclude_id=user.user_id):
        raise ValidationFailed("The email has already been taken.", field="email")
    if "password" in changes:
        user.hashed_password = get_password_hash(changes.pop("password"))

    for key, value in changes.items():
        setattr(user, key, value)

    await db.flush()
    logger.info("User %s updated: %s", user.user_id, sorted(changes))
    return user


async def delete_user(db: AsyncSession, user: User):
    """
    Remove a user account.

    Users still managing projects or recorded as a task creator are kept;
    otherwise their memberships and comments are removed and their tasks
    become unassigned.
    """
    manages = await db.scalar(select(exists().where(Project.manager_id == user.user_id)))
    if manages:
        raise ValidationFailed("The user still manages projects. Reassign them first.", field="user_id")
    created = await db.scalar(select(exists().where(Task.created_by_id == user.user_id)))
    if created:
        raise ValidationFailed("The user has created tasks and cannot be deleted.", field="user_id")

    await db.execute(delete(project_members).where(project_members.c.user_id == user.user_id))
    await db.execute(
        update(Task)
        .where(Task.assigned_to_id == user.user_id)
        .values(assigned_to_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        delete(Comment)
        .where(Comment.user_id == user.user_id)
        .execution_options(synchronize_session=False)
    )
    await db.delete(user)
    await db.flush()
    logger.info("User %s deleted", user.user_id)
