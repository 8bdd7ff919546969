import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFound, ValidationFailed
from app.models.comment import Comment, Commentable
from app.models.enums import CommentableType
from app.models.user import User
from app.policies.engine import Action, authorize
from app.services.projects import get_project
from app.services.query import TrashedFilter, parse_sort, paginate
from app.services.tasks import get_task
from app.utils.sanitization import sanitize_string

logger = logging.getLogger(__name__)

COMMENT_SORTS = {
    "created_at": Comment.created_at,
}


async def resolve_commentable(
    db: AsyncSession,
    kind: CommentableType,
    target_id: int,
    trashed: TrashedFilter = TrashedFilter.WITHOUT,
) -> Commentable:
    match kind:
        case CommentableType.PROJECT:
            return Commentable.of_project(await get_project(db, target_id))
        case CommentableType.TASK:
            return Commentable.of_task(await get_task(db, target_id, trashed))
    raise ValueError(f"Unknown commentable kind: {kind!r}")


def _comments_of(commentable: Commentable):
    return select(Comment).where(
        Comment.commentable_type == commentable.kind,
        Comment.commentable_id == commentable.target_id,
    )


async def list_comments(
    db: AsyncSession,
    commentable: Commentable,
    actor: User,
    sort: str | None,
    page: int,
    per_page: int,
) -> tuple[list[Comment], int]:
    authorize(actor, Action.VIEW_ANY, resource=Comment, context=commentable)

    query = _comments_of(commentable)
    total = await db.scalar(select(func.count()).select_from(query.subquery()))
    query = query.order_by(*parse_sort(sort, COMMENT_SORTS), Comment.comment_id)
    result = await db.execute(paginate(query, page, per_page))
    return list(result.scalars().all()), total


async def create_comment(db: AsyncSession, commentable: Commentable, body: str, actor: User) -> Comment:
    authorize(actor, Action.CREATE, resource=Comment, context=commentable)

    body = sanitize_string(body)
    if not body:
        raise ValidationFailed("The comment body cannot be empty.", field="body")

    comment = Comment(
        body=body,
        commentable_type=commentable.kind,
        commentable_id=commentable.target_id,
        user_id=actor.user_id,
    )
    db.add(comment)
    await db.flush()
    logger.info(
        "Comment %s added to %s %s by user %s",
        comment.comment_id, commentable.kind.value, commentable.target_id, actor.user_id,
    )
    return comment


async def get_comment(db: AsyncSession, comment_id: int) -> Comment:
    result = await db.execute(
        select(Comment)
        .where(Comment.comment_id == comment_id)
        .execution_options(populate_existing=True)
    )
    comment = result.scalars().first()
    if not comment:
        raise NotFound("Comment not found")
    return comment


async def delete_comment(db: AsyncSession, comment: Comment, actor: User):
    # Trashed tasks still govern their comments
    commentable = await resolve_commentable(
        db, comment.commentable_type, comment.commentable_id, TrashedFilter.WITH
    )
    authorize(actor, Action.DELETE, comment, context=commentable)

    await db.delete(comment)
    await db.flush()
    logger.info("Comment %s deleted by user %s", comment.comment_id, actor.user_id)
