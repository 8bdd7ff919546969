"""
Task lifecycle: ACTIVE -> TRASHED -> PURGED.

Trashing keeps the row and stamps ``deleted_at``; restoring clears it;
purging removes the row and its comments for good. A purge must go through
TRASHED first. Only tasks have this lifecycle.
"""
import enum
import logging
from datetime import datetime, timezone

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import InvalidTransition
from app.models.comment import Comment
from app.models.enums import CommentableType
from app.models.tasks import Task
from app.policies.engine import Action, authorize

logger = logging.getLogger(__name__)


class TaskState(str, enum.Enum):
    ACTIVE = "active"
    TRASHED = "trashed"
    PURGED = "purged"


TRANSITIONS = {
    (TaskState.ACTIVE, TaskState.TRASHED): Action.DELETE,
    (TaskState.TRASHED, TaskState.ACTIVE): Action.RESTORE,
    (TaskState.TRASHED, TaskState.PURGED): Action.FORCE_DELETE,
}


def state_of(task: Task) -> TaskState:
    return TaskState.TRASHED if task.deleted_at is not None else TaskState.ACTIVE


async def transition(
    db: AsyncSession,
    task: Task,
    from_state: TaskState,
    to_state: TaskState,
    actor,
) -> Task | None:
    """
    Move ``task`` from ``from_state`` to ``to_state`` on behalf of ``actor``.

    Raises ``Denied`` when the actor may not perform the move and
    ``InvalidTransition`` when the move is not in the table or the task is
    not currently in ``from_state``. Returns the task, or ``None`` once
    purged. The caller commits.
    """
    action = TRANSITIONS.get((from_state, to_state))
    if action is None:
        raise InvalidTransition(from_state, to_state)

    authorize(actor, action, task)

    current = state_of(task)
    if current != from_state:
        raise InvalidTransition(current, to_state)

    if to_state == TaskState.TRASHED:
        task.deleted_at = datetime.now(timezone.utc)
    elif to_state == TaskState.ACTIVE:
        task.deleted_at = None
    elif to_state == TaskState.PURGED:
        await db.execute(
            delete(Comment).where(
                Comment.commentable_type == CommentableType.TASK,
                Comment.commentable_id == task.task_id,
            )
        )
        await db.delete(task)

    await db.flush()
    logger.info("Task %s: %s -> %s by user %s", task.task_id, from_state.value, to_state.value, actor.user_id)
    return None if to_state == TaskState.PURGED else task
