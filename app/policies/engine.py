"""
Authorization entry points.

``decide`` answers a single (actor, action, target) question, ``authorize``
does the same but raises ``Denied``, and ``build_predicate`` turns the rule
behind an action into a SQL clause for list queries. All three read the same
rule tables defined in the per-resource policy modules.

The functions here are synchronous and side-effect free apart from logging.
They expect targets to be loaded with the relationships the rules read
(project ``manager_id`` and ``members``).
"""
import enum
import logging

from app.errors import Denied
from app.models.enums import Role
from app.models.comment import Comment
from app.models.project import Project
from app.models.tasks import Task
from app.policies.comment import CommentPolicy
from app.policies.project import ProjectPolicy
from app.policies.task import TaskPolicy

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    VIEW_ANY = "view_any"
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"
    FORCE_DELETE = "force_delete"


# Actions decided on a resource type rather than a loaded row
COLLECTION_ACTIONS = {Action.VIEW_ANY, Action.CREATE}


class Decision(enum.Enum):
    PERMITTED = "permitted"
    DENIED = "denied"

    @property
    def allowed(self) -> bool:
        return self is Decision.PERMITTED


POLICIES = {
    Project: ProjectPolicy(),
    Task: TaskPolicy(),
    Comment: CommentPolicy(),
}


def policy_for(resource):
    try:
        return POLICIES[resource]
    except KeyError:
        raise LookupError(f"No policy registered for {resource!r}") from None


def decide(actor, action: Action, target=None, *, resource=None, context=None) -> Decision:
    """
    Decide whether ``actor`` may perform ``action``.

    Item actions take the loaded ``target``; collection actions take the
    ``resource`` class. ``context`` is the optional parent (a Project for task
    creation, a Commentable for comments). Anything that does not resolve to
    a policy method is denied rather than raised.
    """
    try:
        action = Action(action)
    except ValueError:
        return Decision.DENIED
    if resource is None:
        resource = type(target) if target is not None else None
    policy = POLICIES.get(resource)
    if policy is None:
        return Decision.DENIED
    handler = getattr(policy, action.value, None)
    if handler is None:
        return Decision.DENIED

    if action in COLLECTION_ACTIONS:
        allowed = handler(actor, context)
    else:
        allowed = handler(actor, target, context)
    return Decision.PERMITTED if allowed else Decision.DENIED


def authorize(actor, action: Action, target=None, *, resource=None, context=None) -> None:
    decision = decide(actor, action, target, resource=resource, context=context)
    if not decision.allowed:
        logger.info(
            "Denied %s on %r for user %s (%s)",
            getattr(action, "value", action), target if target is not None else resource,
            actor.user_id, Role(actor.role).value,
        )
        raise Denied()


def build_predicate(actor, action: Action, resource):
    """SQL clause selecting exactly the rows of ``resource`` for which ``decide`` permits ``action``."""
    policy = policy_for(resource)
    table = policy.rules.get(Action(action).value)
    if table is None:
        raise LookupError(f"{resource.__name__} has no row-level rule for {Action(action).value!r}")
    return table.clause(actor, resource)


def visibility_predicate(actor, resource):
    return build_predicate(actor, Action.VIEW, resource)
