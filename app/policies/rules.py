"""
Declarative authorization conditions.

A condition answers one question two ways: ``check`` evaluates it against an
already-loaded entity, ``clause`` renders it as a SQL boolean over a mapped
class. Policies (one row at a time) and list queries (set-wise) are both built
from the same ``RoleTable`` objects, so they cannot disagree about who sees or
may change what.

Targets are anything exposing ``owning_project`` (Project returns itself, Task
returns its project); models used with ``clause`` must have a ``project_id``
column.
"""
from sqlalchemy import select, or_, and_, true, false

from app.models.enums import Role
from app.models.project import Project, project_members


class Condition:
    def check(self, actor, target) -> bool:
        raise NotImplementedError

    def clause(self, actor, model):
        raise NotImplementedError

    def __or__(self, other):
        return AnyOf(self, other)

    def __and__(self, other):
        return AllOf(self, other)


class Always(Condition):
    def check(self, actor, target) -> bool:
        return True

    def clause(self, actor, model):
        return true()

    def __repr__(self):
        return "Always()"


class Never(Condition):
    def check(self, actor, target) -> bool:
        return False

    def clause(self, actor, model):
        return false()

    def __repr__(self):
        return "Never()"


class ManagesProject(Condition):
    """The actor is the managing manager of the target's project."""

    def check(self, actor, target) -> bool:
        project = target.owning_project if target is not None else None
        return project is not None and project.manager_id == actor.user_id

    def clause(self, actor, model):
        managed = (
            select(Project.project_id)
            .where(Project.manager_id == actor.user_id)
            .correlate(None)
        )
        return model.project_id.in_(managed)

    def __repr__(self):
        return "ManagesProject()"


class MemberOfProject(Condition):
    """The actor has a membership row for the target's project."""

    def check(self, actor, target) -> bool:
        project = target.owning_project if target is not None else None
        return project is not None and project.has_member(actor)

    def clause(self, actor, model):
        joined = (
            select(project_members.c.project_id)
            .where(project_members.c.user_id == actor.user_id)
            .correlate(None)
        )
        return model.project_id.in_(joined)

    def __repr__(self):
        return "MemberOfProject()"


class AssignedToActorOrUnassigned(Condition):
    """Task-level: the task is the actor's own, or nobody's yet."""

    def check(self, actor, target) -> bool:
        return target.assigned_to_id is None or target.assigned_to_id == actor.user_id

    def clause(self, actor, model):
        return or_(model.assigned_to_id.is_(None), model.assigned_to_id == actor.user_id)

    def __repr__(self):
        return "AssignedToActorOrUnassigned()"


class AnyOf(Condition):
    def __init__(self, *conditions: Condition):
        self.conditions = conditions

    def check(self, actor, target) -> bool:
        return any(c.check(actor, target) for c in self.conditions)

    def clause(self, actor, model):
        return or_(*(c.clause(actor, model) for c in self.conditions))

    def __repr__(self):
        return " | ".join(repr(c) for c in self.conditions)


class AllOf(Condition):
    def __init__(self, *conditions: Condition):
        self.conditions = conditions

    def check(self, actor, target) -> bool:
        return all(c.check(actor, target) for c in self.conditions)

    def clause(self, actor, model):
        return and_(*(c.clause(actor, model) for c in self.conditions))

    def __repr__(self):
        return " & ".join(repr(c) for c in self.conditions)


class RoleTable:
    """
    One rule, spelled out per role.

    Every role must be listed: a table never infers a role's rights from
    another role's.
    """

    def __init__(self, name: str, rules: dict[Role, Condition]):
        missing = set(Role) - set(rules)
        if missing:
            raise ValueError(f"{name}: no condition for roles {sorted(r.value for r in missing)}")
        self.name = name
        self._rules = dict(rules)

    def for_actor(self, actor) -> Condition:
        return self._rules[Role(actor.role)]

    def check(self, actor, target) -> bool:
        return self.for_actor(actor).check(actor, target)

    def clause(self, actor, model):
        return self.for_actor(actor).clause(actor, model)

    def __repr__(self):
        return f"<RoleTable {self.name}>"
