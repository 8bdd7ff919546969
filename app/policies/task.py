from app.models.enums import Role
from app.models.tasks import Task
from app.policies.rules import (
    RoleTable, Always, Never, ManagesProject, MemberOfProject, AssignedToActorOrUnassigned,
)


TASK_VIEW = RoleTable("task.view", {
    Role.ADMIN: Always(),
    Role.MANAGER: Always(),
    Role.USER: MemberOfProject(),
})

# Evaluated against the target project, not a task
TASK_CREATE = RoleTable("task.create", {
    Role.ADMIN: Always(),
    Role.MANAGER: Always(),
    Role.USER: MemberOfProject(),
})

# Members may work on their own tasks and pick up unassigned ones
TASK_UPDATE = RoleTable("task.update", {
    Role.ADMIN: Always(),
    Role.MANAGER: ManagesProject(),
    Role.USER: MemberOfProject() & AssignedToActorOrUnassigned(),
})

# delete, restore and force_delete share one rule
TASK_REMOVE = RoleTable("task.remove", {
    Role.ADMIN: Always(),
    Role.MANAGER: ManagesProject(),
    Role.USER: Never(),
})


class TaskPolicy:
    model = Task

    rules = {
        "view": TASK_VIEW,
        "update": TASK_UPDATE,
        "delete": TASK_REMOVE,
        "restore": TASK_REMOVE,
        "force_delete": TASK_REMOVE,
    }

    def view_any(self, actor, context=None) -> bool:
        return True

    def view(self, actor, task, context=None) -> bool:
        return TASK_VIEW.check(actor, task)

    def create(self, actor, context=None) -> bool:
        """
        ``context`` is the project the task would be created in.

        Without it the decision is left to request validation, which requires
        an existing ``project_id``. This is a weak gate kept for compatibility
        with clients that authorize before choosing a project.
        """
        if context is None:
            return True
        return TASK_CREATE.check(actor, context)

    def update(self, actor, task, context=None) -> bool:
        return TASK_UPDATE.check(actor, task)

    def delete(self, actor, task, context=None) -> bool:
        return TASK_REMOVE.check(actor, task)

    def restore(self, actor, task, context=None) -> bool:
        return TASK_REMOVE.check(actor, task)

    def force_delete(self, actor, task, context=None) -> bool:
        return TASK_REMOVE.check(actor, task)
