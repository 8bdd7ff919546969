from app.models.enums import Role
from app.models.project import Project
from app.policies.rules import RoleTable, Always, Never, ManagesProject, MemberOfProject


PROJECT_VIEW = RoleTable("project.view", {
    Role.ADMIN: Always(),
    Role.MANAGER: Always(),
    Role.USER: ManagesProject() | MemberOfProject(),
})

PROJECT_CREATE = RoleTable("project.create", {
    Role.ADMIN: Always(),
    Role.MANAGER: Always(),
    Role.USER: Never(),
})

# Managers see every project but only change the ones they manage
PROJECT_MANAGE = RoleTable("project.manage", {
    Role.ADMIN: Always(),
    Role.MANAGER: ManagesProject(),
    Role.USER: ManagesProject(),
})


class ProjectPolicy:
    model = Project

    rules = {
        "view": PROJECT_VIEW,
        "update": PROJECT_MANAGE,
        "delete": PROJECT_MANAGE,
    }

    def view_any(self, actor, context=None) -> bool:
        return True

    def view(self, actor, project, context=None) -> bool:
        return PROJECT_VIEW.check(actor, project)

    def create(self, actor, context=None) -> bool:
        return PROJECT_CREATE.check(actor, context)

    def update(self, actor, project, context=None) -> bool:
        return PROJECT_MANAGE.check(actor, project)

    def delete(self, actor, project, context=None) -> bool:
        return PROJECT_MANAGE.check(actor, project)
