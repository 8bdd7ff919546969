from app.models.comment import Comment, Commentable
from app.models.enums import Role
from app.policies.rules import RoleTable, Always, ManagesProject, MemberOfProject


# Applied to the commentable's project
COMMENT_ACCESS = RoleTable("comment.access", {
    Role.ADMIN: Always(),
    Role.MANAGER: ManagesProject() | MemberOfProject(),
    Role.USER: ManagesProject() | MemberOfProject(),
})

COMMENT_MODERATE = RoleTable("comment.moderate", {
    Role.ADMIN: Always(),
    Role.MANAGER: ManagesProject(),
    Role.USER: ManagesProject(),
})


def _project(context):
    # Without a parent only the unconditional admin rule can match
    return context.project if context is not None else None


class CommentPolicy:
    """Comments are authorized through their parent project or task, never on their own."""

    model = Comment

    rules = {}

    def view_any(self, actor, context: Commentable | None = None) -> bool:
        return COMMENT_ACCESS.check(actor, _project(context))

    def create(self, actor, context: Commentable | None = None) -> bool:
        return self.view_any(actor, context)

    def view(self, actor, comment, context: Commentable | None = None) -> bool:
        return self.view_any(actor, context)

    def delete(self, actor, comment, context: Commentable | None = None) -> bool:
        if comment.user_id == actor.user_id:
            return True
        return COMMENT_MODERATE.check(actor, _project(context))
