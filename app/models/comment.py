from dataclasses import dataclass
from typing import Any

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.models.enums import CommentableType, db_enum


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_commentable", "commentable_type", "commentable_id"),
    )

    comment_id = Column(Integer, primary_key=True, index=True)
    body = Column(Text, nullable=False)
    commentable_type = Column(db_enum(CommentableType, "commentable_type"), nullable=False)
    commentable_id = Column(Integer, nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    author = relationship("User", back_populates="comments", lazy="selectin")

    def __repr__(self):
        return f"<Comment {self.comment_id} on {self.commentable_type}:{self.commentable_id}>"


@dataclass(frozen=True)
class Commentable:
    """A comment's parent: exactly one Project or one Task."""

    kind: CommentableType
    target: Any

    @classmethod
    def of_project(cls, project) -> "Commentable":
        return cls(CommentableType.PROJECT, project)

    @classmethod
    def of_task(cls, task) -> "Commentable":
        return cls(CommentableType.TASK, task)

    @property
    def target_id(self) -> int:
        match self.kind:
            case CommentableType.PROJECT:
                return self.target.project_id
            case CommentableType.TASK:
                return self.target.task_id
        raise ValueError(f"Unknown commentable kind: {self.kind!r}")

    @property
    def project(self):
        """The project whose manager and members govern access to the comments."""
        match self.kind:
            case CommentableType.PROJECT:
                return self.target
            case CommentableType.TASK:
                return self.target.project
        raise ValueError(f"Unknown commentable kind: {self.kind!r}")
