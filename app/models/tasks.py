from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.models.enums import TaskStatus, TaskPriority, db_enum
from app.models.user import User


class Task(Base):
    __tablename__ = "tasks"

    task_id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(db_enum(TaskStatus, "task_status"), nullable=False, default=TaskStatus.TODO)
    priority = Column(db_enum(TaskPriority, "task_priority"), nullable=False, default=TaskPriority.MEDIUM)
    due_date = Column(Date, nullable=True)
    project_id = Column(Integer, ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_to_id = Column(Integer, ForeignKey("users.user_id"), nullable=True, index=True)
    created_by_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    # Presence marks the task as trashed
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    project = relationship("Project", back_populates="tasks", lazy="selectin")
    assignee = relationship("User", back_populates="tasks", foreign_keys=[assigned_to_id], lazy="selectin")
    creator = relationship("User", back_populates="created_tasks", foreign_keys=[created_by_id], lazy="selectin")

    @property
    def owning_project(self):
        return self.project

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<Task {self.task_id} {self.title!r} project={self.project_id}>"
