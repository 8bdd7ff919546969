from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.models.enums import Role, db_enum

class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(db_enum(Role, "user_role"), nullable=False, default=Role.USER)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    managed_projects = relationship("Project", back_populates="manager", foreign_keys="[Project.manager_id]", passive_deletes=True)
    projects = relationship("Project", secondary="project_members", back_populates="members", passive_deletes=True)
    tasks = relationship("Task", back_populates="assignee", foreign_keys="[Task.assigned_to_id]", passive_deletes=True)
    created_tasks = relationship("Task", back_populates="creator", foreign_keys="[Task.created_by_id]", passive_deletes=True)
    comments = relationship("Comment", back_populates="author", passive_deletes=True)

    def __repr__(self):
        return f"<User {self.user_id} {self.email} ({self.role})>"
