from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from app.models.enums import ProjectStatus, db_enum


project_members = Table(
    "project_members",
    Base.metadata,
    Column("project_id", Integer, ForeignKey("projects.project_id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True),
)


class Project(Base):
    __tablename__ = "projects"

    project_id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    deadline = Column(Date, nullable=False)
    status = Column(db_enum(ProjectStatus, "project_status"), nullable=False, default=ProjectStatus.OPEN)
    manager_id = Column(Integer, ForeignKey("users.user_id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Policies read manager and members off loaded rows, so both always come along
    manager = relationship("User", back_populates="managed_projects", foreign_keys=[manager_id], lazy="selectin")
    members = relationship("User", secondary=project_members, back_populates="projects", lazy="selectin")
    tasks = relationship("Task", back_populates="project", passive_deletes=True)

    @property
    def owning_project(self) -> "Project":
        return self

    def has_member(self, user) -> bool:
        return any(m.user_id == user.user_id for m in self.members)

    def __repr__(self):
        return f"<Project {self.project_id} {self.title!r}>"
