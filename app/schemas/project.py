from datetime import date, datetime
from pydantic import BaseModel, Field, field_validator
from app.models.enums import ProjectStatus
from app.schemas.user import UserBrief
from app.utils.sanitization import sanitize_string


class ProjectBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    deadline: date
    status: ProjectStatus = ProjectStatus.OPEN

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class ProjectCreate(ProjectBase):
    # Defaults to the creating user
    manager_id: int | None = None


class ProjectUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    deadline: date | None = None
    status: ProjectStatus | None = None
    manager_id: int | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class MemberAdd(BaseModel):
    user_id: int


class Project(ProjectBase):
    project_id: int
    manager_id: int | None = None
    manager: UserBrief | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    members_count: int | None = None
    tasks_count: int | None = None

    class Config:
        from_attributes = True


class ProjectDetail(Project):
    members: list[UserBrief] = []
