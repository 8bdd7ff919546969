from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from app.models.enums import TaskStatus, TaskPriority
from app.utils.sanitization import sanitize_string
from app.schemas.user import UserBrief


# ── Common base for readable/writeable fields ──
class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    due_date: date | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    project_id: int
    assigned_to_id: int | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class TaskCreate(TaskBase):
    due_date: date


class TaskUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    due_date: date | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    project_id: int | None = None
    # An explicit null unassigns the task
    assigned_to_id: int | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class Task(TaskBase):
    task_id: int
    created_by_id: int
    assignee: UserBrief | None = None
    creator: UserBrief | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    class Config:
        from_attributes = True
