from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from app.models.enums import CommentableType
from app.schemas.user import UserBrief
from app.utils.sanitization import sanitize_string


class CommentCreate(BaseModel):
    body: str = Field(..., min_length=1)

    @field_validator("body", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class Comment(BaseModel):
    comment_id: int
    body: str
    commentable_type: CommentableType
    commentable_id: int
    user_id: int
    author: UserBrief | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
