from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from app.models.enums import Role
from app.utils.sanitization import sanitize_string


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr

    @field_validator("name", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class UserRegister(UserBase):
    password: str = Field(..., min_length=8)


class UserCreate(UserRegister):
    role: Role = Role.USER


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    email: str | None = None


class UserUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8)
    role: Role | None = None

    @field_validator("name", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class UserBrief(BaseModel):
    user_id: int
    name: str

    class Config:
        from_attributes = True


class UserResponse(UserBase):
    user_id: int
    role: Role
    created_at: datetime | None = None

    class Config:
        from_attributes = True
