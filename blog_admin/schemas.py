"""
Pydantic schemas for the blog admin API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

PostStatus = Literal["publish", "draft", "pending", "private"]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# Postgres INTEGER range; SQLite also stores it without overflow.
MAX_PRIORITY = 2**31 - 1


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)


class UserSummary(BaseModel):
    id: int
    name: str
    email: str


class UserDetail(UserSummary):
    created_at: float


class LoginResponse(BaseModel):
    message: str
    token: str
    user: UserSummary


class CurrentUserResponse(BaseModel):
    user: UserDetail
    message: str


class MessageResponse(BaseModel):
    message: str


class CreatePostRequest(BaseModel):
    title: str = Field(..., max_length=255)
    content: str
    status: PostStatus = "publish"


class UpdatePostRequest(BaseModel):
    title: Optional[str] = Field(default=None, max_length=255)
    content: Optional[str] = None
    status: Optional[PostStatus] = None
    priority: Optional[int] = Field(default=None, ge=0, le=MAX_PRIORITY)

    @field_validator("title", "content", "status", "priority", mode="before")
    @classmethod
    def reject_null(cls, value):
        # Fields are optional to omit, but a field that is sent must carry a value.
        if value is None:
            raise ValueError("must not be null")
        return value

    def wordpress_fields(self) -> dict:
        return self.model_dump(
            include={"title", "content", "status"}, exclude_unset=True, exclude_none=True
        )


class SetPriorityRequest(BaseModel):
    priority: int = Field(..., ge=0, le=MAX_PRIORITY)


class PriorityResponse(BaseModel):
    wordpress_post_id: str
    priority: int
    created_at: float
    updated_at: float
