"""Request and response models for admin authentication."""

from typing import Optional

from pydantic import BaseModel, Field

from folio_blog.models.common import CamelModel


class LoginRequest(BaseModel):
    username: Optional[str] = Field(None, description="Admin username")
    password: Optional[str] = Field(None, description="Admin password")


class UserProfile(BaseModel):
    """Redacted user projection; never carries the password hash."""

    id: str
    username: str
    avatar: Optional[str] = None
    role: str = "admin"


class LoginResponse(BaseModel):
    token: str
    user: UserProfile


class ChangePasswordRequest(CamelModel):
    old_password: Optional[str] = Field(None, description="Current password")
    new_password: Optional[str] = Field(None, description="New password, at least 6 characters")
