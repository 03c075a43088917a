"""
Authentication and user-related Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from secrets_manager.models.user import GlobalRole


class UserLogin(BaseModel):
    """Schema for user login."""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6, max_length=100)


class UserRegister(BaseModel):
    """Schema for self-service registration. Always creates a regular user."""
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    full_name: str = Field(..., min_length=1, max_length=200)


class UserCreate(UserRegister):
    """Schema for an admin creating a user with an explicit global role."""
    role: GlobalRole = GlobalRole.USER


class UserSummary(BaseModel):
    """Snapshot of the acting user embedded in other responses."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str


class UserResponse(BaseModel):
    """Schema for user response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    full_name: str
    role: str
    is_active: bool
    created_at: Optional[datetime] = None


class TokenResponse(BaseModel):
    """Schema for token response."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class SessionResponse(BaseModel):
    """Whether the caller presented a valid token."""
    is_authenticated: bool
    user: Optional[UserResponse] = None
