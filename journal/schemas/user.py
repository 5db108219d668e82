"""
Pydantic models for user and auth request validation.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

THEMES = ("dark", "light", "system")


class RegisterRequest(BaseModel):
    """Request body for user registration."""
    username: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(BaseModel):
    """Request body for user login."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class SettingsInput(BaseModel):
    theme: Optional[str] = Field(None, pattern=r"^(dark|light|system)$", description="dark | light | system")
    notifications: Optional[bool] = None
    timezone: Optional[str] = Field(None, description="IANA timezone, e.g. Asia/Kolkata")


class ProfileInput(BaseModel):
    """Profile fields accepted on update."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, min_length=5, max_length=500)
    dob: Optional[date] = None
    settings: Optional[SettingsInput] = None


class UpdateMeRequest(BaseModel):
    """Request body for PUT /users/me."""
    username: Optional[str] = Field(None, min_length=2, max_length=50)
    profile: Optional[ProfileInput] = None


class UpdateProfileRequest(BaseModel):
    """Request body for PATCH /users/update-profile (flat fields)."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    bio: Optional[str] = Field(None, min_length=5, max_length=500)
    dob: Optional[date] = None
    theme: Optional[str] = Field(None, pattern=r"^(dark|light|system)$", description="dark | light | system")
    notifications: Optional[bool] = None
    timezone: Optional[str] = Field(None, description="IANA timezone")
