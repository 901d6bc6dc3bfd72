"""
Pydantic models for the mock authentication endpoints.
"""

from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator


class UserRole(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    EVENT_OWNER = "event_owner"


class UserRead(BaseModel):
    id: str
    email: EmailStr
    name: str
    role: UserRole


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., examples=["admin@example.com"])
    password: str = Field(..., min_length=1)


class RegisterRequest(LoginRequest):
    name: str = Field(..., examples=["Jane Smith"])

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
