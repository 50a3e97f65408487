from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from app.modules.user_management.models.user import UserRole, UserStatus


class UserProjection(BaseModel):
    """Minimal user view carried by an authenticated session"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    role: UserRole
    status: UserStatus


@dataclass
class AuthSession:
    session_token: str
    user_id: str
    user: UserProjection

    @property
    def role(self) -> UserRole:
        return self.user.role


class LoginRequest(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, email: Optional[str]) -> Optional[str]:
        """Normalize email to lowercase."""
        return email.strip().lower() if isinstance(email, str) and email.strip() else None


class LoginUser(BaseModel):
    id: str
    email: str
    name: str
    role: UserRole


class LoginResponse(BaseModel):
    success: bool = True
    user: LoginUser


class LogoutResponse(BaseModel):
    success: bool = True
    message: str


class SessionResponse(BaseModel):
    success: bool = True
    user: UserProjection
