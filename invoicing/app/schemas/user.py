"""User schemas used for registration, profile and admin responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from invoicing.app.models.user import UserRole


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    company_name: Optional[str] = None


class UserRead(BaseModel):
    id: int
    email: EmailStr
    name: str
    company_name: Optional[str] = None
    role: UserRole

    model_config = ConfigDict(from_attributes=True)


class UserProfileRead(UserRead):
    address: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None
    created_at: Optional[datetime] = None


class UserProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    company_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None


class AuthResponse(BaseModel):
    user: UserRead
    token: str
    token_type: str = "bearer"


class UserSummary(BaseModel):
    id: int
    name: str
    email: EmailStr
    company_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class AdminUserRead(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: UserRole
    is_active: bool
    company_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    invoice_count: int = 0
    client_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class AdminUserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    company_name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
