from datetime import datetime
from typing import Optional

from pydantic import (BaseModel, ConfigDict, EmailStr, field_validator,
                      model_validator)

from access_gate.models.user import UserRole, UserStatus


def normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


class UserBase(BaseModel):
    email: EmailStr

    @field_validator('email', mode='before')
    @classmethod
    def _normalize_email(cls, value):
        return normalize_email(value)


class UserCreate(UserBase):
    role: UserRole = UserRole.USER


class UserUpdate(BaseModel):
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None

    @model_validator(mode='after')
    def _require_change(self):
        if self.role is None and self.status is None:
            raise ValueError('At least one of role or status is required')
        return self


class UserResponse(UserBase):
    id: int
    name: Optional[str] = None
    role: UserRole
    status: UserStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewerResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
