"""
Admin Domain Models
"""
from pydantic import Field, EmailStr
from datetime import datetime

from app.domain.base import DomainModel


class Admin(DomainModel):
    id: int
    email: str
    password: str = Field(..., description="bcrypt hash")
    name: str
    created_at: datetime

    def to_public_dict(self) -> dict:
        return self.to_dict(exclude={"password"})


class AdminCreate(DomainModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)


class PasswordChange(DomainModel):
    current_password: str
    new_password: str = Field(..., min_length=6)
