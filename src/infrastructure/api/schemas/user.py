from pydantic import BaseModel, Field, field_validator, ConfigDict
from datetime import datetime
from typing import Optional

from src.domain.common import AccountMode, UserRole


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    role: UserRole
    mode_compte: AccountMode = AccountMode.BASIC
    company_name: Optional[str] = Field(default=None, max_length=255)

    @field_validator('email')
    def validate_email(cls, v):  # pylint: disable=no-self-argument
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Invalid email address")
        return v


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    mode_compte: AccountMode
    company_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
