from pydantic import BaseModel, Field, field_validator, ConfigDict
from datetime import datetime
from typing import Optional

from src.domain.common import VehicleType


class VehicleCreate(BaseModel):
    license_plate: str = Field(..., min_length=1, max_length=20)
    brand: Optional[str] = Field(default=None, max_length=50)
    model: Optional[str] = Field(default=None, max_length=50)
    color: Optional[str] = Field(default=None, max_length=30)
    type: Optional[VehicleType] = None
    year: Optional[int] = Field(default=None, ge=1900, le=2100)
    is_primary: bool = False

    @field_validator('license_plate')
    def validate_license_plate(cls, v):  # pylint: disable=no-self-argument
        return v.strip()

    @field_validator('type', mode='before')
    @classmethod
    def blank_type_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class VehicleResponse(BaseModel):
    id: int
    license_plate: str
    brand: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    type: Optional[VehicleType] = None
    year: Optional[int] = None
    is_primary: bool
    display_name: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
