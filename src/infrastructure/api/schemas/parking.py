from pydantic import BaseModel, Field, field_serializer, field_validator
from datetime import datetime, time, timezone
from typing import Optional, List

from src.domain.common import AccountMode, ParkingStatus
from src.shared.custom_types import format_clock_time, parse_clock_time


class ParkingBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address_label: Optional[str] = Field(default=None, max_length=500)
    city: Optional[str] = Field(default=None, max_length=100)
    total_spots: int = Field(..., ge=1)
    price_per_hour: float = Field(..., ge=0)
    opening_time: Optional[time] = None
    closing_time: Optional[time] = None
    is_24h: bool = False
    cancel_time_limit: Optional[int] = Field(default=None, ge=1, description="Minutes a pending reservation stays cancellable")

    @field_validator('name')
    def validate_name(cls, v):  # pylint: disable=no-self-argument
        return v.strip()

    @field_validator('opening_time', 'closing_time', mode='before')
    @classmethod
    def parse_clock(cls, v):
        if v is None or isinstance(v, time):
            return v
        if isinstance(v, str):
            if not v.strip():
                return None
            return parse_clock_time(v)
        return v


class ParkingCreate(ParkingBase):
    pass


class ParkingUpdate(ParkingBase):
    pass


class ParkingResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    address_label: Optional[str] = None
    city: Optional[str] = None
    latitude: float
    longitude: float
    total_spots: int
    available_spots: int
    price_per_hour: float
    opening_time: Optional[time] = None
    closing_time: Optional[time] = None
    opening_hours: str
    is_24h: bool
    is_open_now: bool
    cancel_time_limit: Optional[int] = None
    occupancy_percent: int
    owner_name: Optional[str] = None
    status: ParkingStatus
    created_at: Optional[datetime] = None
    distance: Optional[float] = None
    distance_text: Optional[str] = None

    @field_validator('created_at')
    @classmethod
    def make_datetime_aware(cls, dt: datetime) -> datetime:
        if dt is None:
            return dt
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt

    @field_serializer('opening_time', 'closing_time')
    def serialize_clock(self, value: Optional[time]) -> Optional[str]:
        return format_clock_time(value) if value is not None else None


class ParkingPage(BaseModel):
    items: List[ParkingResponse]
    page: int
    per_page: int
    total: int
    last_page: int


class PriceRange(BaseModel):
    min: float
    max: float


class SortOption(BaseModel):
    value: str
    label: str
    order: str


class SearchResponse(BaseModel):
    parkings: ParkingPage
    filters: dict
    cities: List[str]
    price_range: PriceRange = Field(serialization_alias="priceRange")
    sort_options: List[SortOption] = Field(serialization_alias="sortOptions")


class Suggestion(BaseModel):
    type: str
    label: str
    sublabel: Optional[str] = None
    id: Optional[int] = None
    price: Optional[float] = None
    spots: Optional[int] = None


class OwnerParkings(BaseModel):
    parkings: List[ParkingResponse]
    can_add: bool
    current_plan: AccountMode
    is_premium: bool


class ParkingMessage(BaseModel):
    message: str
    parking: ParkingResponse


class StatusToggle(BaseModel):
    message: str
    status: ParkingStatus


class Message(BaseModel):
    message: str
