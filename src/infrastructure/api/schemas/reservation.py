from pydantic import BaseModel, field_validator, ConfigDict
from datetime import datetime, timezone
from typing import Optional, List

from src.domain.common import ReservationStatus
from src.infrastructure.api.schemas.parking import ParkingResponse
from src.infrastructure.api.schemas.vehicle import VehicleResponse


class ReservationCreate(BaseModel):
    vehicle_id: int


class ReservationParking(BaseModel):
    name: Optional[str] = None
    address_label: Optional[str] = None
    cancel_time_limit: Optional[int] = None


class ReservationVehicle(BaseModel):
    license_plate: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None


class ReservationListItem(BaseModel):
    id: int
    status: ReservationStatus
    reserved_at: Optional[datetime] = None
    remaining_seconds: Optional[int] = None
    parking: ReservationParking
    vehicle: ReservationVehicle

    @field_validator('reserved_at')
    @classmethod
    def make_datetime_aware(cls, dt: datetime) -> datetime:
        if dt is None:
            return dt
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt


class ReservationResponse(BaseModel):
    id: int
    user_id: int
    parking_id: int
    vehicle_id: int
    status: ReservationStatus
    reserved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReservationMessage(BaseModel):
    message: str
    reservation: ReservationResponse


class BookingContext(BaseModel):
    parking: ParkingResponse
    vehicles: List[VehicleResponse]
    can_book: bool
    not_bookable_reason: Optional[str] = None
