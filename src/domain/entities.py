from datetime import datetime, time, timedelta
from typing import Optional

from src.domain.common import (
    AccountMode,
    ParkingStatus,
    ReservationStatus,
    UserRole,
    VehicleType,
    HOLDING_STATUSES,
    TERMINAL_STATUSES,
)


class User:
    def __init__(
        self,
        name: str,
        email: str,
        role: UserRole,
        mode_compte: AccountMode = AccountMode.BASIC,
        company_name: Optional[str] = None,
        id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.email = email
        self.role = role
        self.mode_compte = mode_compte
        self.company_name = company_name
        self.created_at = created_at

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER

    @property
    def is_premium(self) -> bool:
        return self.mode_compte == AccountMode.PREMIUM

    @property
    def display_name(self) -> str:
        return self.company_name or self.name


class Parking:
    def __init__(
        self,
        owner_id: int,
        name: str,
        latitude: float,
        longitude: float,
        total_spots: int,
        available_spots: int,
        price_per_hour: float,
        description: Optional[str] = None,
        address_label: Optional[str] = None,
        city: Optional[str] = None,
        opening_time: Optional[time] = None,
        closing_time: Optional[time] = None,
        is_24h: bool = False,
        cancel_time_limit: Optional[int] = None,
        status: ParkingStatus = ParkingStatus.ACTIVE,
        id: Optional[int] = None,
        owner_name: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.owner_id = owner_id
        self.name = name
        self.description = description
        self.latitude = latitude
        self.longitude = longitude
        self.address_label = address_label
        self.city = city
        self.total_spots = total_spots
        self.available_spots = available_spots
        self.price_per_hour = price_per_hour
        self.opening_time = opening_time
        self.closing_time = closing_time
        self.is_24h = is_24h
        self.cancel_time_limit = cancel_time_limit
        self.status = status
        self.owner_name = owner_name
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def is_active(self) -> bool:
        return self.status == ParkingStatus.ACTIVE

    @property
    def occupancy_percent(self) -> int:
        if self.total_spots <= 0:
            return 0
        occupied = self.total_spots - self.available_spots
        return int(round(occupied / self.total_spots * 100))

    @property
    def city_name(self) -> Optional[str]:
        """Explicit city, else a fragment of the free-text address.

        Addresses look like "Rue XYZ, Tunis, Tunisia": the city is the
        second-to-last fragment, or the whole label when it has no comma.
        """
        if self.city:
            return self.city
        if self.address_label:
            parts = self.address_label.split(",")
            if len(parts) >= 2:
                return parts[-2].strip()
            return parts[0].strip()
        return None

    @property
    def opening_hours(self) -> str:
        if self.is_24h:
            return "24/7"
        if self.opening_time and self.closing_time:
            return f"{self.opening_time:%H:%M} - {self.closing_time:%H:%M}"
        return "Not specified"


class Vehicle:
    def __init__(
        self,
        user_id: int,
        license_plate: str,
        brand: Optional[str] = None,
        model: Optional[str] = None,
        color: Optional[str] = None,
        type: Optional[VehicleType] = None,
        year: Optional[int] = None,
        is_primary: bool = False,
        id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.license_plate = license_plate
        self.brand = brand
        self.model = model
        self.color = color
        self.type = VehicleType(type) if type else None
        self.year = year
        self.is_primary = is_primary
        self.created_at = created_at

    @property
    def display_name(self) -> str:
        # "Toyota Corolla (AB-123-CD)"
        name = " ".join(part for part in (self.brand, self.model) if part) or "Vehicle"
        return f"{name} ({self.license_plate})"


class Reservation:
    def __init__(
        self,
        user_id: int,
        parking_id: int,
        vehicle_id: int,
        status: ReservationStatus = ReservationStatus.PENDING,
        reserved_at: Optional[datetime] = None,
        id: Optional[int] = None,
        created_at: Optional[datetime] = None,
        parking: Optional[Parking] = None,
        vehicle: Optional[Vehicle] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.parking_id = parking_id
        self.vehicle_id = vehicle_id
        self.status = status
        self.reserved_at = reserved_at
        self.created_at = created_at
        self.parking = parking
        self.vehicle = vehicle

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def holds_spot(self) -> bool:
        return self.status in HOLDING_STATUSES

    @property
    def reference_time(self) -> Optional[datetime]:
        return self.reserved_at or self.created_at

    def cancellation_deadline(self, cancel_time_limit: Optional[int]) -> Optional[datetime]:
        """Moment from which a pending reservation counts as expired."""
        if not cancel_time_limit or self.reference_time is None:
            return None
        return self.reference_time + timedelta(minutes=cancel_time_limit)
