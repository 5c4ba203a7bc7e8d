from abc import ABC, abstractmethod
from datetime import time
from typing import List, Optional, Tuple

from src.domain.common import ParkingStatus, ReservationStatus
from src.domain.entities import User, Parking, Vehicle, Reservation
from src.domain.geo import BoundingBox
from src.domain.search import SearchFilters


class AbstractUnitOfWork(ABC):
    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class AbstractUserRepository(ABC):
    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def add(self, user: User) -> User:
        pass


class AbstractParkingRepository(ABC):
    @abstractmethod
    async def get_by_id(self, parking_id: int, for_update: bool = False) -> Optional[Parking]:
        pass

    @abstractmethod
    async def add(self, parking: Parking) -> Parking:
        pass

    @abstractmethod
    async def update_details(self, parking: Parking) -> Parking:
        """Persist every field except the spot counters."""
        pass

    @abstractmethod
    async def delete(self, parking_id: int):
        pass

    @abstractmethod
    async def list_by_owner(self, owner_id: int) -> List[Parking]:
        pass

    @abstractmethod
    async def count_by_owner(self, owner_id: int) -> int:
        pass

    @abstractmethod
    async def set_status(self, parking_id: int, status: ParkingStatus):
        pass

    # Spot ledger writes. Each is a single guarded UPDATE and returns whether
    # a row changed.

    @abstractmethod
    async def take_spot(self, parking_id: int) -> bool:
        pass

    @abstractmethod
    async def give_back_spot(self, parking_id: int) -> bool:
        pass

    @abstractmethod
    async def replace_capacity(
        self, parking_id: int, expected_total: int, expected_available: int, new_total: int, new_available: int
    ) -> bool:
        pass

    # Search

    @abstractmethod
    async def search_active(
        self,
        filters: SearchFilters,
        clock: Optional[time],
        bounding_box: Optional[BoundingBox],
        sort_by: str,
        descending: bool,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Parking]:
        pass

    @abstractmethod
    async def count_active(
        self,
        filters: SearchFilters,
        clock: Optional[time],
        bounding_box: Optional[BoundingBox],
    ) -> int:
        pass

    @abstractmethod
    async def get_active_cities(self) -> List[str]:
        pass

    @abstractmethod
    async def get_active_address_labels(self) -> List[str]:
        pass

    @abstractmethod
    async def get_active_price_range(self) -> Tuple[Optional[float], Optional[float]]:
        pass

    @abstractmethod
    async def suggest_active(self, term: str, limit: int = 8) -> List[Parking]:
        pass


class AbstractVehicleRepository(ABC):
    @abstractmethod
    async def get_by_id(self, vehicle_id: int, for_update: bool = False) -> Optional[Vehicle]:
        pass

    @abstractmethod
    async def get_by_license_plate(self, license_plate: str) -> Optional[Vehicle]:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: int) -> List[Vehicle]:
        pass

    @abstractmethod
    async def count_by_user(self, user_id: int) -> int:
        pass

    @abstractmethod
    async def add(self, vehicle: Vehicle) -> Vehicle:
        pass

    @abstractmethod
    async def clear_primary(self, user_id: int):
        pass

    @abstractmethod
    async def mark_primary(self, vehicle_id: int):
        pass

    @abstractmethod
    async def delete(self, vehicle_id: int):
        pass


class AbstractReservationRepository(ABC):
    @abstractmethod
    async def add(self, reservation: Reservation) -> Reservation:
        pass

    @abstractmethod
    async def get_by_id(self, reservation_id: int) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: int) -> List[Reservation]:
        """Driver's reservations, newest first, with parking and vehicle loaded."""
        pass

    @abstractmethod
    async def list_pending_with_deadline(self) -> List[Reservation]:
        """Every pending reservation whose parking has a cancel time limit."""
        pass

    @abstractmethod
    async def vehicle_has_holding_reservation(self, vehicle_id: int) -> bool:
        pass

    @abstractmethod
    async def vehicle_has_reservations(self, vehicle_id: int) -> bool:
        pass

    @abstractmethod
    async def parking_has_reservations(self, parking_id: int) -> bool:
        pass

    @abstractmethod
    async def transition(
        self, reservation_id: int, from_status: ReservationStatus, to_status: ReservationStatus
    ) -> bool:
        """Compare-and-set the status; False when it was no longer ``from_status``."""
        pass
