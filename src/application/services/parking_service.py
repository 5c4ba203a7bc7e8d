from datetime import datetime, time
from typing import Optional, List, Dict, Tuple

from loguru import logger

from src.application.repositories import (
    AbstractUnitOfWork,
    AbstractParkingRepository,
    AbstractReservationRepository,
)
from src.application.services.spot_ledger import SpotLedger
from src.application.services.transactions import run_in_transaction
from src.config.settings_env import settings
from src.domain.common import ParkingStatus
from src.domain.entities import User, Parking
from src.domain.errors import AuthorizationError, NotFoundError, ValidationError


class ParkingService:
    """Owner-side management of parkings."""

    def __init__(
        self,
        parking_repo: AbstractParkingRepository,
        reservation_repo: AbstractReservationRepository,
        unit_of_work: AbstractUnitOfWork,
    ):
        self.parking_repo = parking_repo
        self.reservation_repo = reservation_repo
        self.unit_of_work = unit_of_work
        self.spot_ledger = SpotLedger(parking_repo)

    async def can_add_parking(self, owner: User) -> bool:
        if not owner.is_owner:
            return False
        if owner.is_premium:
            return True
        return await self.parking_repo.count_by_owner(owner.id) < settings.BASIC_PARKING_LIMIT

    async def create_parking(
        self,
        owner: User,
        name: str,
        latitude: float,
        longitude: float,
        total_spots: int,
        price_per_hour: float,
        description: Optional[str] = None,
        address_label: Optional[str] = None,
        city: Optional[str] = None,
        opening_time: Optional[time] = None,
        closing_time: Optional[time] = None,
        is_24h: bool = False,
        cancel_time_limit: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> Parking:
        if not owner.is_owner:
            raise AuthorizationError("Only owners can add parkings.")
        if not await self.can_add_parking(owner):
            raise ValidationError("limit", "Upgrade to PREMIUM to add more parkings.")
        self._check_capacity(total_spots)
        opening_time, closing_time = self._normalize_schedule(is_24h, opening_time, closing_time)

        async def operation() -> Parking:
            return await self.parking_repo.add(
                Parking(
                    owner_id=owner.id,
                    name=name,
                    description=description,
                    latitude=latitude,
                    longitude=longitude,
                    address_label=address_label,
                    city=city,
                    total_spots=total_spots,
                    available_spots=total_spots,
                    price_per_hour=price_per_hour,
                    opening_time=opening_time,
                    closing_time=closing_time,
                    is_24h=is_24h,
                    cancel_time_limit=cancel_time_limit,
                    status=ParkingStatus.ACTIVE,
                    created_at=created_at,
                )
            )

        parking = await run_in_transaction(self.unit_of_work, operation, conflict_field="parking")
        logger.info(f"Parking {parking.id} '{parking.name}' created by owner {owner.id}")
        return parking

    async def update_parking(
        self,
        owner: User,
        parking_id: int,
        name: str,
        latitude: float,
        longitude: float,
        total_spots: int,
        price_per_hour: float,
        description: Optional[str] = None,
        address_label: Optional[str] = None,
        city: Optional[str] = None,
        opening_time: Optional[time] = None,
        closing_time: Optional[time] = None,
        is_24h: bool = False,
        cancel_time_limit: Optional[int] = None,
    ) -> Parking:
        """Replace the editable fields. A capacity change goes through the ledger."""
        parking = await self._owned_parking(owner, parking_id)
        self._check_capacity(total_spots)
        opening_time, closing_time = self._normalize_schedule(is_24h, opening_time, closing_time)

        async def operation() -> Parking:
            parking.name = name
            parking.description = description
            parking.latitude = latitude
            parking.longitude = longitude
            parking.address_label = address_label
            parking.city = city
            parking.price_per_hour = price_per_hour
            parking.opening_time = opening_time
            parking.closing_time = closing_time
            parking.is_24h = is_24h
            parking.cancel_time_limit = cancel_time_limit
            await self.parking_repo.update_details(parking)

            current = await self.parking_repo.get_by_id(parking_id, for_update=True)
            if current.total_spots != total_spots:
                await self.spot_ledger.resize(parking_id, total_spots)
            return await self.parking_repo.get_by_id(parking_id)

        updated = await run_in_transaction(self.unit_of_work, operation, conflict_field="total_spots")
        logger.info(f"Parking {parking_id} updated by owner {owner.id}")
        return updated

    async def toggle_status(self, owner: User, parking_id: int) -> Tuple[Parking, str]:
        parking = await self._owned_parking(owner, parking_id)
        new_status = ParkingStatus.INACTIVE if parking.is_active else ParkingStatus.ACTIVE

        async def operation():
            await self.parking_repo.set_status(parking_id, new_status)

        await run_in_transaction(self.unit_of_work, operation, conflict_field="parking")
        parking.status = new_status

        if new_status == ParkingStatus.ACTIVE:
            message = f'Parking "{parking.name}" is now active.'
        else:
            message = f'Parking "{parking.name}" is now inactive (maintenance mode).'
        logger.info(f"Parking {parking_id} status -> {new_status.value}")
        return parking, message

    async def delete_parking(self, owner: User, parking_id: int) -> str:
        """Hard delete, allowed only while no reservation references the parking."""
        parking = await self._owned_parking(owner, parking_id)
        if await self.reservation_repo.parking_has_reservations(parking_id):
            raise ValidationError(
                "parking", "This parking has reservations and cannot be deleted. Deactivate it instead."
            )

        async def operation():
            await self.parking_repo.delete(parking_id)

        await run_in_transaction(self.unit_of_work, operation, conflict_field="parking")
        logger.info(f"Parking {parking_id} '{parking.name}' deleted by owner {owner.id}")
        return parking.name

    async def list_owner_parkings(self, owner: User) -> Dict:
        if not owner.is_owner:
            raise AuthorizationError("Only owners can manage parkings.")
        return {
            "parkings": await self.parking_repo.list_by_owner(owner.id),
            "can_add": await self.can_add_parking(owner),
            "current_plan": owner.mode_compte,
            "is_premium": owner.is_premium,
        }

    async def get_parking(self, parking_id: int) -> Parking:
        parking = await self.parking_repo.get_by_id(parking_id)
        if parking is None:
            raise NotFoundError(f"Parking {parking_id} not found")
        return parking

    async def _owned_parking(self, owner: User, parking_id: int) -> Parking:
        parking = await self.get_parking(parking_id)
        if parking.owner_id != owner.id:
            raise AuthorizationError("You do not own this parking.")
        return parking

    @staticmethod
    def _check_capacity(total_spots: int):
        if total_spots < 1:
            raise ValidationError("total_spots", "A parking needs at least one spot.")

    @staticmethod
    def _normalize_schedule(
        is_24h: bool, opening_time: Optional[time], closing_time: Optional[time]
    ) -> Tuple[Optional[time], Optional[time]]:
        # 24h parkings carry no hours; otherwise hours come in pairs
        if is_24h:
            return None, None
        if (opening_time is None) != (closing_time is None):
            field = "closing_time" if closing_time is None else "opening_time"
            raise ValidationError(field, "Opening and closing times must be given together.")
        return opening_time, closing_time
