"""Spot ledger: the only writer of a parking's ``available_spots``.

The counter lives on the parking row and is not recomputed from
reservations, so every component that occupies or frees a spot goes through
here. Each operation is one guarded UPDATE; callers own the transaction.
"""
from loguru import logger

from src.application.repositories import AbstractParkingRepository
from src.domain.entities import Parking
from src.domain.errors import ConsistencyError, NotFoundError


def resized_available_spots(available_spots: int, old_total: int, new_total: int) -> int:
    """Shift the free count by the capacity delta so occupied spots stay occupied."""
    return max(0, available_spots + (new_total - old_total))


class SpotLedger:
    def __init__(self, parking_repo: AbstractParkingRepository):
        self.parking_repo = parking_repo

    async def reserve(self, parking_id: int):
        """Take one spot. Callers check availability first; losing a race raises ConsistencyError."""
        if not await self.parking_repo.take_spot(parking_id):
            raise ConsistencyError(f"Parking {parking_id} had no spot left to take")
        logger.info(f"Spot taken on parking {parking_id}")

    async def release(self, parking_id: int) -> bool:
        """Give one spot back; a no-op when the parking is already empty."""
        released = await self.parking_repo.give_back_spot(parking_id)
        if released:
            logger.info(f"Spot released on parking {parking_id}")
        else:
            logger.warning(f"Release ignored on parking {parking_id}: already at full capacity")
        return released

    async def resize(self, parking_id: int, new_total: int) -> Parking:
        parking = await self.parking_repo.get_by_id(parking_id, for_update=True)
        if parking is None:
            raise NotFoundError(f"Parking {parking_id} not found")

        new_available = resized_available_spots(parking.available_spots, parking.total_spots, new_total)
        changed = await self.parking_repo.replace_capacity(
            parking_id,
            expected_total=parking.total_spots,
            expected_available=parking.available_spots,
            new_total=new_total,
            new_available=new_available,
        )
        if not changed:
            raise ConsistencyError(f"Parking {parking_id} capacity changed during resize")

        logger.info(
            f"Parking {parking_id} resized {parking.total_spots} -> {new_total}, "
            f"available {parking.available_spots} -> {new_available}"
        )
        parking.total_spots = new_total
        parking.available_spots = new_available
        return parking
