from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from src.application.repositories import (
    AbstractUnitOfWork,
    AbstractParkingRepository,
    AbstractVehicleRepository,
    AbstractReservationRepository,
)
from src.application.services.spot_ledger import SpotLedger
from src.application.services.transactions import run_in_transaction
from src.domain.common import ReservationStatus, CANCELLED_STATUSES, TERMINAL_STATUSES
from src.domain.eligibility import evaluate_booking
from src.domain.entities import User, Reservation
from src.domain.errors import (
    AuthorizationError,
    ConsistencyError,
    NotFoundError,
    ReservationExpiredError,
    ValidationError,
)
from src.shared.utils import utcnow


class ReservationService:
    """Reservation lifecycle: create, cancel and expire, each with its ledger side effect.

    pending -> cancelled_user   driver cancels before the deadline
    pending -> cancelled_auto   deadline passed (on listing, on a late cancel, or in the background sweep)
    """

    def __init__(
        self,
        parking_repo: AbstractParkingRepository,
        vehicle_repo: AbstractVehicleRepository,
        reservation_repo: AbstractReservationRepository,
        unit_of_work: AbstractUnitOfWork,
    ):
        self.parking_repo = parking_repo
        self.vehicle_repo = vehicle_repo
        self.reservation_repo = reservation_repo
        self.unit_of_work = unit_of_work
        self.spot_ledger = SpotLedger(parking_repo)

    async def booking_context(self, driver: User, parking_id: int, now: Optional[datetime] = None) -> Dict:
        """Everything the booking page needs, including why booking is refused."""
        if not driver.is_driver:
            raise AuthorizationError("Only drivers can reserve a parking.")

        parking = await self.parking_repo.get_by_id(parking_id)
        if parking is None:
            raise NotFoundError(f"Parking {parking_id} not found")

        vehicles = await self.vehicle_repo.list_by_user(driver.id)
        eligibility = evaluate_booking(parking, has_vehicles=bool(vehicles), now=now)
        return {
            "parking": parking,
            "vehicles": vehicles,
            "can_book": eligibility.can_book,
            "not_bookable_reason": eligibility.reason,
        }

    async def create_reservation(
        self, driver: User, parking_id: int, vehicle_id: int, now: Optional[datetime] = None
    ) -> Reservation:
        if not driver.is_driver:
            raise AuthorizationError("Only drivers can reserve a parking.")
        now = now or utcnow()

        async def operation() -> Reservation:
            parking = await self.parking_repo.get_by_id(parking_id, for_update=True)
            if parking is None:
                raise NotFoundError(f"Parking {parking_id} not found")

            vehicle = await self.vehicle_repo.get_by_id(vehicle_id, for_update=True)
            if vehicle is None or vehicle.user_id != driver.id:
                raise ValidationError("vehicle_id", "The selected vehicle is invalid.")

            eligibility = evaluate_booking(parking, has_vehicles=True, now=now)
            if not eligibility:
                raise ValidationError("reservation", eligibility.reason)

            if await self.reservation_repo.vehicle_has_holding_reservation(vehicle.id):
                raise ValidationError("vehicle_id", "This vehicle already has a reservation in progress.")

            reservation = await self.reservation_repo.add(
                Reservation(
                    user_id=driver.id,
                    parking_id=parking.id,
                    vehicle_id=vehicle.id,
                    status=ReservationStatus.PENDING,
                    reserved_at=now,
                )
            )
            await self.spot_ledger.reserve(parking.id)
            return reservation

        try:
            reservation = await run_in_transaction(self.unit_of_work, operation)
        except ValidationError as exc:
            logger.warning(f"Reservation refused for driver {driver.id} on parking {parking_id}: {exc.message}")
            raise

        logger.info(
            f"Reservation {reservation.id} created: driver {driver.id}, parking {parking_id}, vehicle {vehicle_id}"
        )
        return reservation

    async def cancel_reservation(
        self, requester: User, reservation_id: int, now: Optional[datetime] = None
    ) -> Reservation:
        """Cancel a pending reservation on behalf of its driver.

        A cancel that arrives after the deadline still frees the spot, but as
        an expiry: the reservation becomes ``cancelled_auto`` and the caller
        gets ReservationExpiredError.
        """
        now = now or utcnow()

        async def operation() -> Reservation:
            reservation = await self.reservation_repo.get_by_id(reservation_id)
            if reservation is None:
                raise NotFoundError(f"Reservation {reservation_id} not found")
            if reservation.user_id != requester.id:
                raise AuthorizationError("You cannot cancel this reservation.")

            if reservation.status in TERMINAL_STATUSES:
                raise ValidationError("reservation", "This reservation can no longer be cancelled.")
            if reservation.status == ReservationStatus.ACTIVE:
                raise ValidationError(
                    "reservation", "The vehicle has already entered the parking. Cancellation is impossible."
                )

            parking = await self.parking_repo.get_by_id(reservation.parking_id, for_update=True)
            deadline = reservation.cancellation_deadline(parking.cancel_time_limit if parking else None)
            if deadline is None:
                raise ValidationError("reservation", "This reservation cannot be cancelled automatically.")

            target = ReservationStatus.CANCELLED_AUTO if now >= deadline else ReservationStatus.CANCELLED_USER
            if not await self.reservation_repo.transition(reservation.id, ReservationStatus.PENDING, target):
                raise ConsistencyError(f"Reservation {reservation.id} changed status during cancel")
            await self.spot_ledger.release(parking.id)
            reservation.status = target
            return reservation

        reservation = await run_in_transaction(self.unit_of_work, operation)

        if reservation.status == ReservationStatus.CANCELLED_AUTO:
            logger.info(f"Reservation {reservation.id} expired on a late cancel by driver {requester.id}")
            raise ReservationExpiredError(
                "reservation", "The cancellation window has passed. The reservation has expired."
            )

        logger.info(f"Reservation {reservation.id} cancelled by driver {requester.id}")
        return reservation

    async def list_for_driver(self, driver: User, now: Optional[datetime] = None) -> List[Dict]:
        """The driver's live reservations, newest first, with a countdown for pending ones.

        Pending reservations past their deadline are expired on the way and
        left out, as are cancelled ones.
        """
        now = now or utcnow()
        reservations = await self.reservation_repo.list_by_user(driver.id)

        listed = []
        for reservation in reservations:
            if reservation.status in CANCELLED_STATUSES:
                continue

            remaining_seconds = None
            deadline = self._pending_deadline(reservation)
            if deadline is not None:
                if now >= deadline:
                    if await self._expire(reservation):
                        continue
                    # Someone else moved it first; show its current state
                    reservation = await self.reservation_repo.get_by_id(reservation.id)
                    if reservation is None or reservation.status in CANCELLED_STATUSES:
                        continue
                else:
                    remaining_seconds = max(0, int((deadline - now).total_seconds()))

            listed.append(self._present(reservation, remaining_seconds))
        return listed

    async def expire_stale_reservations(self, now: Optional[datetime] = None) -> int:
        """Expire every pending reservation past its deadline, whoever owns it."""
        now = now or utcnow()
        expired = 0
        for reservation in await self.reservation_repo.list_pending_with_deadline():
            deadline = self._pending_deadline(reservation)
            if deadline is not None and now >= deadline and await self._expire(reservation):
                expired += 1
        if expired:
            logger.info(f"Expired {expired} stale reservation(s)")
        return expired

    def _pending_deadline(self, reservation: Reservation) -> Optional[datetime]:
        if reservation.status != ReservationStatus.PENDING or reservation.parking is None:
            return None
        return reservation.cancellation_deadline(reservation.parking.cancel_time_limit)

    async def _expire(self, reservation: Reservation) -> bool:
        """pending -> cancelled_auto plus one released spot, in its own transaction."""

        async def operation() -> bool:
            moved = await self.reservation_repo.transition(
                reservation.id, ReservationStatus.PENDING, ReservationStatus.CANCELLED_AUTO
            )
            if moved:
                await self.spot_ledger.release(reservation.parking_id)
            return moved

        moved = await run_in_transaction(self.unit_of_work, operation)
        if moved:
            reservation.status = ReservationStatus.CANCELLED_AUTO
            logger.info(f"Reservation {reservation.id} expired, spot released on parking {reservation.parking_id}")
        return moved

    @staticmethod
    def _present(reservation: Reservation, remaining_seconds: Optional[int]) -> Dict:
        parking = reservation.parking
        vehicle = reservation.vehicle
        return {
            "id": reservation.id,
            "status": reservation.status,
            "reserved_at": reservation.reference_time,
            "remaining_seconds": remaining_seconds,
            "parking": {
                "name": parking.name if parking else None,
                "address_label": parking.address_label if parking else None,
                "cancel_time_limit": parking.cancel_time_limit if parking else None,
            },
            "vehicle": {
                "license_plate": vehicle.license_plate if vehicle else None,
                "brand": vehicle.brand if vehicle else None,
                "model": vehicle.model if vehicle else None,
            },
        }
