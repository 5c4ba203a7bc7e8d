from typing import List, Optional

from loguru import logger

from src.application.repositories import (
    AbstractUnitOfWork,
    AbstractVehicleRepository,
    AbstractReservationRepository,
)
from src.application.services.transactions import run_in_transaction
from src.config.settings_env import settings
from src.domain.common import VehicleType
from src.domain.entities import User, Vehicle
from src.domain.errors import AuthorizationError, NotFoundError, ValidationError
from src.domain.license_plate import license_plate_error, normalize_license_plate


def _tidy(value: Optional[str]) -> Optional[str]:
    # "  toyota  " -> "Toyota"
    if value is None or not value.strip():
        return None
    return value.strip().lower().title()


def _vehicle_type(value) -> Optional[VehicleType]:
    if value is None or value == "":
        return None
    try:
        return VehicleType(value)
    except ValueError:
        raise ValidationError("type", "The selected vehicle type is invalid.")


class VehicleService:
    """Driver vehicles. Exactly one of them is primary once the driver has any."""

    def __init__(
        self,
        vehicle_repo: AbstractVehicleRepository,
        reservation_repo: AbstractReservationRepository,
        unit_of_work: AbstractUnitOfWork,
    ):
        self.vehicle_repo = vehicle_repo
        self.reservation_repo = reservation_repo
        self.unit_of_work = unit_of_work

    async def list_vehicles(self, driver: User) -> List[Vehicle]:
        if not driver.is_driver:
            raise AuthorizationError("Only drivers can access vehicles.")
        return await self.vehicle_repo.list_by_user(driver.id)

    async def add_vehicle(
        self,
        driver: User,
        license_plate: str,
        brand: Optional[str] = None,
        model: Optional[str] = None,
        color: Optional[str] = None,
        type: Optional[str] = None,
        year: Optional[int] = None,
        is_primary: bool = False,
    ) -> Vehicle:
        if not driver.is_driver:
            raise AuthorizationError("Only drivers can add vehicles.")

        count = await self.vehicle_repo.count_by_user(driver.id)
        if count >= settings.MAX_VEHICLES_PER_DRIVER:
            raise ValidationError(
                "vehicle", f"You can only register up to {settings.MAX_VEHICLES_PER_DRIVER} vehicles."
            )

        error = license_plate_error(license_plate)
        if error:
            raise ValidationError("license_plate", error)
        plate = normalize_license_plate(license_plate)
        vehicle_type = _vehicle_type(type)
        if await self.vehicle_repo.get_by_license_plate(plate):
            raise ValidationError("license_plate", "This license plate is already registered.")

        make_primary = count == 0 or is_primary

        async def operation() -> Vehicle:
            if make_primary:
                await self.vehicle_repo.clear_primary(driver.id)
            return await self.vehicle_repo.add(
                Vehicle(
                    user_id=driver.id,
                    license_plate=plate,
                    brand=_tidy(brand),
                    model=_tidy(model),
                    color=_tidy(color),
                    type=vehicle_type,
                    year=year,
                    is_primary=make_primary,
                )
            )

        try:
            vehicle = await run_in_transaction(
                self.unit_of_work, operation, conflict_field="license_plate", retries=0
            )
        except ValidationError:
            logger.warning(f"Vehicle {plate} rejected for driver {driver.id}")
            raise
        logger.info(f"Vehicle {vehicle.license_plate} added for driver {driver.id} (primary={vehicle.is_primary})")
        return vehicle

    async def set_primary(self, driver: User, vehicle_id: int) -> Vehicle:
        vehicle = await self._owned_vehicle(driver, vehicle_id)

        async def operation():
            await self.vehicle_repo.clear_primary(driver.id)
            await self.vehicle_repo.mark_primary(vehicle_id)

        await run_in_transaction(self.unit_of_work, operation, conflict_field="vehicle")
        vehicle.is_primary = True
        logger.info(f"Vehicle {vehicle_id} is now primary for driver {driver.id}")
        return vehicle

    async def remove_vehicle(self, driver: User, vehicle_id: int):
        """Delete a vehicle with no reservation history; the newest remaining one inherits primary."""
        vehicle = await self._owned_vehicle(driver, vehicle_id)

        if await self.reservation_repo.vehicle_has_holding_reservation(vehicle_id):
            raise ValidationError("vehicle", "This vehicle has a reservation in progress.")
        if await self.reservation_repo.vehicle_has_reservations(vehicle_id):
            raise ValidationError("vehicle", "This vehicle has reservation history and cannot be removed.")

        async def operation():
            await self.vehicle_repo.delete(vehicle_id)
            if vehicle.is_primary:
                remaining = await self.vehicle_repo.list_by_user(driver.id)
                if remaining:
                    await self.vehicle_repo.mark_primary(remaining[0].id)

        await run_in_transaction(self.unit_of_work, operation, conflict_field="vehicle")
        logger.info(f"Vehicle {vehicle_id} removed for driver {driver.id}")

    async def _owned_vehicle(self, driver: User, vehicle_id: int) -> Vehicle:
        vehicle = await self.vehicle_repo.get_by_id(vehicle_id)
        if vehicle is None:
            raise NotFoundError(f"Vehicle {vehicle_id} not found")
        if vehicle.user_id != driver.id:
            raise AuthorizationError("You do not own this vehicle.")
        return vehicle
