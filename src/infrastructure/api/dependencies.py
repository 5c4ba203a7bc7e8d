from typing import Optional

from fastapi import Depends, Header, HTTPException
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.services.parking_service import ParkingService
from src.application.services.reservation_service import ReservationService
from src.application.services.search_service import AvailabilitySearchService
from src.application.services.user_service import UserService
from src.application.services.vehicle_service import VehicleService
from src.domain.entities import User
from src.domain.errors import AuthorizationError, DomainError, NotFoundError, ValidationError
from src.infrastructure.persistence.database import get_async_db
from src.infrastructure.persistence.sqlalchemy_repositories import (
    SQLAlchemyUnitOfWork,
    SQLAlchemyUserRepository,
    SQLAlchemyParkingRepository,
    SQLAlchemyVehicleRepository,
    SQLAlchemyReservationRepository,
)


async def get_current_user(
    x_user_id: Optional[int] = Header(default=None),
    db: AsyncSession = Depends(get_async_db),
) -> User:
    """Resolve the caller from the ``X-User-Id`` header set by the auth gateway."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    user = await SQLAlchemyUserRepository(db).get_by_id(x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def get_reservation_service(db: AsyncSession = Depends(get_async_db)) -> ReservationService:
    return ReservationService(
        SQLAlchemyParkingRepository(db),
        SQLAlchemyVehicleRepository(db),
        SQLAlchemyReservationRepository(db),
        SQLAlchemyUnitOfWork(db),
    )


def get_parking_service(db: AsyncSession = Depends(get_async_db)) -> ParkingService:
    return ParkingService(
        SQLAlchemyParkingRepository(db),
        SQLAlchemyReservationRepository(db),
        SQLAlchemyUnitOfWork(db),
    )


def get_search_service(db: AsyncSession = Depends(get_async_db)) -> AvailabilitySearchService:
    return AvailabilitySearchService(SQLAlchemyParkingRepository(db))


def get_vehicle_service(db: AsyncSession = Depends(get_async_db)) -> VehicleService:
    return VehicleService(
        SQLAlchemyVehicleRepository(db),
        SQLAlchemyReservationRepository(db),
        SQLAlchemyUnitOfWork(db),
    )


def get_user_service(db: AsyncSession = Depends(get_async_db)) -> UserService:
    return UserService(SQLAlchemyUserRepository(db), SQLAlchemyUnitOfWork(db))


def http_error(exc: Exception) -> HTTPException:
    """Map a service exception onto the HTTP status the API documents."""
    if isinstance(exc, AuthorizationError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=exc.to_dict())
    if isinstance(exc, DomainError):
        logger.error(f"Unmapped domain error: {exc!r}")
    else:
        logger.exception(f"Unexpected error: {exc!r}")
    return HTTPException(status_code=500, detail="Internal error")
