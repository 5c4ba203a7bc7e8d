"""Background expiry of stale pending reservations.

Listing reservations already expires the caller's own stale ones; this loop
frees spots held by drivers who never come back.
"""
import asyncio
from typing import Callable, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.services.reservation_service import ReservationService
from src.config.settings_env import settings
from src.infrastructure.persistence.sqlalchemy_repositories import (
    SQLAlchemyUnitOfWork,
    SQLAlchemyParkingRepository,
    SQLAlchemyVehicleRepository,
    SQLAlchemyReservationRepository,
)


async def sweep_once(session_factory: Callable[[], AsyncSession]) -> int:
    async with session_factory() as session:
        service = ReservationService(
            SQLAlchemyParkingRepository(session),
            SQLAlchemyVehicleRepository(session),
            SQLAlchemyReservationRepository(session),
            SQLAlchemyUnitOfWork(session),
        )
        return await service.expire_stale_reservations()


async def run_expiry_sweeper(
    session_factory: Callable[[], AsyncSession],
    interval_seconds: Optional[int] = None,
):
    interval = interval_seconds or settings.EXPIRY_SWEEP_INTERVAL_SECONDS
    logger.info(f"Expiry sweeper started, every {interval}s")
    while True:
        try:
            expired = await sweep_once(session_factory)
            logger.debug(f"Expiry sweep done, {expired} reservation(s) expired")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # One failed sweep must not stop the next ones
            logger.exception(f"Expiry sweep failed: {e}")
        await asyncio.sleep(interval)
