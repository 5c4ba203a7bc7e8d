"""Maintenance: recompute each parking's free-spot counter from its reservations."""
from sqlalchemy import select, func, update
from sqlalchemy.orm import Session

from src.domain.common import HOLDING_STATUSES
from src.infrastructure.persistence.database import engine
from src.infrastructure.persistence.models.models import Parking, Reservation
from src.shared.utils import logger


def reconcile_spot_ledger(bind=None) -> int:
    """Set available_spots = max(0, total_spots - holding reservations) where it drifted.

    Returns the number of parkings corrected.
    """
    holding = [status.value for status in HOLDING_STATUSES]
    corrected = 0
    with Session(bind or engine) as session:
        held_counts = dict(
            session.execute(
                select(Reservation.parking_id, func.count(Reservation.id))
                .where(Reservation.status.in_(holding))
                .group_by(Reservation.parking_id)
            ).all()
        )

        for parking in session.execute(select(Parking)).scalars().all():
            expected = max(0, parking.total_spots - held_counts.get(parking.id, 0))
            if parking.available_spots != expected:
                logger.warning(
                    f"Parking {parking.id} counter drifted: {parking.available_spots} -> {expected}"
                )
                session.execute(
                    update(Parking).where(Parking.id == parking.id).values(available_spots=expected)
                )
                corrected += 1

        session.commit()
    logger.info(f"Reconciled spot ledger, {corrected} parking(s) corrected")
    return corrected


if __name__ == "__main__":
    reconcile_spot_ledger()
