from .abstract_repositories import (
    AbstractUnitOfWork,
    AbstractUserRepository,
    AbstractParkingRepository,
    AbstractVehicleRepository,
    AbstractReservationRepository,
)

__all__ = [
    "AbstractUnitOfWork",
    "AbstractUserRepository",
    "AbstractParkingRepository",
    "AbstractVehicleRepository",
    "AbstractReservationRepository",
]
