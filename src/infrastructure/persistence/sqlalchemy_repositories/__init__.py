from .sqlalchemy_repositories import (
    SQLAlchemyUnitOfWork,
    SQLAlchemyUserRepository,
    SQLAlchemyParkingRepository,
    SQLAlchemyVehicleRepository,
    SQLAlchemyReservationRepository,
)

__all__ = [
    "SQLAlchemyUnitOfWork",
    "SQLAlchemyUserRepository",
    "SQLAlchemyParkingRepository",
    "SQLAlchemyVehicleRepository",
    "SQLAlchemyReservationRepository",
]
