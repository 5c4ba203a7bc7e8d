import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool
import tempfile
import os
from datetime import datetime, time, timezone

from src.infrastructure.persistence.models.models import Base
from src.infrastructure.persistence.sqlalchemy_repositories import (
    SQLAlchemyUnitOfWork,
    SQLAlchemyUserRepository,
    SQLAlchemyParkingRepository,
    SQLAlchemyVehicleRepository,
    SQLAlchemyReservationRepository,
)
from src.application.services.parking_service import ParkingService
from src.application.services.reservation_service import ReservationService
from src.application.services.search_service import AvailabilitySearchService
from src.application.services.vehicle_service import VehicleService
from src.application.services.user_service import UserService
from src.domain.common import AccountMode, ParkingStatus, UserRole
from src.domain.entities import User, Parking, Vehicle

# A fixed Tuesday noon, UTC
NOW = datetime(2026, 3, 3, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
async def test_db():
    """Create a test database for each test function."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as tmp_file:
        test_db_path = tmp_file.name

    # NullPool avoids connections leaking between tests
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{test_db_path}",
        poolclass=NullPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    yield async_session_maker

    await engine.dispose()
    os.unlink(test_db_path)


@pytest.fixture
async def db_session(test_db):
    """Create a database session for a test."""
    async with test_db() as session:
        yield session
        await session.rollback()


@pytest.fixture
def user_repo(db_session):
    return SQLAlchemyUserRepository(db_session)


@pytest.fixture
def parking_repo(db_session):
    return SQLAlchemyParkingRepository(db_session)


@pytest.fixture
def vehicle_repo(db_session):
    return SQLAlchemyVehicleRepository(db_session)


@pytest.fixture
def reservation_repo(db_session):
    return SQLAlchemyReservationRepository(db_session)


@pytest.fixture
def unit_of_work(db_session):
    return SQLAlchemyUnitOfWork(db_session)


@pytest.fixture
def reservation_service(parking_repo, vehicle_repo, reservation_repo, unit_of_work):
    return ReservationService(parking_repo, vehicle_repo, reservation_repo, unit_of_work)


@pytest.fixture
def parking_service(parking_repo, reservation_repo, unit_of_work):
    return ParkingService(parking_repo, reservation_repo, unit_of_work)


@pytest.fixture
def search_service(parking_repo):
    return AvailabilitySearchService(parking_repo)


@pytest.fixture
def vehicle_service(vehicle_repo, reservation_repo, unit_of_work):
    return VehicleService(vehicle_repo, reservation_repo, unit_of_work)


@pytest.fixture
def user_service(user_repo, unit_of_work):
    return UserService(user_repo, unit_of_work)


@pytest.fixture
async def owner(user_repo, db_session):
    user = await user_repo.add(User(
        name="Sami Owner", email="owner@test.com", role=UserRole.OWNER,
        mode_compte=AccountMode.PREMIUM, company_name="Sami Parkings",
    ))
    await db_session.commit()
    return user


@pytest.fixture
async def basic_owner(user_repo, db_session):
    user = await user_repo.add(User(name="Basic Owner", email="basic@test.com", role=UserRole.OWNER))
    await db_session.commit()
    return user


@pytest.fixture
async def driver(user_repo, db_session):
    user = await user_repo.add(User(name="Dina Driver", email="driver@test.com", role=UserRole.DRIVER))
    await db_session.commit()
    return user


@pytest.fixture
async def other_driver(user_repo, db_session):
    user = await user_repo.add(User(name="Omar Driver", email="omar@test.com", role=UserRole.DRIVER))
    await db_session.commit()
    return user


@pytest.fixture
def make_parking(parking_repo, db_session, owner):
    """Factory for parkings owned by ``owner``; open 24/7 with a 30 minute cancel window by default."""

    async def _make(**overrides) -> Parking:
        fields = dict(
            owner_id=owner.id,
            name="Central Parking",
            latitude=36.8065,
            longitude=10.1815,
            total_spots=10,
            available_spots=10,
            price_per_hour=2.5,
            address_label="Avenue Habib Bourguiba, Tunis, Tunisia",
            is_24h=True,
            cancel_time_limit=30,
            status=ParkingStatus.ACTIVE,
        )
        fields.update(overrides)
        parking = await parking_repo.add(Parking(**fields))
        await db_session.commit()
        return parking

    return _make


@pytest.fixture
async def parking(make_parking):
    return await make_parking()


@pytest.fixture
def make_vehicle(vehicle_repo, db_session):
    async def _make(user, license_plate, is_primary=False, **overrides) -> Vehicle:
        vehicle = await vehicle_repo.add(Vehicle(
            user_id=user.id, license_plate=license_plate, is_primary=is_primary, **overrides
        ))
        await db_session.commit()
        return vehicle

    return _make


@pytest.fixture
async def vehicle(make_vehicle, driver):
    return await make_vehicle(driver, "AB-123-CD", is_primary=True, brand="Toyota", model="Corolla")


@pytest.fixture
def closed_hours():
    """Opening hours that do not include NOW (12:00 UTC)."""
    return dict(is_24h=False, opening_time=time(18, 0), closing_time=time(23, 0))
