import pytest
from datetime import time, timezone
from sqlalchemy import create_engine, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from src.infrastructure.persistence.models.models import Base, User, Parking, Vehicle, Reservation


@pytest.fixture(scope="function")
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def people(db_session):
    owner = User(name="Owner", email="owner@test.com", role="owner")
    driver = User(name="Driver", email="driver@test.com", role="driver")
    db_session.add_all([owner, driver])
    db_session.commit()
    return owner, driver


@pytest.fixture
def parking(db_session, people):
    owner, _ = people
    parking = Parking(
        user_id=owner.id, name="Lot", latitude=36.8, longitude=10.1,
        total_spots=4, available_spots=4, price_per_hour=2.0,
        opening_time=time(8, 0), closing_time=time(20, 0),
    )
    db_session.add(parking)
    db_session.commit()
    return parking


def test_parking_model(db_session, parking):
    db_session.refresh(parking)

    assert parking.id is not None
    assert parking.status == "active"
    assert parking.is_24h is False
    assert parking.opening_time == time(8, 0)
    assert parking.created_at.tzinfo == timezone.utc
    assert parking.owner.email == "owner@test.com"


def test_available_spots_cannot_exceed_total(db_session, parking):
    with pytest.raises(IntegrityError):
        db_session.execute(update(Parking).where(Parking.id == parking.id).values(available_spots=5))
        db_session.commit()


def test_available_spots_cannot_go_negative(db_session, parking):
    with pytest.raises(IntegrityError):
        db_session.execute(update(Parking).where(Parking.id == parking.id).values(available_spots=-1))
        db_session.commit()


def test_one_primary_vehicle_per_user(db_session, people):
    _, driver = people
    db_session.add(Vehicle(user_id=driver.id, license_plate="AB-123-CD", is_primary=True))
    db_session.add(Vehicle(user_id=driver.id, license_plate="AB-124-CD", is_primary=False))
    db_session.commit()

    db_session.add(Vehicle(user_id=driver.id, license_plate="AB-125-CD", is_primary=True))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_license_plate_unique(db_session, people):
    owner, driver = people
    db_session.add(Vehicle(user_id=driver.id, license_plate="AB-123-CD"))
    db_session.commit()

    db_session.add(Vehicle(user_id=owner.id, license_plate="AB-123-CD"))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_one_holding_reservation_per_vehicle(db_session, people, parking):
    _, driver = people
    vehicle = Vehicle(user_id=driver.id, license_plate="AB-123-CD", is_primary=True)
    db_session.add(vehicle)
    db_session.commit()

    db_session.add(Reservation(user_id=driver.id, parking_id=parking.id, vehicle_id=vehicle.id,
                               status="cancelled_user"))
    db_session.add(Reservation(user_id=driver.id, parking_id=parking.id, vehicle_id=vehicle.id,
                               status="pending"))
    db_session.commit()

    db_session.add(Reservation(user_id=driver.id, parking_id=parking.id, vehicle_id=vehicle.id,
                               status="active"))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_reservation_status_check(db_session, people, parking):
    _, driver = people
    vehicle = Vehicle(user_id=driver.id, license_plate="AB-123-CD")
    db_session.add(vehicle)
    db_session.commit()

    db_session.add(Reservation(user_id=driver.id, parking_id=parking.id, vehicle_id=vehicle.id,
                               status="lost"))
    with pytest.raises(IntegrityError):
        db_session.commit()


def test_reservation_defaults(db_session, people, parking):
    _, driver = people
    vehicle = Vehicle(user_id=driver.id, license_plate="AB-123-CD")
    db_session.add(vehicle)
    db_session.commit()
    reservation = Reservation(user_id=driver.id, parking_id=parking.id, vehicle_id=vehicle.id)
    db_session.add(reservation)
    db_session.commit()
    db_session.refresh(reservation)

    assert reservation.status == "pending"
    assert reservation.reserved_at.tzinfo == timezone.utc
