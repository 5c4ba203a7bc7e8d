import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from src.infrastructure.persistence.cleanup import reconcile_spot_ledger
from src.infrastructure.persistence.models.models import Base, User, Parking, Vehicle, Reservation


@pytest.fixture(scope="function")
def engine_with_drift():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        owner = User(name="Owner", email="owner@test.com", role="owner")
        driver = User(name="Driver", email="driver@test.com", role="driver")
        session.add_all([owner, driver])
        session.flush()

        # Counter says 10 free but two spots are held
        drifted = Parking(user_id=owner.id, name="Drifted", latitude=0, longitude=0,
                          total_spots=10, available_spots=10, price_per_hour=1)
        healthy = Parking(user_id=owner.id, name="Healthy", latitude=0, longitude=0,
                          total_spots=5, available_spots=5, price_per_hour=1)
        session.add_all([drifted, healthy])
        session.flush()

        cars = [Vehicle(user_id=driver.id, license_plate=f"AB-12{i}-CD") for i in range(3)]
        session.add_all(cars)
        session.flush()
        session.add_all([
            Reservation(user_id=driver.id, parking_id=drifted.id, vehicle_id=cars[0].id, status="pending"),
            Reservation(user_id=driver.id, parking_id=drifted.id, vehicle_id=cars[1].id, status="active"),
            Reservation(user_id=driver.id, parking_id=drifted.id, vehicle_id=cars[2].id, status="cancelled_user"),
        ])
        session.commit()
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)


def test_reconcile_fixes_drifted_counter(engine_with_drift):
    corrected = reconcile_spot_ledger(engine_with_drift)

    assert corrected == 1
    with Session(engine_with_drift) as session:
        spots = {p.name: p.available_spots for p in session.query(Parking).all()}
    assert spots == {"Drifted": 8, "Healthy": 5}


def test_reconcile_is_idempotent(engine_with_drift):
    reconcile_spot_ledger(engine_with_drift)

    assert reconcile_spot_ledger(engine_with_drift) == 0
