from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, Boolean, ForeignKey, Index, CheckConstraint, Text, text
from sqlalchemy.orm import declarative_base, relationship
from src.shared.custom_types import UTCDateTime, ClockTime

Base = declarative_base()


def _now():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(String(20), nullable=False)  # owner, driver
    mode_compte = Column(String(20), nullable=False, default="BASIC")  # BASIC, PREMIUM
    company_name = Column(String(255), nullable=True)
    created_at = Column(UTCDateTime, default=_now)

    parkings = relationship("Parking", back_populates="owner")
    vehicles = relationship("Vehicle", back_populates="user")
    reservations = relationship("Reservation", back_populates="driver")


class Parking(Base):
    __tablename__ = "parkings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address_label = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True, index=True)
    total_spots = Column(Integer, nullable=False, default=1)
    available_spots = Column(Integer, nullable=False, default=1)
    price_per_hour = Column(Float, nullable=False, default=0.0)
    opening_time = Column(ClockTime, nullable=True)
    closing_time = Column(ClockTime, nullable=True)
    is_24h = Column(Boolean, nullable=False, default=False)
    cancel_time_limit = Column(Integer, nullable=True)  # minutes
    status = Column(String(20), nullable=False, default="active")  # active, inactive
    created_at = Column(UTCDateTime, default=_now)
    updated_at = Column(UTCDateTime, default=_now, onupdate=_now)

    owner = relationship("User", back_populates="parkings")
    reservations = relationship("Reservation", back_populates="parking")

    __table_args__ = (
        CheckConstraint("total_spots >= 1", name="ck_parking_total_spots"),
        CheckConstraint(
            "available_spots >= 0 AND available_spots <= total_spots",
            name="ck_parking_available_spots",
        ),
        CheckConstraint("price_per_hour >= 0", name="ck_parking_price"),
    )


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    license_plate = Column(String(20), unique=True, index=True, nullable=False)
    brand = Column(String(50), nullable=True)
    model = Column(String(50), nullable=True)
    color = Column(String(30), nullable=True)
    type = Column(String(30), nullable=True)
    year = Column(Integer, nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime, default=_now)

    user = relationship("User", back_populates="vehicles")
    reservations = relationship("Reservation", back_populates="vehicle")

    __table_args__ = (
        # One primary vehicle per user
        Index(
            "uq_vehicle_primary_per_user",
            "user_id",
            unique=True,
            sqlite_where=text("is_primary = 1"),
            postgresql_where=text("is_primary"),
        ),
    )


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    parking_id = Column(Integer, ForeignKey("parkings.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")
    reserved_at = Column(UTCDateTime, default=_now, nullable=False)
    created_at = Column(UTCDateTime, default=_now)

    driver = relationship("User", back_populates="reservations")
    parking = relationship("Parking", back_populates="reservations")
    vehicle = relationship("Vehicle", back_populates="reservations")

    __table_args__ = (
        # A vehicle holds at most one spot at a time
        Index(
            "uq_reservation_holding_vehicle",
            "vehicle_id",
            unique=True,
            sqlite_where=text("status IN ('pending', 'active')"),
            postgresql_where=text("status IN ('pending', 'active')"),
        ),
        CheckConstraint(
            "status IN ('pending', 'active', 'completed', 'cancelled_auto', 'cancelled_user')",
            name="ck_reservation_status",
        ),
    )
