from enum import Enum


class UserRole(str, Enum):
    OWNER = "owner"
    DRIVER = "driver"


class AccountMode(str, Enum):
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"


class ParkingStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ReservationStatus(str, Enum):
    PENDING = "pending"          # holds a spot, driver not in the lot yet
    ACTIVE = "active"            # driver entered the lot
    COMPLETED = "completed"
    CANCELLED_AUTO = "cancelled_auto"
    CANCELLED_USER = "cancelled_user"


# Statuses that occupy a spot on the parking
HOLDING_STATUSES = (ReservationStatus.PENDING, ReservationStatus.ACTIVE)

TERMINAL_STATUSES = (
    ReservationStatus.COMPLETED,
    ReservationStatus.CANCELLED_AUTO,
    ReservationStatus.CANCELLED_USER,
)

CANCELLED_STATUSES = (ReservationStatus.CANCELLED_AUTO, ReservationStatus.CANCELLED_USER)


class VehicleType(str, Enum):
    SEDAN = "sedan"
    SUV = "suv"
    HATCHBACK = "hatchback"
    TRUCK = "truck"
    VAN = "van"
    MOTORCYCLE = "motorcycle"
    ELECTRIC = "electric"
    HYBRID = "hybrid"
    OTHER = "other"
