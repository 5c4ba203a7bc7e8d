"""Booking eligibility gate.

Pure functions of a parking's current state. The same checks render the
"can I book?" hint on the booking page and guard reservation creation, so
both always agree.
"""
from datetime import datetime, time
from typing import Optional

from src.domain.entities import Parking
from src.shared.utils import local_timezone, utcnow

REASON_NOT_ACTIVE = "This parking is not active for reservations."
REASON_NO_SPOTS = "No spots available in this parking."
REASON_CLOSED = "This parking is currently closed."
REASON_NO_VEHICLES = "You must add a vehicle to your account first."


class BookingEligibility:
    def __init__(self, can_book: bool, reason: Optional[str] = None):
        self.can_book = can_book
        self.reason = reason

    def __bool__(self) -> bool:
        return self.can_book

    def __repr__(self) -> str:
        return f"<BookingEligibility can_book={self.can_book} reason={self.reason!r}>"


def local_clock(now: Optional[datetime] = None) -> time:
    """Current wall-clock time, to the minute, in the parkings' zone."""
    now = now or utcnow()
    return now.astimezone(local_timezone()).time().replace(second=0, microsecond=0)


def is_within_opening_hours(opening_time: Optional[time], closing_time: Optional[time], clock: time) -> bool:
    """Half-open ``[opening, closing)`` window; a window ending before it starts spans midnight."""
    if opening_time is None or closing_time is None:
        return False
    if opening_time <= closing_time:
        return opening_time <= clock < closing_time
    return clock >= opening_time or clock < closing_time


def is_open_now(parking: Parking, now: Optional[datetime] = None) -> bool:
    if parking.is_24h:
        return True
    return is_within_opening_hours(parking.opening_time, parking.closing_time, local_clock(now))


def evaluate_booking(parking: Parking, has_vehicles: bool, now: Optional[datetime] = None) -> BookingEligibility:
    """Whether ``parking`` accepts a new reservation right now.

    Reasons are reported by priority: not active, no spots, closed, and
    finally a requester without any vehicle.
    """
    if not parking.is_active:
        return BookingEligibility(False, REASON_NOT_ACTIVE)
    if parking.available_spots <= 0:
        return BookingEligibility(False, REASON_NO_SPOTS)
    if not is_open_now(parking, now):
        return BookingEligibility(False, REASON_CLOSED)
    if not has_vehicles:
        return BookingEligibility(False, REASON_NO_VEHICLES)
    return BookingEligibility(True)
