from datetime import datetime, time, timedelta, timezone
from unittest.mock import patch

from freezegun import freeze_time

from src.domain.common import ParkingStatus
from src.domain.eligibility import (
    evaluate_booking,
    is_open_now,
    is_within_opening_hours,
    local_clock,
    REASON_NOT_ACTIVE,
    REASON_NO_SPOTS,
    REASON_CLOSED,
    REASON_NO_VEHICLES,
)
from src.domain.entities import Parking


def make_parking(**overrides):
    fields = dict(
        owner_id=1, name="P", latitude=0.0, longitude=0.0,
        total_spots=5, available_spots=5, price_per_hour=1.0, is_24h=True,
    )
    fields.update(overrides)
    return Parking(**fields)


NOON = datetime(2026, 3, 3, 12, 0, tzinfo=timezone.utc)


def test_half_open_window():
    assert is_within_opening_hours(time(8), time(18), time(8)) is True
    assert is_within_opening_hours(time(8), time(18), time(17, 59)) is True
    assert is_within_opening_hours(time(8), time(18), time(18)) is False
    assert is_within_opening_hours(time(8), time(18), time(7, 59)) is False


def test_overnight_window():
    assert is_within_opening_hours(time(22), time(6), time(23, 30)) is True
    assert is_within_opening_hours(time(22), time(6), time(2)) is True
    assert is_within_opening_hours(time(22), time(6), time(6)) is False
    assert is_within_opening_hours(time(22), time(6), time(12)) is False


def test_unset_hours_are_closed():
    assert is_within_opening_hours(None, time(18), time(12)) is False
    assert is_open_now(make_parking(is_24h=False), NOON) is False


def test_24h_always_open():
    assert is_open_now(make_parking(is_24h=True, opening_time=time(8), closing_time=time(9)), NOON) is True


@freeze_time("2026-03-03 09:15:42")
def test_local_clock_defaults_to_now():
    assert local_clock() == time(9, 15)


def test_local_clock_follows_configured_zone():
    tunis = timezone(timedelta(hours=1))
    with patch("src.domain.eligibility.local_timezone", return_value=tunis):
        assert local_clock(NOON) == time(13, 0)


@freeze_time("2026-03-03 07:30:00")
def test_open_now_uses_wall_clock():
    parking = make_parking(is_24h=False, opening_time=time(8), closing_time=time(20))
    assert is_open_now(parking) is False


def test_bookable_parking():
    eligibility = evaluate_booking(make_parking(), has_vehicles=True, now=NOON)
    assert eligibility
    assert eligibility.reason is None


def test_reason_priority():
    # Every check fails: inactive wins
    everything_wrong = make_parking(
        status=ParkingStatus.INACTIVE, available_spots=0, is_24h=False,
    )
    assert evaluate_booking(everything_wrong, False, NOON).reason == REASON_NOT_ACTIVE

    full_and_closed = make_parking(available_spots=0, is_24h=False)
    assert evaluate_booking(full_and_closed, False, NOON).reason == REASON_NO_SPOTS

    closed = make_parking(is_24h=False, opening_time=time(18), closing_time=time(20))
    assert evaluate_booking(closed, False, NOON).reason == REASON_CLOSED

    eligibility = evaluate_booking(make_parking(), False, NOON)
    assert not eligibility
    assert eligibility.reason == REASON_NO_VEHICLES
