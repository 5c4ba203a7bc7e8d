from fastapi import APIRouter, Depends
from typing import List

from src.application.services.formatting import format_parking
from src.application.services.reservation_service import ReservationService
from src.domain.entities import User
from src.infrastructure.api.dependencies import get_current_user, get_reservation_service, http_error
from src.infrastructure.api.schemas.reservation import (
    ReservationCreate, ReservationListItem, ReservationMessage, BookingContext
)

router = APIRouter(prefix="/api", tags=["reservations"])


@router.get("/reservations", response_model=List[ReservationListItem])
async def list_my_reservations(
    user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    try:
        return await service.list_for_driver(user)
    except Exception as e:
        raise http_error(e)


@router.get("/parkings/{parking_id}/reservations/new", response_model=BookingContext)
async def booking_page(
    parking_id: int,
    user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    try:
        context = await service.booking_context(user, parking_id)
        context["parking"] = format_parking(context["parking"])
        return context
    except Exception as e:
        raise http_error(e)


@router.post("/parkings/{parking_id}/reservations", response_model=ReservationMessage, status_code=201)
async def create_reservation(
    parking_id: int,
    reservation_data: ReservationCreate,
    user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    try:
        reservation = await service.create_reservation(user, parking_id, reservation_data.vehicle_id)
        return {"message": "Reservation created successfully.", "reservation": reservation}
    except Exception as e:
        raise http_error(e)


@router.post("/reservations/{reservation_id}/cancel", response_model=ReservationMessage)
async def cancel_reservation(
    reservation_id: int,
    user: User = Depends(get_current_user),
    service: ReservationService = Depends(get_reservation_service),
):
    try:
        reservation = await service.cancel_reservation(user, reservation_id)
        return {"message": "Reservation cancelled successfully.", "reservation": reservation}
    except Exception as e:
        raise http_error(e)
