from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from src.application.services.formatting import format_parking
from src.application.services.parking_service import ParkingService
from src.application.services.search_service import AvailabilitySearchService
from src.domain.entities import User
from src.domain.search import SearchFilters
from src.infrastructure.api.dependencies import (
    get_current_user,
    get_parking_service,
    get_search_service,
    http_error,
)
from src.infrastructure.api.schemas.parking import (
    ParkingCreate, ParkingUpdate, ParkingResponse, ParkingMessage,
    OwnerParkings, SearchResponse, Suggestion, StatusToggle, Message
)

router = APIRouter(prefix="/api/parkings", tags=["parkings"])


# Static paths first so they are not captured by /{parking_id}
@router.get("/available", response_model=SearchResponse)
async def search_available_parkings(
    q: Optional[str] = None,
    name: Optional[str] = None,
    city: Optional[str] = None,
    address: Optional[str] = None,
    min_price: Optional[float] = Query(default=None, ge=0),
    max_price: Optional[float] = Query(default=None, ge=0),
    min_spots: Optional[int] = Query(default=None, ge=0),
    available_only: bool = False,
    open_now: bool = False,
    latitude: Optional[float] = Query(default=None, ge=-90, le=90),
    longitude: Optional[float] = Query(default=None, ge=-180, le=180),
    radius: Optional[float] = Query(default=None, ge=0),
    sort: Optional[str] = None,
    order: Optional[str] = None,
    page: int = 1,
    service: AvailabilitySearchService = Depends(get_search_service),
):
    filters = SearchFilters(
        q=q, name=name, city=city, address=address,
        min_price=min_price, max_price=max_price, min_spots=min_spots,
        available_only=available_only, open_now=open_now,
        latitude=latitude, longitude=longitude, radius=radius,
        sort=sort, order=order, page=page,
    )
    try:
        return await service.search(filters)
    except Exception as e:
        raise http_error(e)


@router.get("/suggestions", response_model=List[Suggestion])
async def get_suggestions(
    q: str = "",
    service: AvailabilitySearchService = Depends(get_search_service),
):
    try:
        return await service.suggestions(q)
    except Exception as e:
        raise http_error(e)


@router.get("", response_model=OwnerParkings)
async def list_my_parkings(
    user: User = Depends(get_current_user),
    service: ParkingService = Depends(get_parking_service),
):
    try:
        data = await service.list_owner_parkings(user)
        data["parkings"] = [format_parking(p) for p in data["parkings"]]
        return data
    except Exception as e:
        raise http_error(e)


@router.post("", response_model=ParkingMessage, status_code=201)
async def create_parking(
    parking_data: ParkingCreate,
    user: User = Depends(get_current_user),
    service: ParkingService = Depends(get_parking_service),
):
    try:
        parking = await service.create_parking(user, **parking_data.model_dump())
        return {
            "message": f'Parking "{parking.name}" created successfully!',
            "parking": format_parking(parking),
        }
    except Exception as e:
        raise http_error(e)


@router.get("/{parking_id}", response_model=ParkingResponse)
async def get_parking(
    parking_id: int,
    service: ParkingService = Depends(get_parking_service),
):
    try:
        return format_parking(await service.get_parking(parking_id))
    except Exception as e:
        raise http_error(e)


@router.put("/{parking_id}", response_model=ParkingMessage)
async def update_parking(
    parking_id: int,
    parking_data: ParkingUpdate,
    user: User = Depends(get_current_user),
    service: ParkingService = Depends(get_parking_service),
):
    try:
        parking = await service.update_parking(user, parking_id, **parking_data.model_dump())
        return {
            "message": f'Parking "{parking.name}" updated successfully!',
            "parking": format_parking(parking),
        }
    except Exception as e:
        raise http_error(e)


@router.delete("/{parking_id}", response_model=Message)
async def delete_parking(
    parking_id: int,
    user: User = Depends(get_current_user),
    service: ParkingService = Depends(get_parking_service),
):
    try:
        name = await service.delete_parking(user, parking_id)
        return {"message": f'Parking "{name}" deleted successfully!'}
    except Exception as e:
        raise http_error(e)


@router.post("/{parking_id}/toggle-status", response_model=StatusToggle)
async def toggle_parking_status(
    parking_id: int,
    user: User = Depends(get_current_user),
    service: ParkingService = Depends(get_parking_service),
):
    try:
        parking, message = await service.toggle_status(user, parking_id)
        return {"message": message, "status": parking.status}
    except Exception as e:
        raise http_error(e)
