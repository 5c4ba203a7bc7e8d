from fastapi import APIRouter, Depends
from typing import List

from src.application.services.vehicle_service import VehicleService
from src.domain.entities import User
from src.infrastructure.api.dependencies import get_current_user, get_vehicle_service, http_error
from src.infrastructure.api.schemas.parking import Message
from src.infrastructure.api.schemas.vehicle import VehicleCreate, VehicleResponse

router = APIRouter(prefix="/api/vehicles", tags=["vehicles"])


@router.get("", response_model=List[VehicleResponse])
async def list_vehicles(
    user: User = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
):
    try:
        return await service.list_vehicles(user)
    except Exception as e:
        raise http_error(e)


@router.post("", response_model=VehicleResponse, status_code=201)
async def add_vehicle(
    vehicle_data: VehicleCreate,
    user: User = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
):
    try:
        return await service.add_vehicle(user, **vehicle_data.model_dump())
    except Exception as e:
        raise http_error(e)


@router.post("/{vehicle_id}/primary", response_model=VehicleResponse)
async def set_primary_vehicle(
    vehicle_id: int,
    user: User = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
):
    try:
        return await service.set_primary(user, vehicle_id)
    except Exception as e:
        raise http_error(e)


@router.delete("/{vehicle_id}", response_model=Message)
async def remove_vehicle(
    vehicle_id: int,
    user: User = Depends(get_current_user),
    service: VehicleService = Depends(get_vehicle_service),
):
    try:
        await service.remove_vehicle(user, vehicle_id)
        return {"message": "Vehicle removed successfully."}
    except Exception as e:
        raise http_error(e)
