from fastapi import APIRouter, Depends

from src.application.services.user_service import UserService
from src.infrastructure.api.dependencies import get_user_service, http_error
from src.infrastructure.api.schemas.user import UserCreate, UserResponse

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=201)
async def register_user(
    user_data: UserCreate,
    service: UserService = Depends(get_user_service),
):
    try:
        return await service.register(**user_data.model_dump())
    except Exception as e:
        raise http_error(e)
