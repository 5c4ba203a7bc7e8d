import asyncio
import contextlib
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config.settings_env import settings
from src.infrastructure.api.routers import parkings, reservations, users, vehicles
from src.infrastructure.persistence.database import AsyncSessionLocal
from src.infrastructure.workers.expiry_sweeper import run_expiry_sweeper
from src.shared.utils import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper = None
    if settings.EXPIRY_SWEEP_ENABLED:
        sweeper = asyncio.create_task(run_expiry_sweeper(AsyncSessionLocal))
    yield
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        logger.info("Expiry sweeper stopped")


def create_app() -> FastAPI:
    app = FastAPI(title="Parking Marketplace API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(parkings.router)
    app.include_router(reservations.router)
    app.include_router(vehicles.router)
    app.include_router(users.router)

    @app.get("/")
    async def read_root():
        return {"message": "Parking Marketplace API is running"}

    return app


app = create_app()
