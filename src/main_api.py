"""Serve the parking marketplace API."""
import uvicorn

from src.config.settings_env import settings
from src.infrastructure.persistence.database import init_db

if __name__ == "__main__":
    init_db()
    uvicorn.run(
        "src.infrastructure.api.main:app",
        host=settings.FASTAPI_HOST,
        port=settings.FASTAPI_PORT,
        reload=settings.DEV_MODE,
    )
