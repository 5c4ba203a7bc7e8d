from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Development
    DEV_MODE: bool = Field(default=True, description="Enable debug mode")

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./parking.db", description="Database connection URL")
    ASYNC_DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./parking.db", description="Async database URL")

    # FastAPI
    FASTAPI_HOST: str = Field(default="localhost", description="FastAPI host")
    FASTAPI_PORT: int = Field(default=8080, description="FastAPI port")

    # Opening hours are compared against the wall clock of this zone
    LOCAL_TIMEZONE: str = Field(default="UTC", description="IANA zone used for opening hours")

    # Search
    SEARCH_PAGE_SIZE: int = Field(default=12, description="Parkings per search page")
    DEFAULT_SEARCH_RADIUS_KM: float = Field(default=10.0, description="Radius used when none is given")
    EARTH_RADIUS_KM: float = Field(default=6371.0, description="Earth radius for distance computation")

    # Commercial limits
    BASIC_PARKING_LIMIT: int = Field(default=3, description="Max parkings for a BASIC owner")
    MAX_VEHICLES_PER_DRIVER: int = Field(default=5, description="Max vehicles per driver")

    # Reservation expiry
    EXPIRY_SWEEP_ENABLED: bool = Field(default=True, description="Run the background expiry sweep")
    EXPIRY_SWEEP_INTERVAL_SECONDS: int = Field(default=60, description="Seconds between background sweeps")


# Create settings instance
settings = Settings()
