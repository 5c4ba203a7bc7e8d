from datetime import time

from sqlalchemy import create_engine, select, func
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import Session

from src.config.settings_env import settings
from src.infrastructure.persistence.models.models import Base, User, Parking, Vehicle
from src.shared.utils import logger

DATABASE_URL = settings.DATABASE_URL
ASYNC_DATABASE_URL = settings.ASYNC_DATABASE_URL

# Sync engine for initialization and maintenance commands
engine = create_engine(DATABASE_URL, connect_args={
                       "check_same_thread": False} if "sqlite" in DATABASE_URL else {})

# Async engine for application
async_engine = create_async_engine(ASYNC_DATABASE_URL, echo=False)
AsyncSessionLocal = async_sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def init_db(seed: bool = True):
    logger.info(f"Initializing database at: {DATABASE_URL}")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Tables created")

    if seed:
        seed_demo_data()


def seed_demo_data():
    """Create a demo owner, driver and a few parkings around Tunis on an empty database."""
    with Session(engine) as session:
        if session.scalar(select(func.count(User.id))):
            return

        owner = User(name="Demo Owner", email="owner@example.com", role="owner",
                     mode_compte="PREMIUM", company_name="Demo Parkings")
        driver = User(name="Demo Driver", email="driver@example.com", role="driver")
        session.add_all([owner, driver])
        session.flush()

        demo_parkings = [
            ("Lac Central", 36.8380, 10.2330, "Rue du Lac Windermere, Tunis, Tunisia", 40, 2.5, True, None, None),
            ("Avenue Bourguiba", 36.8000, 10.1860, "Avenue Habib Bourguiba, Tunis, Tunisia", 25, 3.0,
             False, time(7, 0), time(22, 0)),
            ("La Marsa Plage", 36.8780, 10.3240, "Corniche, La Marsa, Tunisia", 15, 2.0,
             False, time(8, 0), time(20, 0)),
        ]
        for name, lat, lng, address, spots, price, is_24h, opening, closing in demo_parkings:
            session.add(Parking(
                user_id=owner.id,
                name=name,
                latitude=lat,
                longitude=lng,
                address_label=address,
                total_spots=spots,
                available_spots=spots,
                price_per_hour=price,
                is_24h=is_24h,
                opening_time=opening,
                closing_time=closing,
                cancel_time_limit=30,
            ))

        session.add(Vehicle(user_id=driver.id, license_plate="123-TU-4567", brand="Peugeot",
                            model="208", color="White", type="hatchback", is_primary=True))
        session.commit()
        logger.info(f"Seeded demo data: {len(demo_parkings)} parkings")
