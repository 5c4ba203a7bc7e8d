from datetime import time
from typing import List, Optional, Tuple

from sqlalchemy import select, func, and_, or_, update, delete, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.application.repositories import (
    AbstractUnitOfWork,
    AbstractUserRepository,
    AbstractParkingRepository,
    AbstractVehicleRepository,
    AbstractReservationRepository,
)
from src.domain.common import (
    AccountMode,
    ParkingStatus,
    ReservationStatus,
    UserRole,
    HOLDING_STATUSES,
)
from src.domain.entities import User, Parking, Vehicle, Reservation
from src.domain.geo import BoundingBox
from src.domain.errors import ConsistencyError
from src.domain.search import SearchFilters
from src.infrastructure.persistence.models.models import (
    User as ORMUser,
    Parking as ORMParking,
    Vehicle as ORMVehicle,
    Reservation as ORMReservation,
)


def _to_user(orm_user: ORMUser) -> User:
    return User(
        id=orm_user.id,
        name=orm_user.name,
        email=orm_user.email,
        role=UserRole(orm_user.role),
        mode_compte=AccountMode(orm_user.mode_compte),
        company_name=orm_user.company_name,
        created_at=orm_user.created_at,
    )


def _to_parking(orm_parking: ORMParking, with_owner: bool = True) -> Parking:
    owner_name = None
    if with_owner and orm_parking.owner is not None:
        owner_name = orm_parking.owner.company_name or orm_parking.owner.name
    return Parking(
        id=orm_parking.id,
        owner_id=orm_parking.user_id,
        name=orm_parking.name,
        description=orm_parking.description,
        latitude=orm_parking.latitude,
        longitude=orm_parking.longitude,
        address_label=orm_parking.address_label,
        city=orm_parking.city,
        total_spots=orm_parking.total_spots,
        available_spots=orm_parking.available_spots,
        price_per_hour=orm_parking.price_per_hour,
        opening_time=orm_parking.opening_time,
        closing_time=orm_parking.closing_time,
        is_24h=orm_parking.is_24h,
        cancel_time_limit=orm_parking.cancel_time_limit,
        status=ParkingStatus(orm_parking.status),
        owner_name=owner_name,
        created_at=orm_parking.created_at,
        updated_at=orm_parking.updated_at,
    )


def _to_vehicle(orm_vehicle: ORMVehicle) -> Vehicle:
    return Vehicle(
        id=orm_vehicle.id,
        user_id=orm_vehicle.user_id,
        license_plate=orm_vehicle.license_plate,
        brand=orm_vehicle.brand,
        model=orm_vehicle.model,
        color=orm_vehicle.color,
        type=orm_vehicle.type,
        year=orm_vehicle.year,
        is_primary=orm_vehicle.is_primary,
        created_at=orm_vehicle.created_at,
    )


def _to_reservation(orm_reservation: ORMReservation, with_relations: bool = False) -> Reservation:
    reservation = Reservation(
        id=orm_reservation.id,
        user_id=orm_reservation.user_id,
        parking_id=orm_reservation.parking_id,
        vehicle_id=orm_reservation.vehicle_id,
        status=ReservationStatus(orm_reservation.status),
        reserved_at=orm_reservation.reserved_at,
        created_at=orm_reservation.created_at,
    )
    if with_relations:
        if orm_reservation.parking is not None:
            reservation.parking = _to_parking(orm_reservation.parking, with_owner=False)
        if orm_reservation.vehicle is not None:
            reservation.vehicle = _to_vehicle(orm_reservation.vehicle)
    return reservation


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()


class SQLAlchemyUserRepository(AbstractUserRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        orm_user = await self.session.get(ORMUser, user_id)
        return _to_user(orm_user) if orm_user else None

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(ORMUser).where(func.lower(ORMUser.email) == email.lower())
        )
        orm_user = result.scalars().first()
        return _to_user(orm_user) if orm_user else None

    async def add(self, user: User) -> User:
        orm_user = ORMUser(
            name=user.name,
            email=user.email,
            role=user.role.value,
            mode_compte=user.mode_compte.value,
            company_name=user.company_name,
        )
        self.session.add(orm_user)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConsistencyError(f"User {user.email} already exists") from exc
        await self.session.refresh(orm_user)
        return _to_user(orm_user)


class SQLAlchemyParkingRepository(AbstractParkingRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _select(self):
        return (
            select(ORMParking)
            .options(selectinload(ORMParking.owner))
            .execution_options(populate_existing=True)
        )

    async def get_by_id(self, parking_id: int, for_update: bool = False) -> Optional[Parking]:
        query = self._select().where(ORMParking.id == parking_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        orm_parking = result.scalars().first()
        return _to_parking(orm_parking) if orm_parking else None

    async def add(self, parking: Parking) -> Parking:
        orm_parking = ORMParking(
            user_id=parking.owner_id,
            name=parking.name,
            description=parking.description,
            latitude=parking.latitude,
            longitude=parking.longitude,
            address_label=parking.address_label,
            city=parking.city,
            total_spots=parking.total_spots,
            available_spots=parking.available_spots,
            price_per_hour=parking.price_per_hour,
            opening_time=parking.opening_time,
            closing_time=parking.closing_time,
            is_24h=parking.is_24h,
            cancel_time_limit=parking.cancel_time_limit,
            status=parking.status.value,
        )
        if parking.created_at is not None:
            orm_parking.created_at = parking.created_at
        self.session.add(orm_parking)
        await self.session.flush()
        return await self.get_by_id(orm_parking.id)

    async def update_details(self, parking: Parking) -> Parking:
        await self.session.execute(
            update(ORMParking)
            .where(ORMParking.id == parking.id)
            .values(
                name=parking.name,
                description=parking.description,
                latitude=parking.latitude,
                longitude=parking.longitude,
                address_label=parking.address_label,
                city=parking.city,
                price_per_hour=parking.price_per_hour,
                opening_time=parking.opening_time,
                closing_time=parking.closing_time,
                is_24h=parking.is_24h,
                cancel_time_limit=parking.cancel_time_limit,
            )
            .execution_options(synchronize_session=False)
        )
        updated = await self.get_by_id(parking.id)
        if updated is None:
            raise ValueError(f"Parking with ID {parking.id} not found.")
        return updated

    async def delete(self, parking_id: int):
        await self.session.execute(
            delete(ORMParking).where(ORMParking.id == parking_id).execution_options(synchronize_session=False)
        )

    async def list_by_owner(self, owner_id: int) -> List[Parking]:
        result = await self.session.execute(
            self._select()
            .where(ORMParking.user_id == owner_id)
            .order_by(ORMParking.created_at.desc(), ORMParking.id.desc())
        )
        return [_to_parking(p) for p in result.scalars().all()]

    async def count_by_owner(self, owner_id: int) -> int:
        result = await self.session.execute(
            select(func.count(ORMParking.id)).where(ORMParking.user_id == owner_id)
        )
        return result.scalar() or 0

    async def set_status(self, parking_id: int, status: ParkingStatus):
        await self.session.execute(
            update(ORMParking)
            .where(ORMParking.id == parking_id)
            .values(status=status.value)
            .execution_options(synchronize_session=False)
        )

    async def take_spot(self, parking_id: int) -> bool:
        result = await self.session.execute(
            update(ORMParking)
            .where(and_(ORMParking.id == parking_id, ORMParking.available_spots > 0))
            .values(available_spots=ORMParking.available_spots - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def give_back_spot(self, parking_id: int) -> bool:
        result = await self.session.execute(
            update(ORMParking)
            .where(and_(ORMParking.id == parking_id, ORMParking.available_spots < ORMParking.total_spots))
            .values(available_spots=ORMParking.available_spots + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def replace_capacity(
        self, parking_id: int, expected_total: int, expected_available: int, new_total: int, new_available: int
    ) -> bool:
        result = await self.session.execute(
            update(ORMParking)
            .where(
                and_(
                    ORMParking.id == parking_id,
                    ORMParking.total_spots == expected_total,
                    ORMParking.available_spots == expected_available,
                )
            )
            .values(total_spots=new_total, available_spots=new_available)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _search_conditions(
        self,
        filters: SearchFilters,
        clock: Optional[time],
        bounding_box: Optional[BoundingBox],
    ) -> list:
        conditions = [ORMParking.status == ParkingStatus.ACTIVE.value]

        if filters.name:
            term = f"%{filters.name}%"
            conditions.append(or_(ORMParking.name.ilike(term), ORMParking.description.ilike(term)))

        if filters.city:
            term = f"%{filters.city}%"
            conditions.append(or_(ORMParking.city.ilike(term), ORMParking.address_label.ilike(term)))

        if filters.address:
            conditions.append(ORMParking.address_label.ilike(f"%{filters.address}%"))

        if filters.q:
            term = f"%{filters.q}%"
            conditions.append(
                or_(
                    ORMParking.name.ilike(term),
                    ORMParking.city.ilike(term),
                    ORMParking.address_label.ilike(term),
                    ORMParking.description.ilike(term),
                )
            )

        if filters.min_price is not None:
            conditions.append(ORMParking.price_per_hour >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(ORMParking.price_per_hour <= filters.max_price)

        if filters.min_spots is not None:
            conditions.append(ORMParking.available_spots >= filters.min_spots)
        if filters.available_only:
            conditions.append(ORMParking.available_spots > 0)

        if filters.open_now and clock is not None:
            conditions.append(
                or_(
                    ORMParking.is_24h.is_(True),
                    and_(
                        ORMParking.opening_time.is_not(None),
                        ORMParking.closing_time.is_not(None),
                        or_(
                            and_(
                                ORMParking.opening_time <= ORMParking.closing_time,
                                ORMParking.opening_time <= clock,
                                ORMParking.closing_time > clock,
                            ),
                            # Overnight window
                            and_(
                                ORMParking.opening_time > ORMParking.closing_time,
                                or_(ORMParking.opening_time <= clock, ORMParking.closing_time > clock),
                            ),
                        ),
                    ),
                )
            )

        if bounding_box is not None:
            conditions.extend([
                ORMParking.latitude.is_not(None),
                ORMParking.longitude.is_not(None),
                ORMParking.latitude.between(bounding_box.min_lat, bounding_box.max_lat),
                or_(*[
                    ORMParking.longitude.between(min_lon, max_lon)
                    for min_lon, max_lon in bounding_box.longitude_ranges
                ]),
            ])

        return conditions

    async def search_active(
        self,
        filters: SearchFilters,
        clock: Optional[time],
        bounding_box: Optional[BoundingBox],
        sort_by: str,
        descending: bool,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Parking]:
        # Distance is not a column; callers sort on it after measuring
        column = getattr(ORMParking, sort_by if sort_by != "distance" else "created_at")
        ordering = column.desc() if descending else column.asc()

        query = (
            self._select()
            .where(and_(*self._search_conditions(filters, clock, bounding_box)))
            .order_by(ordering, ORMParking.id.desc() if descending else ORMParking.id.asc())
        )
        if limit is not None:
            query = query.limit(limit).offset(offset)

        result = await self.session.execute(query)
        return [_to_parking(p) for p in result.scalars().all()]

    async def count_active(
        self,
        filters: SearchFilters,
        clock: Optional[time],
        bounding_box: Optional[BoundingBox],
    ) -> int:
        result = await self.session.execute(
            select(func.count(ORMParking.id)).where(and_(*self._search_conditions(filters, clock, bounding_box)))
        )
        return result.scalar() or 0

    async def get_active_cities(self) -> List[str]:
        result = await self.session.execute(
            select(ORMParking.city)
            .where(
                and_(
                    ORMParking.status == ParkingStatus.ACTIVE.value,
                    ORMParking.city.is_not(None),
                    ORMParking.city != "",
                )
            )
            .distinct()
            .order_by(ORMParking.city)
        )
        return [city for city in result.scalars().all() if city]

    async def get_active_address_labels(self) -> List[str]:
        result = await self.session.execute(
            select(ORMParking.address_label).where(
                and_(
                    ORMParking.status == ParkingStatus.ACTIVE.value,
                    ORMParking.address_label.is_not(None),
                )
            )
        )
        return [label for label in result.scalars().all() if label]

    async def get_active_price_range(self) -> Tuple[Optional[float], Optional[float]]:
        result = await self.session.execute(
            select(func.min(ORMParking.price_per_hour), func.max(ORMParking.price_per_hour)).where(
                ORMParking.status == ParkingStatus.ACTIVE.value
            )
        )
        row = result.first()
        return (row[0], row[1]) if row else (None, None)

    async def suggest_active(self, term: str, limit: int = 8) -> List[Parking]:
        pattern = f"%{term}%"
        result = await self.session.execute(
            self._select()
            .where(
                and_(
                    ORMParking.status == ParkingStatus.ACTIVE.value,
                    or_(
                        ORMParking.name.ilike(pattern),
                        ORMParking.address_label.ilike(pattern),
                        ORMParking.city.ilike(pattern),
                    ),
                )
            )
            .order_by(ORMParking.name)
            .limit(limit)
        )
        return [_to_parking(p) for p in result.scalars().all()]


class SQLAlchemyVehicleRepository(AbstractVehicleRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, vehicle_id: int, for_update: bool = False) -> Optional[Vehicle]:
        query = (
            select(ORMVehicle)
            .where(ORMVehicle.id == vehicle_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        orm_vehicle = result.scalars().first()
        return _to_vehicle(orm_vehicle) if orm_vehicle else None

    async def get_by_license_plate(self, license_plate: str) -> Optional[Vehicle]:
        result = await self.session.execute(
            select(ORMVehicle).where(ORMVehicle.license_plate == license_plate.upper())
        )
        orm_vehicle = result.scalars().first()
        return _to_vehicle(orm_vehicle) if orm_vehicle else None

    async def list_by_user(self, user_id: int) -> List[Vehicle]:
        result = await self.session.execute(
            select(ORMVehicle)
            .where(ORMVehicle.user_id == user_id)
            .order_by(ORMVehicle.is_primary.desc(), ORMVehicle.created_at.desc(), ORMVehicle.id.desc())
            .execution_options(populate_existing=True)
        )
        return [_to_vehicle(v) for v in result.scalars().all()]

    async def count_by_user(self, user_id: int) -> int:
        result = await self.session.execute(
            select(func.count(ORMVehicle.id)).where(ORMVehicle.user_id == user_id)
        )
        return result.scalar() or 0

    async def add(self, vehicle: Vehicle) -> Vehicle:
        orm_vehicle = ORMVehicle(
            user_id=vehicle.user_id,
            license_plate=vehicle.license_plate,
            brand=vehicle.brand,
            model=vehicle.model,
            color=vehicle.color,
            type=vehicle.type.value if vehicle.type else None,
            year=vehicle.year,
            is_primary=vehicle.is_primary,
        )
        self.session.add(orm_vehicle)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConsistencyError(f"Vehicle {vehicle.license_plate} conflicts with an existing row") from exc
        await self.session.refresh(orm_vehicle)
        return _to_vehicle(orm_vehicle)

    async def clear_primary(self, user_id: int):
        await self.session.execute(
            update(ORMVehicle)
            .where(and_(ORMVehicle.user_id == user_id, ORMVehicle.is_primary.is_(True)))
            .values(is_primary=False)
            .execution_options(synchronize_session=False)
        )

    async def mark_primary(self, vehicle_id: int):
        try:
            await self.session.execute(
                update(ORMVehicle)
                .where(ORMVehicle.id == vehicle_id)
                .values(is_primary=True)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as exc:
            raise ConsistencyError(f"Another primary vehicle appeared while marking {vehicle_id}") from exc

    async def delete(self, vehicle_id: int):
        await self.session.execute(
            delete(ORMVehicle).where(ORMVehicle.id == vehicle_id).execution_options(synchronize_session=False)
        )


class SQLAlchemyReservationRepository(AbstractReservationRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _select(self):
        return (
            select(ORMReservation)
            .options(selectinload(ORMReservation.parking), selectinload(ORMReservation.vehicle))
            .execution_options(populate_existing=True)
        )

    async def add(self, reservation: Reservation) -> Reservation:
        orm_reservation = ORMReservation(
            user_id=reservation.user_id,
            parking_id=reservation.parking_id,
            vehicle_id=reservation.vehicle_id,
            status=reservation.status.value,
        )
        if reservation.reserved_at is not None:
            orm_reservation.reserved_at = reservation.reserved_at
        self.session.add(orm_reservation)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConsistencyError(
                f"Vehicle {reservation.vehicle_id} already holds a reservation"
            ) from exc
        await self.session.refresh(orm_reservation)
        return _to_reservation(orm_reservation)

    async def get_by_id(self, reservation_id: int) -> Optional[Reservation]:
        result = await self.session.execute(self._select().where(ORMReservation.id == reservation_id))
        orm_reservation = result.scalars().first()
        return _to_reservation(orm_reservation, with_relations=True) if orm_reservation else None

    async def list_by_user(self, user_id: int) -> List[Reservation]:
        result = await self.session.execute(
            self._select()
            .where(ORMReservation.user_id == user_id)
            .order_by(ORMReservation.reserved_at.desc(), ORMReservation.id.desc())
        )
        return [_to_reservation(r, with_relations=True) for r in result.scalars().all()]

    async def list_pending_with_deadline(self) -> List[Reservation]:
        result = await self.session.execute(
            self._select()
            .join(ORMParking, ORMReservation.parking_id == ORMParking.id)
            .where(
                and_(
                    ORMReservation.status == ReservationStatus.PENDING.value,
                    ORMParking.cancel_time_limit.is_not(None),
                )
            )
            .order_by(ORMReservation.reserved_at)
        )
        return [_to_reservation(r, with_relations=True) for r in result.scalars().all()]

    async def vehicle_has_holding_reservation(self, vehicle_id: int) -> bool:
        result = await self.session.execute(
            select(
                exists().where(
                    and_(
                        ORMReservation.vehicle_id == vehicle_id,
                        ORMReservation.status.in_([s.value for s in HOLDING_STATUSES]),
                    )
                )
            )
        )
        return bool(result.scalar())

    async def vehicle_has_reservations(self, vehicle_id: int) -> bool:
        result = await self.session.execute(
            select(exists().where(ORMReservation.vehicle_id == vehicle_id))
        )
        return bool(result.scalar())

    async def parking_has_reservations(self, parking_id: int) -> bool:
        result = await self.session.execute(
            select(exists().where(ORMReservation.parking_id == parking_id))
        )
        return bool(result.scalar())

    async def transition(
        self, reservation_id: int, from_status: ReservationStatus, to_status: ReservationStatus
    ) -> bool:
        result = await self.session.execute(
            update(ORMReservation)
            .where(and_(ORMReservation.id == reservation_id, ORMReservation.status == from_status.value))
            .values(status=to_status.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
