from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from src.application.repositories import AbstractParkingRepository
from src.application.services.formatting import format_parking
from src.config.settings_env import settings
from src.domain.eligibility import local_clock
from src.domain.geo import bounding_box, great_circle_distance_km
from src.domain.search import SearchFilters, DISTANCE
from src.shared.utils import utcnow

SORT_OPTIONS = [
    {"value": "created_at", "label": "Most Recent", "order": "desc"},
    {"value": "price_per_hour", "label": "Price: Low to High", "order": "asc"},
    {"value": "price_per_hour", "label": "Price: High to Low", "order": "desc"},
    {"value": "available_spots", "label": "Most Available Spots", "order": "desc"},
    {"value": "name", "label": "Name (A-Z)", "order": "asc"},
]

NEAREST_FIRST = {"value": DISTANCE, "label": "Nearest First", "order": "asc"}


class AvailabilitySearchService:
    """Driver-side listing of active parkings: filters, distance, sorting and pages."""

    def __init__(self, parking_repo: AbstractParkingRepository):
        self.parking_repo = parking_repo

    async def search(self, filters: SearchFilters, now: Optional[datetime] = None) -> Dict:
        now = now or utcnow()
        clock = local_clock(now) if filters.open_now else None
        sort_by, descending = filters.resolve_sort()
        per_page = settings.SEARCH_PAGE_SIZE
        offset = (filters.page - 1) * per_page

        if filters.has_geo:
            radius = filters.radius if filters.radius is not None else settings.DEFAULT_SEARCH_RADIUS_KM
            candidates = await self.parking_repo.search_active(
                filters, clock, bounding_box(filters.latitude, filters.longitude, radius), sort_by, descending
            )
            in_range = []
            for parking in candidates:
                distance = great_circle_distance_km(
                    filters.latitude, filters.longitude, parking.latitude, parking.longitude
                )
                if distance <= radius:
                    in_range.append((parking, distance))
            if sort_by == DISTANCE:
                in_range.sort(key=lambda item: item[1], reverse=descending)

            total = len(in_range)
            items = [
                format_parking(parking, now, distance_km=distance)
                for parking, distance in in_range[offset:offset + per_page]
            ]
        else:
            total = await self.parking_repo.count_active(filters, clock, None)
            parkings = await self.parking_repo.search_active(
                filters, clock, None, sort_by, descending, limit=per_page, offset=offset
            )
            items = [format_parking(parking, now) for parking in parkings]

        logger.debug(f"Search {filters.as_dict()} -> {total} parkings")
        return {
            "parkings": {
                "items": items,
                "page": filters.page,
                "per_page": per_page,
                "total": total,
                "last_page": max(1, -(-total // per_page)),
            },
            "filters": filters.as_dict(),
            "cities": await self.available_cities(),
            "price_range": await self.price_range(),
            "sort_options": self.sort_options(filters.has_geo),
        }

    async def available_cities(self) -> List[str]:
        """Distinct cities of active parkings.

        When no parking has an explicit city the names are parsed out of the
        address labels instead.
        """
        cities = await self.parking_repo.get_active_cities()
        if cities:
            return cities

        extracted = set()
        for address in await self.parking_repo.get_active_address_labels():
            parts = address.split(",")
            if len(parts) >= 2:
                city = parts[-2].strip()
                if len(city) > 2:
                    extracted.add(city)
        return sorted(extracted)

    async def price_range(self) -> Dict[str, float]:
        min_price, max_price = await self.parking_repo.get_active_price_range()
        return {
            "min": float(min_price) if min_price is not None else 0.0,
            "max": float(max_price) if max_price is not None else 100.0,
        }

    @staticmethod
    def sort_options(has_geo: bool) -> List[Dict]:
        if has_geo:
            return [NEAREST_FIRST] + SORT_OPTIONS
        return list(SORT_OPTIONS)

    async def suggestions(self, term: str) -> List[Dict]:
        """Autocomplete: up to 3 matching cities followed by matching parkings, 10 at most."""
        term = (term or "").strip()
        if len(term) < 2:
            return []

        needle = term.lower()
        cities = [
            {"type": "city", "label": city, "sublabel": "City"}
            for city in await self.available_cities()
            if needle in city.lower()
        ][:3]
        parkings = [
            {
                "type": "parking",
                "id": parking.id,
                "label": parking.name,
                "sublabel": parking.city_name or parking.address_label,
                "price": float(parking.price_per_hour),
                "spots": parking.available_spots,
            }
            for parking in await self.parking_repo.suggest_active(term, limit=8)
        ]
        return (cities + parkings)[:10]
