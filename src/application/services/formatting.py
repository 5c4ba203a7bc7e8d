from datetime import datetime
from typing import Dict, Optional

from src.domain.eligibility import is_open_now
from src.domain.entities import Parking
from src.domain.geo import format_distance


def format_parking(parking: Parking, now: Optional[datetime] = None, distance_km: Optional[float] = None) -> Dict:
    """Flatten a parking into the record the listing pages render."""
    data = {
        "id": parking.id,
        "name": parking.name,
        "description": parking.description,
        "address_label": parking.address_label,
        "city": parking.city_name,
        "latitude": float(parking.latitude),
        "longitude": float(parking.longitude),
        "total_spots": parking.total_spots,
        "available_spots": parking.available_spots,
        "price_per_hour": float(parking.price_per_hour),
        "opening_time": parking.opening_time,
        "closing_time": parking.closing_time,
        "opening_hours": parking.opening_hours,
        "is_24h": parking.is_24h,
        "is_open_now": is_open_now(parking, now),
        "cancel_time_limit": parking.cancel_time_limit,
        "occupancy_percent": parking.occupancy_percent,
        "owner_name": parking.owner_name,
        "status": parking.status,
        "created_at": parking.created_at,
    }
    if distance_km is not None:
        data["distance"] = round(distance_km, 2)
        data["distance_text"] = format_distance(distance_km)
    return data
