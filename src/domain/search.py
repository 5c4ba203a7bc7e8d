from typing import Optional

SORTABLE_FIELDS = ("created_at", "price_per_hour", "available_spots", "name")
DISTANCE = "distance"


class SearchFilters:
    """Driver-facing filters for the available parkings listing.

    Empty strings count as "not given" so raw query parameters can be passed
    straight through.
    """

    def __init__(
        self,
        q: Optional[str] = None,
        name: Optional[str] = None,
        city: Optional[str] = None,
        address: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        min_spots: Optional[int] = None,
        available_only: bool = False,
        open_now: bool = False,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius: Optional[float] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None,
        page: int = 1,
    ):
        self.q = _blank_to_none(q)
        self.name = _blank_to_none(name)
        self.city = _blank_to_none(city)
        self.address = _blank_to_none(address)
        self.min_price = min_price
        self.max_price = max_price
        self.min_spots = min_spots
        self.available_only = available_only
        self.open_now = open_now
        self.latitude = latitude
        self.longitude = longitude
        self.radius = radius
        self.sort = _blank_to_none(sort)
        self.order = _blank_to_none(order)
        self.page = max(1, page)

    @property
    def has_geo(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def resolve_sort(self) -> tuple[str, bool]:
        """Return (sort key, descending).

        Defaults to newest first, or nearest first for geo searches. Unknown
        keys, and distance without coordinates, fall back to newest first.
        """
        sort_by = self.sort or (DISTANCE if self.has_geo else "created_at")

        if sort_by == DISTANCE and not self.has_geo:
            return "created_at", True
        if sort_by != DISTANCE and sort_by not in SORTABLE_FIELDS:
            return "created_at", True

        order = (self.order or "").lower()
        if order not in ("asc", "desc"):
            order = "asc" if sort_by in ("price_per_hour", DISTANCE) else "desc"
        return sort_by, order == "desc"

    def as_dict(self) -> dict:
        return {
            key: value
            for key, value in vars(self).items()
            if value not in (None, False)
        }


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None
