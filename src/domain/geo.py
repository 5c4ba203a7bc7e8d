import math
from typing import List, NamedTuple, Tuple

from src.config.settings_env import settings

# Absorbs float rounding at the box edges, about 0.1 m
BOX_SLACK_DEGREES = 1e-6


def great_circle_distance_km(
    lat1: float, lon1: float, lat2: float, lon2: float, radius_km: float | None = None
) -> float:
    """Distance between two points on a sphere, in kilometres.

    Spherical law of cosines. The cosine argument is clamped to [-1, 1]:
    for identical points floating-point drift can push it just past 1.
    """
    radius_km = settings.EARTH_RADIUS_KM if radius_km is None else radius_km
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2) - math.radians(lon1)

    cosine = math.cos(phi1) * math.cos(phi2) * math.cos(delta_lambda) + math.sin(phi1) * math.sin(phi2)
    cosine = min(1.0, max(-1.0, cosine))
    return radius_km * math.acos(cosine)


class BoundingBox(NamedTuple):
    """Latitude band plus one or two longitude ranges (two when crossing the antimeridian)."""
    min_lat: float
    max_lat: float
    longitude_ranges: List[Tuple[float, float]]


def bounding_box(latitude: float, longitude: float, radius_km: float) -> BoundingBox:
    """Lat/lon box that contains every point within ``radius_km``.

    Used as an SQL prefilter before the exact distance check. The longitude
    half-width is asin(sin(r) / cos(lat)) for the angular radius r; when the
    circle reaches a pole every longitude qualifies.
    """
    angular = radius_km / settings.EARTH_RADIUS_KM
    lat_delta = math.degrees(angular) + BOX_SLACK_DEGREES
    min_lat, max_lat = latitude - lat_delta, latitude + lat_delta

    if min_lat <= -90.0 or max_lat >= 90.0:
        return BoundingBox(max(min_lat, -90.0), min(max_lat, 90.0), [(-180.0, 180.0)])

    ratio = math.sin(angular) / math.cos(math.radians(latitude))
    if ratio >= 1.0:
        return BoundingBox(min_lat, max_lat, [(-180.0, 180.0)])

    lon_delta = math.degrees(math.asin(ratio)) + BOX_SLACK_DEGREES
    min_lon, max_lon = longitude - lon_delta, longitude + lon_delta
    if max_lon - min_lon >= 360.0:
        ranges = [(-180.0, 180.0)]
    elif min_lon < -180.0:
        ranges = [(min_lon + 360.0, 180.0), (-180.0, max_lon)]
    elif max_lon > 180.0:
        ranges = [(min_lon, 180.0), (-180.0, max_lon - 360.0)]
    else:
        ranges = [(min_lon, max_lon)]
    return BoundingBox(min_lat, max_lat, ranges)


def format_distance(distance_km: float) -> str:
    if distance_km < 1:
        return f"{round(distance_km * 1000)} m"
    return f"{distance_km:.1f} km"
