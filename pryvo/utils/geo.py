import math
from typing import Optional, Tuple

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0

Coordinates = Tuple[float, float]


def has_coordinates(point: Optional[Coordinates]) -> bool:
    """True when `point` is a usable (lat, lon) pair.

    The legacy store's unset default of (0, 0) is turned into "no location"
    when documents are loaded, so any pair that reaches here is a real one.
    """
    if point is None:
        return False
    lat, lon = point
    return lat is not None and lon is not None


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points
    on the Earth (specified in decimal degrees) using the Haversine formula.

    Args:
        lat1: Latitude of the first point.
        lon1: Longitude of the first point.
        lat2: Latitude of the second point.
        lon2: Longitude of the second point.

    Returns:
        The distance in kilometers.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(a: Optional[Coordinates], b: Optional[Coordinates]) -> Optional[float]:
    """Distance between two optional points, or None when either is unknown.

    Callers must read None as "unknown", never as zero.
    """
    if a is None or b is None or not has_coordinates(a) or not has_coordinates(b):
        return None
    return haversine_distance(a[0], a[1], b[0], b[1])
