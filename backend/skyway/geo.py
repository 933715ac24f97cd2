import math

from .models import Coordinates

EARTH_RADIUS_KM = 6371.0


def distance(a: Coordinates, b: Coordinates) -> float:
    """Haversine great-circle distance in kilometers."""
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # clamp rounding noise so antipodal points don't hit sqrt of a negative
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing(a: Coordinates, b: Coordinates) -> float:
    """Initial compass bearing from a to b in degrees, 0 is north, range [0, 360)."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    x = math.sin(dlon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)

    deg = math.degrees(math.atan2(x, y)) % 360.0
    # -0.0 % 360 and tiny negatives can round up to exactly 360
    return 0.0 if deg >= 360.0 else deg


def angular_difference(b1: float, b2: float) -> float:
    """Smallest angle between two bearings, range [0, 180]."""
    diff = abs(b1 - b2) % 360.0
    if diff > 180.0:
        diff = 360.0 - diff
    return diff


def signed_turn(b1: float, b2: float) -> float:
    """Bearing delta from b1 to b2 in (-180, 180]; positive is a clockwise (right) turn."""
    delta = (b2 - b1) % 360.0
    if delta > 180.0:
        delta -= 360.0
    return delta
