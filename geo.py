import math

from constants import EARTH_RADIUS_M


def to_radians(angle):
    """Convert degrees to radians."""
    return math.pi * angle / 180.0


def haversine_distance(lat1, lon1, lat2, lon2):
    """Calculate distance between two points using Haversine formula

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        float: Great-circle distance in meters
    """
    d_lat = to_radians(lat2 - lat1)
    d_lon = to_radians(lon2 - lon1)

    a = (math.sin(d_lat / 2) * math.sin(d_lat / 2) +
         math.cos(to_radians(lat1)) * math.cos(to_radians(lat2)) *
         math.sin(d_lon / 2) * math.sin(d_lon / 2))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def euclidean_distance(a, b):
    """Straight-line distance between two (x, y, z) points."""
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    dz = a[2] - b[2]
    return math.sqrt(dx * dx + dy * dy + dz * dz)
