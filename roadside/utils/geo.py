from math import radians, degrees, cos, sin, asin, atan2, sqrt, pi
from typing import Tuple

# Mean Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


def calculate_distance(point1: Tuple[float, float], point2: Tuple[float, float]) -> float:
    """
    Calculate distance between two geographic points using Haversine formula
    Returns distance in kilometers

    Args:
        point1: (latitude, longitude)
        point2: (latitude, longitude)
    """
    lat1, lon1 = point1
    lat2, lon2 = point2

    # Convert to radians
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])

    # Haversine formula
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat/2)**2 + cos(lat1) * cos(lat2) * sin(dlon/2)**2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c

def round_distance(distance_km: float) -> float:
    """Round a distance to one decimal for display"""
    return round(distance_km * 10) / 10

def calculate_eta(distance_km: float, average_speed_kmh: float = 30) -> int:
    """
    Calculate estimated time of arrival in minutes

    Args:
        distance_km: Distance to travel
        average_speed_kmh: Average speed (default 30 km/h for city traffic)

    Returns:
        ETA in minutes
    """
    if distance_km <= 0:
        return 0

    hours = distance_km / average_speed_kmh
    minutes = int(hours * 60)

    return max(1, minutes)  # Minimum 1 minute

def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    return -90 <= latitude <= 90 and -180 <= longitude <= 180

def get_bounds(
    center: Tuple[float, float],
    radius_km: float
) -> dict:
    """
    Get bounding box for a circle around a center point
    Used to narrow candidate rows before exact distance filtering

    Uses the spherical bounding-coordinates method so every point within
    ``radius_km`` great-circle distance falls inside the box.

    Returns:
        Dict with north, south, east, west bounds (degrees)
    """
    lat, lng = center
    angular = radius_km / EARTH_RADIUS_KM
    lat_r = radians(lat)

    north = lat_r + angular
    south = lat_r - angular

    if south > -pi / 2 and north < pi / 2:
        lng_delta = degrees(asin(min(1.0, sin(angular) / cos(lat_r))))
        east = lng + lng_delta
        west = lng - lng_delta
    else:
        # Circle covers a pole
        north = min(north, pi / 2)
        south = max(south, -pi / 2)
        east, west = 180.0, -180.0

    return {
        "north": degrees(north),
        "south": degrees(south),
        "east": east,
        "west": west
    }


def format_fallback_address(latitude: float, longitude: float) -> str:
    """Address shown when reverse geocoding is unavailable"""
    return f"Near {latitude:.6f}, {longitude:.6f}"
