"""Geographic coordinate checks shared by the API and the map surface."""

from typing import Optional

from ..core.exceptions import ValidationError

LONGITUDE_RANGE = (-180.0, 180.0)
LATITUDE_RANGE = (-90.0, 90.0)


def validate_coordinates(long: Optional[float], lat: Optional[float]) -> tuple[float, float]:
    """
    Check a longitude/latitude pair.

    Args:
        long: Longitude in degrees
        lat: Latitude in degrees

    Returns:
        The pair as floats

    Raises:
        ValidationError: If either value is missing or out of range
    """
    errors = {}

    if long is None:
        errors["long"] = "Longitude is required"
    elif not LONGITUDE_RANGE[0] <= long <= LONGITUDE_RANGE[1]:
        errors["long"] = f"Longitude {long} is outside {LONGITUDE_RANGE[0]}..{LONGITUDE_RANGE[1]}"

    if lat is None:
        errors["lat"] = "Latitude is required"
    elif not LATITUDE_RANGE[0] <= lat <= LATITUDE_RANGE[1]:
        errors["lat"] = f"Latitude {lat} is outside {LATITUDE_RANGE[0]}..{LATITUDE_RANGE[1]}"

    if errors:
        raise ValidationError(detail="Invalid waypoint coordinates", errors=errors)

    return float(long), float(lat)
