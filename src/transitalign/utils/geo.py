"""Geographic helpers shared by blocking and scoring."""

import math

__all__ = [
    "EARTH_RADIUS_METERS",
    "haversine_meters",
    "meters_to_lat_degrees",
]

# Mean Earth radius (IUGG)
EARTH_RADIUS_METERS = 6_371_008.8


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in meters.

    Parameters
    ----------
    lat1, lon1 : float
        First point, in degrees.
    lat2, lon2 : float
        Second point, in degrees.

    Returns
    -------
    float
        Distance in meters. Symmetric in its two points.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    # Rounding can push ``a`` marginally above 1 for antipodal points
    a = min(1.0, a)
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))


def meters_to_lat_degrees(meters: float) -> float:
    """Arc length along a meridian expressed in degrees of latitude."""
    return math.degrees(meters / EARTH_RADIUS_METERS)
