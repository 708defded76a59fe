"""Common utility functions for transitalign.

Helpers shared across stages, including great-circle geometry.
"""

from transitalign.utils.geo import EARTH_RADIUS_METERS, haversine_meters, meters_to_lat_degrees
from transitalign.utils.hashing import calculate_file_sha256, format_sha256
from transitalign.utils.timestamps import get_iso_timestamp

__all__ = [
    "EARTH_RADIUS_METERS",
    "calculate_file_sha256",
    "format_sha256",
    "get_iso_timestamp",
    "haversine_meters",
    "meters_to_lat_degrees",
]
