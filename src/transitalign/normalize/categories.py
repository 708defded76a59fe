"""Location categories and provider-value mapping."""

from enum import StrEnum
from typing import Any

from transitalign.normalize._helpers import is_null, normalize_text_for_matching


class LocationCategory(StrEnum):
    """Kinds of physical location found in transport datasets."""

    PUBLIC_TRANSPORT_STOP = "public_transport_stop"
    ZONE = "zone"
    BIKE_SHARING = "bike_sharing"
    BIKE_PARKING = "bike_parking"
    CAR_SHARING = "car_sharing"
    TAXI = "taxi"
    GENERIC = "generic"


# Normalized provider value -> category
_ALIASES: dict[str, LocationCategory] = {
    # GTFS location_type
    "0": LocationCategory.PUBLIC_TRANSPORT_STOP,
    "1": LocationCategory.PUBLIC_TRANSPORT_STOP,
    "2": LocationCategory.GENERIC,
    "3": LocationCategory.GENERIC,
    "4": LocationCategory.PUBLIC_TRANSPORT_STOP,
    "stop": LocationCategory.PUBLIC_TRANSPORT_STOP,
    "bus stop": LocationCategory.PUBLIC_TRANSPORT_STOP,
    "station": LocationCategory.PUBLIC_TRANSPORT_STOP,
    "platform": LocationCategory.PUBLIC_TRANSPORT_STOP,
    "public transport stop": LocationCategory.PUBLIC_TRANSPORT_STOP,
    "publictransportstop": LocationCategory.PUBLIC_TRANSPORT_STOP,
    "fermata": LocationCategory.PUBLIC_TRANSPORT_STOP,
    "zone": LocationCategory.ZONE,
    "fare zone": LocationCategory.ZONE,
    "bike sharing": LocationCategory.BIKE_SHARING,
    "bikesharing": LocationCategory.BIKE_SHARING,
    "centro in bici": LocationCategory.BIKE_SHARING,
    "bike parking": LocationCategory.BIKE_PARKING,
    "bikeparking": LocationCategory.BIKE_PARKING,
    "parcheggio protetto biciclette": LocationCategory.BIKE_PARKING,
    "car sharing": LocationCategory.CAR_SHARING,
    "carsharing": LocationCategory.CAR_SHARING,
    "taxi": LocationCategory.TAXI,
    "taxi rank": LocationCategory.TAXI,
    "generic": LocationCategory.GENERIC,
}


def normalize_category(value: Any) -> str:
    """Map a provider category value onto a ``LocationCategory``.

    Parameters
    ----------
    value : Any
        Raw provider value (string, GTFS code, enum name...).

    Returns
    -------
    str
        Category value; ``""`` when the provider gave none, ``"generic"``
        when the value is not recognized.
    """
    if is_null(value):
        return ""

    text = normalize_text_for_matching(str(value))
    if not text:
        return ""

    known = {c.value for c in LocationCategory}
    snake = text.replace(" ", "_")
    if snake in known:
        return snake

    category = _ALIASES.get(text) or _ALIASES.get(text.replace(" ", ""))
    return (category or LocationCategory.GENERIC).value
