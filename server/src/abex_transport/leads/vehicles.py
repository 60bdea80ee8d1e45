from __future__ import annotations

import logging
import math
import re
from typing import Any, Mapping

from abex_transport.errors import LeadValidationError
from abex_transport.leads.fields import pick, read_string
from abex_transport.models.schemas import NormalizedVehicle

logger = logging.getLogger("abex_transport.vehicles")

# Keys are lookup spellings, values are the exact labels the lead webhook accepts.
VEHICLE_TYPE_CANONICAL: dict[str, str] = {
    "car": "Car",
    "sedan": "sedan",
    "boat": "Boat",
    "motorcycle": "Motorcycle",
    "pickup": "Pickup",
    "pickup_2_doors": "pickup_2_doors",
    "pickup2doors": "pickup_2_doors",
    "suv": "SUV",
    "van": "Van",
    "rv": "RV",
    "travel_trailer": "Travel Trailer",
    "traveltrailer": "Travel Trailer",
    "atv": "ATV",
    "convertible": "Convertible",
    "coupe": "Coupe",
    "other": "Other",
}

ACCEPTED_VEHICLE_TYPES = list(dict.fromkeys(VEHICLE_TYPE_CANONICAL.values()))
INVALID_VEHICLE_TYPE_MESSAGE = f"Vehicle type is invalid. Accepted values: {', '.join(ACCEPTED_VEHICLE_TYPES)}."

NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

# Operability flags in priority order; True means the flag value is negated.
INOP_FLAGS: tuple[tuple[str, bool], ...] = (
    ("vehicle_inop", False),
    ("isOperable", True),
    ("operable", True),
    ("inoperable", False),
)


def canonicalize_vehicle_type(value: Any) -> str | None:
    normalized = read_string(value).lower()
    if not normalized:
        return None

    underscored = NON_ALNUM_RE.sub("_", normalized).strip("_")
    for candidate in (normalized, underscored, underscored.replace("_", "")):
        canonical = VEHICLE_TYPE_CANONICAL.get(candidate)
        if canonical:
            return canonical
    return None


def resolve_inop(raw: Mapping[str, Any]) -> bool:
    for key, negate in INOP_FLAGS:
        value = raw.get(key)
        if isinstance(value, bool):
            return not value if negate else value
    return False


def _parse_year(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        year = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(year) or not year.is_integer():
        return None
    return int(year)


def normalize_vehicle(raw: Any) -> NormalizedVehicle:
    if not isinstance(raw, Mapping):
        raise LeadValidationError("Vehicle details are required.")

    year = _parse_year(pick(raw, "vehicle_year"))
    if year is None:
        raise LeadValidationError("Vehicle year is required.")

    make = read_string(pick(raw, "vehicle_make"))
    if not make:
        raise LeadValidationError("Vehicle make is required.")

    model = read_string(pick(raw, "vehicle_model"))
    if not model:
        raise LeadValidationError("Vehicle model is required.")

    vehicle_type = canonicalize_vehicle_type(pick(raw, "vehicle_type"))
    if not vehicle_type:
        logger.info("vehicle_type_rejected raw=%s", read_string(pick(raw, "vehicle_type")))
        raise LeadValidationError(INVALID_VEHICLE_TYPE_MESSAGE)

    return NormalizedVehicle(year=year, make=make, model=model, type=vehicle_type, inop=resolve_inop(raw))
