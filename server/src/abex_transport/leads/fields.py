from __future__ import annotations

import math
import re
from typing import Any, Mapping

ALLOWED_TRANSPORT_TYPES = {"open", "enclosed"}
SHIP_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
NON_DIGIT_RE = re.compile(r"[^0-9]")

# Historical key spellings per field, consulted in order. The first key whose
# value is not null wins, even when that value is an empty string.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "first_name": ("firstName", "first_name"),
    "last_name": ("lastName", "last_name"),
    "email": ("email", "emailAddress", "email_address"),
    "phone": ("phone", "phoneNumber", "phone_number"),
    "origin_city": ("originCity", "origin_city"),
    "origin_state": ("originState", "origin_state"),
    "origin_postal_code": ("originPostalCode", "origin_postal_code"),
    "destination_city": ("destinationCity", "destination_city"),
    "destination_state": ("destinationState", "destination_state"),
    "destination_postal_code": ("destinationPostalCode", "destination_postal_code"),
    "transport_type": ("transportType", "trailerType", "transport_type", "trailer_type"),
    "ship_date": ("shipDate", "pickupDate", "ship_date", "pickup_date"),
    "comment": ("comments", "comment", "notes", "comment_from_shipper"),
    "fallback_vehicle_year": ("vehicleYear", "vehicle_year"),
    "fallback_vehicle_make": ("vehicleMake", "vehicle_make"),
    "fallback_vehicle_model": ("vehicleModel", "vehicle_model"),
    "fallback_vehicle_operable": ("vehicleIsOperable", "vehicle_operable", "isOperable"),
    "fallback_vehicle_type": ("vehicleType", "vehicle_type", "type"),
    "vehicle_year": ("vehicle_model_year", "year", "vehicleYear", "vehicle_year"),
    "vehicle_make": ("vehicle_make", "make", "vehicleMake"),
    "vehicle_model": ("vehicle_model", "model", "vehicleModel"),
    "vehicle_type": ("vehicle_type", "type", "vehicleType"),
    "location_city": ("city", "origin_city", "destination_city"),
    "location_state": ("state", "origin_state", "destination_state"),
    "location_postal_code": ("postalCode", "postal_code", "zip", "postal"),
}


def pick(data: Mapping[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        value = data.get(key)
        if value is not None:
            return value
    return None


def read_string(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return str(value).strip()
    return ""


def is_present(value: Any) -> bool:
    """Truthiness as the browser form sends it: 0, "" and null are all absent."""
    if value is None or value is False:
        return False
    if isinstance(value, (int, float, str)):
        return bool(value)
    return True


def extract_digits(value: Any) -> str:
    return NON_DIGIT_RE.sub("", read_string(value))


def format_phone_number(value: Any) -> str:
    digits = extract_digits(value)
    if not digits:
        return ""
    if len(digits) <= 3:
        return digits

    local_number = digits[-10:]
    country_code = f"+{digits[:-10]} " if len(digits) > 10 else ""
    area, mid, last = local_number[:3], local_number[3:6], local_number[6:10]

    formatted = country_code
    formatted += f"({area})" if len(area) == 3 else f"({area}"
    if mid and len(area) == 3:
        formatted += f" {mid}"
    if last:
        formatted += f"-{last}"
    return formatted.strip()


def normalize_phone_number(value: Any) -> str:
    digits = extract_digits(value)
    if not digits:
        return ""
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"


def normalize_transport_type(value: Any) -> str | None:
    normalized = read_string(value).lower()
    if not normalized:
        return None
    return normalized if normalized in ALLOWED_TRANSPORT_TYPES else None


def normalize_ship_date(value: Any) -> str | None:
    trimmed = read_string(value)
    if not trimmed:
        return None
    return trimmed if SHIP_DATE_RE.match(trimmed) else None
