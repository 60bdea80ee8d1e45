from __future__ import annotations

from typing import Any, Mapping

from abex_transport.errors import LeadValidationError
from abex_transport.leads.fields import (
    extract_digits,
    is_present,
    normalize_ship_date,
    normalize_transport_type,
    pick,
    read_string,
)
from abex_transport.leads.location import parse_location
from abex_transport.leads.vehicles import normalize_vehicle
from abex_transport.models.schemas import LeadPayload, LeadVehicle


def _location_fallback(body: Mapping[str, Any], prefix: str) -> dict[str, Any]:
    return {
        "city": pick(body, f"{prefix}_city"),
        "state": pick(body, f"{prefix}_state"),
        "postalCode": pick(body, f"{prefix}_postal_code"),
    }


def gather_vehicles(body: Mapping[str, Any]) -> list[Any]:
    vehicles = body.get("vehicles")
    if isinstance(vehicles, list):
        entries = list(vehicles)
    elif is_present(body.get("vehicle")):
        entries = [body["vehicle"]]
    else:
        entries = []

    if not entries:
        fallback = {
            "year": pick(body, "fallback_vehicle_year"),
            "make": pick(body, "fallback_vehicle_make"),
            "model": pick(body, "fallback_vehicle_model"),
            "isOperable": pick(body, "fallback_vehicle_operable"),
            "vehicleType": pick(body, "fallback_vehicle_type"),
            "vehicle_inop": body.get("vehicle_inop"),
        }
        if is_present(fallback["year"]) or is_present(fallback["make"]) or is_present(fallback["model"]):
            entries.append(fallback)

    return entries


def build_lead_payload(body: Mapping[str, Any]) -> LeadPayload:
    """Validate a raw quote form body and build the outbound lead.

    Every field is checked before anything is returned, so a caller never
    forwards a partially valid lead. The first failure raises
    ``LeadValidationError`` with the message shown to the visitor.
    """
    first_name = read_string(pick(body, "first_name"))
    if not first_name:
        raise LeadValidationError("First name is required.")

    last_name = read_string(pick(body, "last_name"))
    email = read_string(pick(body, "email"))
    if not email:
        raise LeadValidationError("Email address is required.")

    phone_digits = extract_digits(pick(body, "phone"))
    if len(phone_digits) < 10:
        raise LeadValidationError("Please provide a valid phone number.")

    origin = parse_location(body.get("origin"), _location_fallback(body, "origin"))
    if origin is None:
        raise LeadValidationError("Origin city and state are required.")

    destination = parse_location(body.get("destination"), _location_fallback(body, "destination"))
    if destination is None:
        raise LeadValidationError("Destination city and state are required.")

    transport_type = normalize_transport_type(read_string(pick(body, "transport_type")) or "open")
    if not transport_type:
        raise LeadValidationError("Transport type is invalid. Accepted values are 'open' or 'enclosed'.")

    ship_date = normalize_ship_date(pick(body, "ship_date"))
    comment = read_string(pick(body, "comment"))

    raw_vehicles = gather_vehicles(body)
    if not raw_vehicles:
        raise LeadValidationError("At least one vehicle is required.")

    vehicles = [LeadVehicle.from_normalized(normalize_vehicle(raw)) for raw in raw_vehicles]

    return LeadPayload(
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone_digits,
        origin_city=origin.city,
        origin_state=origin.state,
        origin_postal_code=origin.postal_code,
        destination_city=destination.city,
        destination_state=destination.state,
        destination_postal_code=destination.postal_code,
        vehicles=vehicles,
        ship_date=ship_date,
        transport_type=transport_type,
        comment_from_shipper=comment or None,
    )
