import pytest

from abex_transport.errors import LeadValidationError
from abex_transport.leads.fields import (
    extract_digits,
    format_phone_number,
    normalize_phone_number,
    normalize_ship_date,
    normalize_transport_type,
    pick,
    read_string,
)
from abex_transport.leads.submission import gather_vehicles
from abex_transport.leads.vehicles import (
    VEHICLE_TYPE_CANONICAL,
    canonicalize_vehicle_type,
    normalize_vehicle,
    resolve_inop,
)
from abex_transport.models.schemas import LeadVehicle


@pytest.mark.parametrize(
    "raw,expected",
    [(None, ""), ("  Dana ", "Dana"), (2021, "2021"), (2021.0, "2021"), (True, ""), (["x"], ""), ({"a": 1}, "")],
)
def test_read_string(raw, expected):
    assert read_string(raw) == expected


def test_extract_digits():
    assert extract_digits("(281) 220-1799") == "2812201799"
    assert len(extract_digits("555-1234")) == 7
    assert extract_digits(None) == ""
    assert extract_digits(extract_digits("+1 (281) 220-1799")) == extract_digits("+1 (281) 220-1799")


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2812201799", "(281) 220-1799"),
        ("12812201799", "+1 (281) 220-1799"),
        ("281", "281"),
        ("28122", "(281) 22"),
        ("", ""),
    ],
)
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_normalize_phone_number():
    assert normalize_phone_number("(281) 220-1799") == "+12812201799"
    assert normalize_phone_number("44 20 7183 8750") == "+442071838750"
    assert normalize_phone_number("call me") == ""


def test_transport_type():
    assert normalize_transport_type(" Enclosed ") == "enclosed"
    assert normalize_transport_type("OPEN") == "open"
    assert normalize_transport_type("truck") is None
    assert normalize_transport_type("") is None


@pytest.mark.parametrize(
    "raw,expected",
    [("2026-11-02", "2026-11-02"), (" 2026-11-02 ", "2026-11-02"), ("11/02/2026", None), ("next Tuesday", None), (None, None)],
)
def test_ship_date(raw, expected):
    assert normalize_ship_date(raw) == expected


def test_alias_lookup_keeps_empty_strings():
    assert pick({"firstName": "", "first_name": "Bo"}, "first_name") == ""
    assert pick({"firstName": None, "first_name": "Bo"}, "first_name") == "Bo"
    assert pick({"trailer_type": "enclosed"}, "transport_type") == "enclosed"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("PICKUP 2 DOORS", "pickup_2_doors"),
        ("pickup2doors", "pickup_2_doors"),
        ("Pickup", "Pickup"),
        ("Travel-Trailer", "Travel Trailer"),
        ("suv", "SUV"),
        (" sedan ", "sedan"),
        ("not-a-type", None),
        ("", None),
        (None, None),
    ],
)
def test_canonicalize_vehicle_type(raw, expected):
    assert canonicalize_vehicle_type(raw) == expected


@pytest.mark.parametrize("label", sorted(set(VEHICLE_TYPE_CANONICAL.values())))
def test_canonical_labels_map_to_themselves(label):
    assert canonicalize_vehicle_type(label) == label


@pytest.mark.parametrize(
    "raw,expected",
    [
        ({}, False),
        ({"inoperable": True}, True),
        ({"operable": False, "inoperable": False}, True),
        ({"isOperable": True, "operable": False}, False),
        ({"vehicle_inop": False, "isOperable": False}, False),
        ({"vehicle_inop": "yes", "isOperable": False}, True),
    ],
)
def test_operability_flag_priority(raw, expected):
    assert resolve_inop(raw) is expected


@pytest.mark.parametrize(
    "raw,message",
    [
        ("2020 Civic", "Vehicle details are required."),
        ({"make": "Honda", "model": "Civic", "type": "car"}, "Vehicle year is required."),
        ({"year": "soon", "make": "Honda", "model": "Civic", "type": "car"}, "Vehicle year is required."),
        ({"year": 2020, "make": " ", "model": "Civic", "type": "car"}, "Vehicle make is required."),
        ({"year": 2020, "make": "Honda", "type": "car"}, "Vehicle model is required."),
    ],
)
def test_vehicle_errors(raw, message):
    with pytest.raises(LeadValidationError) as excinfo:
        normalize_vehicle(raw)
    assert excinfo.value.message == message
    assert excinfo.value.status_code == 400


def test_vehicle_type_error_lists_accepted_labels():
    with pytest.raises(LeadValidationError) as excinfo:
        normalize_vehicle({"year": 2020, "make": "Honda", "model": "Civic", "type": "hovercraft"})

    assert excinfo.value.message == (
        "Vehicle type is invalid. Accepted values: Car, sedan, Boat, Motorcycle, Pickup, pickup_2_doors, "
        "SUV, Van, RV, Travel Trailer, ATV, Convertible, Coupe, Other."
    )


def test_normalized_vehicle_round_trips_through_lead_form():
    vehicle = normalize_vehicle(
        {"vehicleYear": "2012", "vehicleMake": "Airstream", "vehicleModel": "Flying Cloud", "vehicleType": "travel trailer", "operable": False}
    )
    wire = LeadVehicle.from_normalized(vehicle).model_dump()

    assert vehicle.year == 2012
    assert vehicle.type == "Travel Trailer"
    assert vehicle.inop is True
    assert normalize_vehicle(wire) == vehicle


def test_gather_vehicles_prefers_list_then_single_then_flat_fields():
    assert gather_vehicles({"vehicles": [{"make": "A"}], "vehicle": {"make": "B"}}) == [{"make": "A"}]
    assert gather_vehicles({"vehicle": {"make": "B"}}) == [{"make": "B"}]

    flat = gather_vehicles({"vehicleYear": 2019, "vehicleMake": "Ford", "vehicle_operable": False, "type": "van"})
    assert len(flat) == 1
    assert flat[0]["year"] == 2019
    assert flat[0]["isOperable"] is False
    assert flat[0]["vehicleType"] == "van"


def test_gather_vehicles_ignores_empty_flat_fields():
    assert gather_vehicles({"vehicleYear": 0, "vehicleMake": "", "vehicleModel": None}) == []
