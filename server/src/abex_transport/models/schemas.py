from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


TransportType = Literal["open", "enclosed"]
CanonicalVehicleType = Literal[
    "Car",
    "sedan",
    "Boat",
    "Motorcycle",
    "Pickup",
    "pickup_2_doors",
    "SUV",
    "Van",
    "RV",
    "Travel Trailer",
    "ATV",
    "Convertible",
    "Coupe",
    "Other",
]


class NormalizedLocation(BaseModel):
    city: str
    state: str
    postal_code: str = ""


class NormalizedVehicle(BaseModel):
    year: int
    make: str
    model: str
    type: CanonicalVehicleType
    inop: bool = False


class LeadVehicle(BaseModel):
    vehicle_model_year: int
    vehicle_make: str
    vehicle_model: str
    vehicle_inop: bool
    vehicle_type: CanonicalVehicleType

    @classmethod
    def from_normalized(cls, vehicle: NormalizedVehicle) -> LeadVehicle:
        return cls(
            vehicle_model_year=vehicle.year,
            vehicle_make=vehicle.make,
            vehicle_model=vehicle.model,
            vehicle_inop=vehicle.inop,
            vehicle_type=vehicle.type,
        )


class LeadPayload(BaseModel):
    first_name: str
    last_name: str = ""
    email: str
    phone: str
    origin_city: str
    origin_state: str
    origin_postal_code: str = ""
    destination_city: str
    destination_state: str
    destination_postal_code: str = ""
    vehicles: list[LeadVehicle]
    ship_date: str | None = None
    transport_type: TransportType = "open"
    comment_from_shipper: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ContactMessage(BaseModel):
    name: str
    email: str
    phone: str
    subject: str
    message: str


class BusinessInfo(BaseModel):
    business_name: str = ""
    hero_message: str = ""
    tagline: str = ""
    phone: str = ""
    email: str = ""
    mc: str = ""
    dot: str = ""


class SiteGlobals(BaseModel):
    globals: dict[str, str] = Field(default_factory=dict)
    business_name: str
    error: str | None = None


class FaqEntry(BaseModel):
    id: str
    question: str
    answer: str
    order: int | float | None = None


class FaqDraft(BaseModel):
    question: str = ""
    answer: str = ""
    order: str | int | float | None = None


class VehicleModel(BaseModel):
    make_id: int | None = None
    make_name: str
    model_id: int | None = None
    model_name: str
