"""Free-text location parsing for quote origins and destinations.

A typed location such as ``"Austin, TX 78701"`` is resolved by an ordered list
of parsing stages. Each stage either returns a ``ParsedLocation`` or ``None``
and the first stage that answers wins. A structured ``{city, state,
postalCode}`` object bypasses the stages, and an optional fallback (the flat
``originCity``/``originState`` style fields) fills whatever the primary input
left empty.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from abex_transport.leads.fields import pick, read_string
from abex_transport.models.schemas import NormalizedLocation

DIRECT_LOCATION_RE = re.compile(
    r"^([A-Za-z0-9 .'-]+)[,\s]+([A-Za-z]{2})(?:[,\s]+([0-9]{5}(?:-[0-9]{4})?))?$",
    re.ASCII,
)
POSTAL_CODE_RE = re.compile(r"\b[0-9]{5}(?:-[0-9]{4})?\b", re.ASCII)
STATE_TOKEN_RE = re.compile(r"\b([A-Za-z]{2})\b", re.ASCII)


@dataclass(frozen=True)
class ParsedLocation:
    city: str = ""
    state: str = ""
    postal_code: str = ""


LocationStage = Callable[[str], ParsedLocation | None]


def _segments(text: str) -> list[str]:
    return [segment.strip() for segment in text.split(",") if segment.strip()]


def _postal_code(text: str) -> str:
    match = POSTAL_CODE_RE.search(text)
    return match.group(0) if match else ""


def _city_from(text: str, city_segments: list[str], state: str, postal_code: str) -> str:
    city = ", ".join(city_segments).strip()
    if city:
        return city
    return text.replace(state, "", 1).replace(postal_code, "", 1).replace(",", " ").strip()


def match_city_state_zip(text: str) -> ParsedLocation | None:
    match = DIRECT_LOCATION_RE.match(text)
    if not match:
        return None
    return ParsedLocation(
        city=read_string(match.group(1)),
        state=read_string(match.group(2)).upper(),
        postal_code=read_string(match.group(3)),
    )


def match_trailing_state_segment(text: str) -> ParsedLocation | None:
    segments = _segments(text)
    for index in range(len(segments) - 1, -1, -1):
        state_match = STATE_TOKEN_RE.search(segments[index])
        if state_match:
            state = state_match.group(1).upper()
            postal_code = _postal_code(text)
            return ParsedLocation(
                city=_city_from(text, segments[:index], state, postal_code),
                state=state,
                postal_code=postal_code,
            )
    return None


def match_state_anywhere(text: str) -> ParsedLocation | None:
    state_match = STATE_TOKEN_RE.search(text)
    if not state_match:
        return None
    state = state_match.group(1).upper()
    postal_code = _postal_code(text)
    return ParsedLocation(
        city=_city_from(text, _segments(text), state, postal_code),
        state=state,
        postal_code=postal_code,
    )


def unresolved_state(text: str) -> ParsedLocation:
    postal_code = _postal_code(text)
    return ParsedLocation(
        city=_city_from(text, _segments(text), "", postal_code),
        postal_code=postal_code,
    )


LOCATION_STAGES: tuple[LocationStage, ...] = (
    match_city_state_zip,
    match_trailing_state_segment,
    match_state_anywhere,
)


def parse_location_text(value: Any) -> ParsedLocation:
    text = read_string(value)
    if not text:
        return ParsedLocation()
    for stage in LOCATION_STAGES:
        parsed = stage(text)
        if parsed is not None:
            return parsed
    return unresolved_state(text)


def _from_mapping(data: Mapping[str, Any]) -> ParsedLocation:
    return ParsedLocation(
        city=read_string(pick(data, "location_city")),
        state=read_string(pick(data, "location_state")).upper(),
        postal_code=read_string(pick(data, "location_postal_code")),
    )


def _fill_from_fallback(primary: ParsedLocation, fallback: Any) -> ParsedLocation:
    if isinstance(fallback, Mapping):
        city = fallback.get("city")
        state = fallback.get("state")
        postal_code = fallback.get("postalCode", fallback.get("postal_code"))
        joined = " ".join(read_string(part) for part in (city, state, postal_code) if part)
        parsed = parse_location_text(joined)
    else:
        city = state = postal_code = None
        parsed = parse_location_text(fallback)

    return ParsedLocation(
        city=primary.city or read_string(city) or parsed.city,
        state=primary.state or read_string(state).upper() or parsed.state,
        postal_code=primary.postal_code or read_string(postal_code) or parsed.postal_code,
    )


def parse_location(value: Any, fallback: Any = None) -> NormalizedLocation | None:
    if isinstance(value, Mapping):
        parsed = _from_mapping(value)
    elif isinstance(value, str):
        parsed = parse_location_text(value)
    else:
        parsed = ParsedLocation()

    if (not parsed.city or not parsed.state) and fallback is not None:
        parsed = _fill_from_fallback(parsed, fallback)

    city = read_string(parsed.city)
    state = read_string(parsed.state).upper()
    if not city or not state:
        return None
    return NormalizedLocation(city=city, state=state, postal_code=read_string(parsed.postal_code))
