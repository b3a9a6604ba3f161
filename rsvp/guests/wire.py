"""JSON wire format of the ``guests`` form field.

Keys are camelCase to match the browser form the endpoint was built for.
"""

import json
from typing import Any

from rsvp.guests.exceptions import GuestPayloadError
from rsvp.guests.models import AgeGroup, Allergy, Attendance, GuestRecord, ordered_allergies

_MAX_GUESTS = 50
_TEXT_FIELDS = {
    "firstName": "first_name",
    "middleName": "middle_name",
    "lastName": "last_name",
    "email": "email",
    "otherAllergy": "other_allergy",
}


def guest_to_wire(guest: GuestRecord, passport_present: bool | None = None) -> dict[str, Any]:
    """Serialize a guest; ``passport_present`` overrides the stored flag."""
    present = guest.passport_present if passport_present is None else passport_present
    return {
        "firstName": guest.first_name,
        "middleName": guest.middle_name,
        "lastName": guest.last_name,
        "email": guest.email,
        "ageGroup": guest.age_group.value if guest.age_group else "",
        "attendance": guest.attendance.value if guest.attendance else "",
        "allergies": [a.value for a in ordered_allergies(guest.allergies)],
        "otherAllergy": guest.other_allergy,
        "passport": "yes" if present else "no",
    }


def dump_guests(guests: list[dict[str, Any]]) -> str:
    return json.dumps(guests, ensure_ascii=False)


def parse_guests(raw: str | None) -> list[GuestRecord]:
    """Decode the ``guests`` field into guest records.

    The ``passport`` key is read for shape only; callers decide presence.

    Raises:
        GuestPayloadError: on malformed JSON or invalid guest objects.
    """
    try:
        data = json.loads(raw or "[]")
    except json.JSONDecodeError as exc:
        raise GuestPayloadError(f"Invalid guests JSON: {exc}") from exc

    if not isinstance(data, list):
        raise GuestPayloadError("'guests' must be a JSON array")
    if len(data) > _MAX_GUESTS:
        raise GuestPayloadError(f"Too many guests: {len(data)} (max {_MAX_GUESTS})")
    return [_build_guest(item, i) for i, item in enumerate(data)]


def _build_guest(raw: Any, index: int) -> GuestRecord:
    if not isinstance(raw, dict):
        raise GuestPayloadError(f"Guest at index {index} must be an object")

    fields: dict[str, Any] = {}
    for wire_key, attr in _TEXT_FIELDS.items():
        value = raw.get(wire_key)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise GuestPayloadError(f"Guest at index {index}: '{wire_key}' must be a string")
        fields[attr] = value.strip()

    fields["age_group"] = _build_choice(raw.get("ageGroup"), AgeGroup, "ageGroup", index)
    fields["attendance"] = _build_choice(raw.get("attendance"), Attendance, "attendance", index)
    fields["allergies"] = _build_allergies(raw.get("allergies"), index)
    return GuestRecord(**fields)


def _build_choice(raw: Any, enum_cls: type[Any], key: str, index: int) -> Any:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise GuestPayloadError(f"Guest at index {index}: '{key}' must be a string")
    try:
        return enum_cls(raw.strip().lower())
    except ValueError as exc:
        allowed = [member.value for member in enum_cls]
        raise GuestPayloadError(
            f"Guest at index {index}: '{key}' must be one of {allowed}, got {raw!r}"
        ) from exc


def _build_allergies(raw: Any, index: int) -> frozenset[Allergy]:
    if raw is None:
        return frozenset()
    if not isinstance(raw, list):
        raise GuestPayloadError(f"Guest at index {index}: 'allergies' must be a list")
    return frozenset(_build_choice(item, Allergy, "allergies", index) for item in raw if item)
