from dataclasses import dataclass, field
from enum import Enum


class AgeGroup(str, Enum):
    ADULT = "adult"
    TEEN = "teen"
    CHILD = "child"
    INFANT = "infant"


class Attendance(str, Enum):
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"


class Allergy(str, Enum):
    NUTS = "nuts"
    GLUTEN = "gluten"
    DAIRY = "dairy"
    EGGS = "eggs"
    SHELLFISH = "shellfish"
    SOY = "soy"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    OTHER = "other"


def ordered_allergies(allergies: frozenset[Allergy]) -> list[Allergy]:
    """Allergies in declaration order, so output is stable across runs."""
    return [a for a in Allergy if a in allergies]


@dataclass(frozen=True)
class GuestRecord:
    """One guest of a submission. Position in the guest list is its identity."""

    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    email: str = ""
    age_group: AgeGroup | None = None
    attendance: Attendance | None = None
    allergies: frozenset[Allergy] = field(default_factory=frozenset)
    other_allergy: str = ""
    # derived from image assignment, never edited directly
    passport_present: bool = False
