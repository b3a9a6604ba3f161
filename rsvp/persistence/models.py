from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class UploadedImage:
    """One received file part, already read into memory."""

    filename: str
    content_type: str
    data: bytes


@dataclass(frozen=True)
class SavedImage:
    """Where a received image ended up on disk."""

    received_name: str
    stored_path: Path


@dataclass(frozen=True)
class PersistedGuestRow:
    """One row of the guest store. Field order is the column order."""

    guest_id: str
    main_email: str
    guest_index: int
    first_name: str
    middle_name: str
    last_name: str
    guest_email: str
    age_group: str
    attendance: str
    allergies: str
    other_allergy: str
    passport: str


@dataclass(frozen=True)
class SubmissionResult:
    """Counts reported back to the client."""

    created_count: int
    image_count: int
