from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from rsvp.guests.models import GuestRecord
from rsvp.persistence.models import PersistedGuestRow, SavedImage, UploadedImage


@dataclass(slots=True)
class SubmissionContext:
    main_email: str
    guests_json: str
    uploads: tuple[UploadedImage, ...] = ()
    guests: list[GuestRecord] = field(default_factory=list)
    saved_images: list[SavedImage] = field(default_factory=list)
    received_stems: set[str] = field(default_factory=set)
    rows: list[PersistedGuestRow] = field(default_factory=list)
    total_rows: int = 0


class SubmissionStep(ABC):
    @abstractmethod
    def run(self, context: SubmissionContext) -> SubmissionContext:
        raise NotImplementedError
