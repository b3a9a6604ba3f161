from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from rsvp.config.settings import Settings
from rsvp.guests.models import GuestRecord
from rsvp.intake.compression import BaseImageCompressor, PillowCompressor
from rsvp.intake.models import ImageFile, ImageStatus
from rsvp.intake.preview import PreviewRenderer
from rsvp.intake.queue import ImageIntakeQueue


@dataclass(frozen=True)
class ImageAttachment:
    """Frozen view of an assigned (or stray) image at snapshot time."""

    image_id: str
    guest_index: int | None
    file: ImageFile


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable copy of a session handed to the submission step."""

    main_email: str
    guests: tuple[GuestRecord, ...]
    images: tuple[ImageAttachment, ...]


class RSVPSession:
    """Form state of one RSVP: main contact, guests and the image queue."""

    def __init__(
        self,
        queue_factory: Callable[[Callable[[], int]], ImageIntakeQueue],
        main_email: str = "",
        guests: list[GuestRecord] | None = None,
    ) -> None:
        self.main_email = main_email
        self._guests: list[GuestRecord] = list(guests) if guests else [GuestRecord()]
        self.queue = queue_factory(lambda: len(self._guests))

    @property
    def guests(self) -> tuple[GuestRecord, ...]:
        return tuple(self._guests)

    @property
    def guest_count(self) -> int:
        return len(self._guests)

    def guest(self, index: int) -> GuestRecord:
        return self._guests[index]

    def add_guest(self, guest: GuestRecord | None = None) -> int:
        """Append a guest and return its position."""
        new_guest = replace(guest or GuestRecord(), passport_present=False)
        self._guests.append(new_guest)
        return len(self._guests) - 1

    def update_guest(self, index: int, **changes: Any) -> GuestRecord:
        """Edit guest fields. The passport flag is owned by assignment."""
        changes.pop("passport_present", None)
        self._guests[index] = replace(self._guests[index], **changes)
        return self._guests[index]

    def set_passport_present(self, index: int, present: bool) -> None:
        self._guests[index] = replace(self._guests[index], passport_present=present)

    def snapshot(self) -> SessionSnapshot:
        images = tuple(
            ImageAttachment(image_id=item.id, guest_index=item.guest_index, file=item.file)
            for item in self.queue.items
            if item.status is not ImageStatus.REMOVED
        )
        return SessionSnapshot(
            main_email=self.main_email.strip(),
            guests=tuple(self._guests),
            images=images,
        )


class QueueFactory:
    """Builds an intake queue bound to a session's guest count."""

    def __init__(
        self,
        settings: Settings,
        compressor: BaseImageCompressor | None = None,
        preview_renderer: PreviewRenderer | None = None,
    ) -> None:
        self._settings = settings
        self._compressor = compressor or PillowCompressor()
        self._preview_renderer = preview_renderer or PreviewRenderer(
            timeout_seconds=settings.intake_preview_timeout_seconds,
            max_edge_px=settings.intake_preview_max_edge_px,
        )

    def __call__(self, guest_count: Callable[[], int]) -> ImageIntakeQueue:
        return ImageIntakeQueue(
            guest_count=guest_count,
            compressor=self._compressor,
            preview_renderer=self._preview_renderer,
            compress_threshold_bytes=self._settings.intake_compress_threshold_bytes,
            compress_target_bytes=self._settings.intake_compress_target_bytes,
        )


def build_session(settings: Settings, main_email: str = "") -> RSVPSession:
    """Build an empty session (one blank guest) with configured intake."""
    return RSVPSession(QueueFactory(settings), main_email=main_email)
