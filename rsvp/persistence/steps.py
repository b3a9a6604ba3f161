from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from rsvp.guests.exceptions import GuestPayloadError
from rsvp.guests.models import ordered_allergies
from rsvp.guests.wire import parse_guests
from rsvp.logging.logger import Log
from rsvp.naming import guest_stem, stem_of
from rsvp.persistence.exceptions import SubmissionValidationError
from rsvp.persistence.guest_store import GuestStore
from rsvp.persistence.image_store import ImageStore
from rsvp.persistence.models import PersistedGuestRow
from rsvp.persistence.pipeline import SubmissionContext, SubmissionStep


class ValidateSubmissionStep(SubmissionStep):
    def run(self, context: SubmissionContext) -> SubmissionContext:
        context.main_email = (context.main_email or "").strip()
        if not context.main_email:
            raise SubmissionValidationError("mainEmail is required")
        try:
            context.guests = parse_guests(context.guests_json)
        except GuestPayloadError as exc:
            raise SubmissionValidationError(str(exc)) from exc
        if not context.guests:
            raise SubmissionValidationError("At least one guest is required")
        return context


class SaveImagesStep(SubmissionStep):
    def __init__(self, image_store: ImageStore) -> None:
        self._image_store = image_store

    def run(self, context: SubmissionContext) -> SubmissionContext:
        for upload in context.uploads:
            saved = self._image_store.save(upload)
            context.saved_images.append(saved)
            context.received_stems.add(stem_of(saved.received_name))
        if context.uploads:
            Log.info(f"Saved {len(context.uploads)} images for {context.main_email}")
        return context


def _cell_text(value: str) -> str:
    # control characters a worksheet cell cannot hold
    return ILLEGAL_CHARACTERS_RE.sub("", value)


class BuildRowsStep(SubmissionStep):
    """Builds store rows; passport presence comes only from received files."""

    def run(self, context: SubmissionContext) -> SubmissionContext:
        main_email = _cell_text(context.main_email)
        rows = []
        for idx, guest in enumerate(context.guests):
            position = idx + 1
            expected = guest_stem(guest.first_name, guest.middle_name, guest.last_name, position)
            rows.append(
                PersistedGuestRow(
                    guest_id=f"{main_email}_{position}",
                    main_email=main_email,
                    guest_index=position,
                    first_name=_cell_text(guest.first_name),
                    middle_name=_cell_text(guest.middle_name),
                    last_name=_cell_text(guest.last_name),
                    guest_email=_cell_text(guest.email),
                    age_group=guest.age_group.value if guest.age_group else "",
                    attendance=guest.attendance.value if guest.attendance else "",
                    allergies=", ".join(a.value for a in ordered_allergies(guest.allergies)),
                    other_allergy=_cell_text(guest.other_allergy),
                    passport="yes" if expected in context.received_stems else "no",
                )
            )
        context.rows = rows
        matched = sum(1 for row in rows if row.passport == "yes")
        if matched != len(context.uploads):
            Log.warning(
                f"{len(context.uploads)} images received for {context.main_email} "
                f"but {matched} matched a guest"
            )
        return context


class AppendRowsStep(SubmissionStep):
    def __init__(self, guest_store: GuestStore) -> None:
        self._guest_store = guest_store

    def run(self, context: SubmissionContext) -> SubmissionContext:
        context.total_rows = self._guest_store.append(context.rows)
        return context
