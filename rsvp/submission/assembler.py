from rsvp.guests.wire import dump_guests, guest_to_wire
from rsvp.intake.session import SessionSnapshot
from rsvp.logging.logger import Log
from rsvp.naming import extension_for_mimetype, normalize_filename
from rsvp.submission.exceptions import PayloadBuildError
from rsvp.submission.models import OutboundFile, SubmissionPayload


def build_payload(snapshot: SessionSnapshot) -> SubmissionPayload:
    """Turn a session snapshot into the multipart payload.

    The passport flag is recomputed from the images, whatever order edits
    and assignments happened in. File names are derived again from the
    snapshot's guest fields so a guest renamed after assignment still
    matches what the server expects.

    Raises:
        PayloadBuildError: if there are no guests or an image is unassigned.
    """
    if not snapshot.guests:
        raise PayloadBuildError("Submission has no guests")

    unassigned = [img.image_id for img in snapshot.images if img.guest_index is None]
    if unassigned:
        raise PayloadBuildError(f"{len(unassigned)} images are not assigned to a guest")

    by_guest = {img.guest_index: img for img in snapshot.images}
    guests = [
        guest_to_wire(guest, passport_present=index in by_guest)
        for index, guest in enumerate(snapshot.guests)
    ]

    files: list[OutboundFile] = []
    for index, image in sorted(by_guest.items()):
        if index is None or not 0 <= index < len(snapshot.guests):
            raise PayloadBuildError(f"Image {image.image_id} points at a missing guest")
        guest = snapshot.guests[index]
        filename = normalize_filename(
            guest.first_name,
            guest.middle_name,
            guest.last_name,
            index + 1,
            extension_for_mimetype(image.file.content_type),
        )
        files.append(OutboundFile(filename, image.file.content_type, image.file.data))

    Log.debug(f"Built payload with {len(guests)} guests and {len(files)} images")
    return SubmissionPayload(
        main_email=snapshot.main_email,
        guests_json=dump_guests(guests),
        files=tuple(files),
    )
