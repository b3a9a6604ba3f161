from rsvp.intake.exceptions import (
    GuestAlreadyAssignedError,
    GuestIndexOutOfRangeError,
    ImageNotAssignableError,
    ImageNotFoundError,
)
from rsvp.intake.models import ImageStatus, PassportImage
from rsvp.intake.session import RSVPSession
from rsvp.logging.logger import Log
from rsvp.naming import extension_for_mimetype, normalize_filename


class GuestImageAssigner:
    """Binds queued images to guest positions, one image per guest."""

    _ASSIGNABLE = (ImageStatus.QUEUED, ImageStatus.ASSIGNED)

    def __init__(self, session: RSVPSession) -> None:
        self._session = session

    def assigned_indices(self) -> set[int]:
        return {
            item.guest_index
            for item in self._session.queue.items
            if item.guest_index is not None
        }

    def assign(self, image_id: str, guest_index: int) -> PassportImage:
        """Assign an image to a guest and rename it after that guest.

        All checks run before any mutation, so a failed call changes nothing.

        Raises:
            ImageNotFoundError: if the image is not in the queue.
            ImageNotAssignableError: if the image was submitted or removed.
            GuestIndexOutOfRangeError: if guest_index is not a guest position.
            GuestAlreadyAssignedError: if another image holds guest_index.
        """
        queue = self._session.queue
        image = queue.get(image_id)
        if image is None:
            raise ImageNotFoundError(f"Image {image_id} is not in the queue")
        if image.status not in self._ASSIGNABLE:
            raise ImageNotAssignableError(
                f"Image {image_id} is {image.status.value} and cannot be assigned"
            )
        if not 0 <= guest_index < self._session.guest_count:
            raise GuestIndexOutOfRangeError(
                f"Guest #{guest_index + 1} does not exist "
                f"({self._session.guest_count} guests)"
            )
        holder = queue.holder_of(guest_index)
        if holder is not None and holder.id != image_id:
            Log.warning(f"Guest #{guest_index + 1} already has image {holder.id}")
            raise GuestAlreadyAssignedError(f"Guest #{guest_index + 1} already has an image")

        guest = self._session.guest(guest_index)
        filename = normalize_filename(
            guest.first_name,
            guest.middle_name,
            guest.last_name,
            guest_index + 1,
            extension_for_mimetype(image.file.content_type),
        )

        previous_index = image.guest_index
        image.file = image.file.renamed(filename)
        image.guest_index = guest_index
        image.status = ImageStatus.ASSIGNED
        self._session.set_passport_present(guest_index, True)
        if previous_index is not None and previous_index != guest_index:
            self._session.set_passport_present(previous_index, False)

        Log.info(f"Assigned image {image_id} to guest #{guest_index + 1} as {filename}")
        return image
