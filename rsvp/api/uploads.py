from fastapi import UploadFile

from rsvp.config.settings import Settings
from rsvp.persistence.models import UploadedImage


class UploadRejectedError(Exception):
    """Raised when a file part is not an image or is over the size ceiling."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


def read_uploads(parts: list[UploadFile] | None, settings: Settings) -> list[UploadedImage]:
    """Apply the mimetype allowlist and size ceiling, then read the parts.

    Raises:
        UploadRejectedError: 415 for a non-image part, 413 for an oversized one.
    """
    uploads: list[UploadedImage] = []
    for part in parts or []:
        content_type = (part.content_type or "").lower()
        if not content_type.startswith(settings.allowed_mime_prefix):
            raise UploadRejectedError(
                415, f"File '{part.filename}' has type '{content_type}', only images are accepted"
            )
        data = part.file.read(settings.max_upload_bytes + 1)
        if len(data) > settings.max_upload_bytes:
            raise UploadRejectedError(
                413, f"File '{part.filename}' exceeds {settings.max_upload_mb} MB"
            )
        uploads.append(UploadedImage(filename=part.filename or "", content_type=content_type, data=data))
    return uploads
