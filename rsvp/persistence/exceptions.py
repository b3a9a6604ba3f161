class PersistenceError(Exception):
    """Base exception for all persistence-related errors."""

    category = "server_error"


class SubmissionValidationError(PersistenceError):
    """Raised when the main email is missing or the guest list is empty or malformed."""

    category = "validation_error"


class ImageWriteError(PersistenceError):
    """Raised when an uploaded image cannot be written to the image directory."""

    category = "image_io_error"


class StoreReadError(PersistenceError):
    """Raised when the existing guest store cannot be read."""

    category = "store_io_error"


class StoreWriteError(PersistenceError):
    """Raised when the guest store cannot be written, retries included."""

    category = "store_io_error"
