class IntakeError(Exception):
    """Base exception for all image intake errors."""


class QueueCapacityError(IntakeError):
    """Raised when a batch would exceed the remaining image slots."""

    def __init__(self, requested: int, remaining: int) -> None:
        super().__init__(
            f"Batch of {requested} images exceeds remaining slots ({remaining})"
        )
        self.requested = requested
        self.remaining = remaining


class CompressionError(IntakeError):
    """Raised when an image cannot be recompressed to the target size."""


class AssignmentError(IntakeError):
    """Base exception for guest-image assignment failures."""


class ImageNotFoundError(AssignmentError):
    """Raised when no queued image has the requested id."""


class ImageNotAssignableError(AssignmentError):
    """Raised when the image is already submitted or removed."""


class GuestIndexOutOfRangeError(AssignmentError):
    """Raised when the guest position is outside the guest list."""


class GuestAlreadyAssignedError(AssignmentError):
    """Raised when another image already holds the guest position."""
