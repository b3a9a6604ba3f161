from dataclasses import dataclass


@dataclass(frozen=True)
class OutboundFile:
    """One multipart file part: normalized filename, declared type, bytes."""

    filename: str
    content_type: str
    data: bytes


@dataclass(frozen=True)
class SubmissionPayload:
    """Everything one POST /submit-rsvp request carries."""

    main_email: str
    guests_json: str
    files: tuple[OutboundFile, ...]


@dataclass(frozen=True)
class SubmissionReceipt:
    """Counts the server reported for a stored submission."""

    guests: int
    images: int
