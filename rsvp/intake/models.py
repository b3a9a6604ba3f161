from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4


class ImageStatus(str, Enum):
    QUEUED = "queued"
    ASSIGNED = "assigned"
    SUBMITTED = "submitted"
    REMOVED = "removed"


@dataclass(frozen=True)
class ImageFile:
    """Bytes of one selected file plus the metadata the browser declared."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return self.content_type.lower().startswith("image/")

    def renamed(self, filename: str) -> "ImageFile":
        return ImageFile(filename=filename, content_type=self.content_type, data=self.data)


@dataclass(frozen=True)
class Preview:
    """Displayable representation of a queued image. Never sent to the server."""

    kind: str  # "rendered", "raw" or "none"
    data_url: str | None = None

    @classmethod
    def none(cls) -> "Preview":
        return cls(kind="none")


@dataclass
class PassportImage:
    """An image held by the client session until submission."""

    file: ImageFile
    preview: Preview = field(default_factory=Preview.none)
    guest_index: int | None = None
    status: ImageStatus = ImageStatus.QUEUED
    id: str = field(default_factory=lambda: uuid4().hex)
