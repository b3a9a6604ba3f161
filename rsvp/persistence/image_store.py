import os
import re
from pathlib import Path

from rsvp.logging.logger import Log
from rsvp.persistence.exceptions import ImageWriteError
from rsvp.persistence.models import SavedImage, UploadedImage

DEFAULT_UPLOAD_NAME = "upload.jpg"

_WHITESPACE_RE = re.compile(r"\s+")
_FORBIDDEN_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f\x7f]+')
# leaves room for a "__<n>" collision suffix under the 255-byte name limit
_MAX_NAME_BYTES = 200
_MAX_SUFFIX = 1000


def _truncate_utf8(text: str, max_bytes: int) -> str:
    return text.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")


def sanitize_upload_name(raw: str | None) -> str:
    """Make a received filename safe for the image directory.

    Keeps Unicode letters; replaces whitespace with ``_`` and drops
    characters that are forbidden on common filesystems. Names are capped
    in UTF-8 bytes, above anything ``normalize_filename`` produces, so a
    normalized name always arrives unchanged.
    """
    name = (raw or "").replace("\\", "/").rsplit("/", 1)[-1]
    name = _WHITESPACE_RE.sub("_", name)
    name = _FORBIDDEN_RE.sub("", name).strip().lstrip(".")
    if not name:
        return DEFAULT_UPLOAD_NAME
    if len(name.encode("utf-8")) > _MAX_NAME_BYTES:
        stem, dot, ext = name.rpartition(".")
        if dot and stem and len(ext.encode("utf-8")) < _MAX_NAME_BYTES // 2:
            budget = _MAX_NAME_BYTES - len(ext.encode("utf-8")) - 1
            name = f"{_truncate_utf8(stem, budget)}.{ext}"
        else:
            name = _truncate_utf8(name, _MAX_NAME_BYTES)
    return name


class ImageStore:
    """Writes received passport images into one flat directory.

    With the ``suffix`` collision policy an existing name is never
    overwritten; the image is stored as ``<stem>__2.<ext>``, ``__3`` and so on.
    With ``overwrite`` the later write replaces the earlier file.
    """

    def __init__(self, directory: Path, collision_policy: str = "suffix") -> None:
        if collision_policy not in ("suffix", "overwrite"):
            raise ValueError(
                f"Unknown collision policy '{collision_policy}'. Choose from: ['suffix', 'overwrite']"
            )
        self._directory = directory
        self._collision_policy = collision_policy

    def save(self, upload: UploadedImage) -> SavedImage:
        """Write one image atomically and return where it was stored.

        Raises:
            ImageWriteError: if the file cannot be written.
        """
        name = sanitize_upload_name(upload.filename)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            target = self._claim_target(name)
            try:
                self._write_atomic(target, upload.data)
            except OSError:
                if self._collision_policy == "suffix":
                    # drop the empty placeholder reserved by _claim_target
                    target.unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise ImageWriteError(f"Failed to write image {name}: {exc}") from exc

        if target.name != name:
            Log.warning(f"Image {name} already exists, stored as {target.name}")
        Log.debug(f"Saved image {target.name} ({len(upload.data)} bytes)")
        return SavedImage(received_name=name, stored_path=target)

    def _claim_target(self, name: str) -> Path:
        target = self._directory / name
        if self._collision_policy == "overwrite":
            return target

        stem, dot, ext = name.rpartition(".")
        if not dot:
            stem, ext = name, ""
        for counter in range(1, _MAX_SUFFIX + 1):
            candidate = target if counter == 1 else self._directory / (
                f"{stem}__{counter}.{ext}" if ext else f"{stem}__{counter}"
            )
            try:
                # exclusive create reserves the name against concurrent writers
                with open(candidate, "xb"):
                    pass
            except FileExistsError:
                continue
            return candidate
        raise ImageWriteError(f"No free name for image {name} after {_MAX_SUFFIX} attempts")

    @staticmethod
    def _write_atomic(target: Path, data: bytes) -> None:
        temp_path = target.with_name(f".{target.name}.part")
        try:
            with open(temp_path, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, target)
        finally:
            temp_path.unlink(missing_ok=True)
