"""Deterministic guest-image filenames.

The intake side names an image when it is assigned to a guest, and the
persistence side recomputes the same name to decide whether that guest's
passport arrived. Both import these functions; there is no second copy.

Stem rules, applied in order:

1. NFC-normalize and trim each of first, middle and last name.
2. Join the non-empty names with ``_`` and lower-case.
3. Replace whitespace runs with ``_``.
4. Drop every character that is not a Unicode letter, digit or ``_``.
5. Collapse ``_`` runs and trim ``_`` at both ends.
6. Cut to at most ``MAX_STEM_NAME_BYTES`` of UTF-8 on a character boundary,
   then trim ``_`` again.
7. Append ``_<one-based index>``.

So ``("Dana", "", "Levi", 1)`` gives ``dana_levi_1`` and a guest with no
usable name gives ``_1``.
"""

import re
import unicodedata
from pathlib import PurePosixPath

FALLBACK_EXTENSION = "jpg"
MAX_STEM_NAME_BYTES = 150

_WHITESPACE_RE = re.compile(r"\s+")
_UNDERSCORES_RE = re.compile(r"_+")
_EXTENSION_RE = re.compile(r"[^a-z0-9]")

_MIMETYPE_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/pjpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
    "image/heif": "heif",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
}


def _clean_name_part(value: str | None) -> str:
    if not value:
        return ""
    return unicodedata.normalize("NFC", str(value)).strip()


def _keep_word_characters(text: str) -> str:
    # Unicode letters and digits, so Hebrew or Cyrillic names survive.
    return "".join(ch for ch in text if ch == "_" or ch.isalnum())


def _truncate_utf8(text: str, max_bytes: int) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


def guest_stem(
    first_name: str | None,
    middle_name: str | None,
    last_name: str | None,
    one_based_index: int,
) -> str:
    """Return the filename stem (no extension) for a guest position."""
    parts = [
        part
        for part in (
            _clean_name_part(first_name),
            _clean_name_part(middle_name),
            _clean_name_part(last_name),
        )
        if part
    ]
    names = _WHITESPACE_RE.sub("_", "_".join(parts).lower())
    names = _keep_word_characters(names)
    names = _UNDERSCORES_RE.sub("_", names).strip("_")
    names = _truncate_utf8(names, MAX_STEM_NAME_BYTES).rstrip("_")
    return f"{names}_{int(one_based_index)}"


def normalize_extension(extension: str | None) -> str:
    """Lower-case and strip an extension to ASCII alphanumerics."""
    cleaned = _EXTENSION_RE.sub("", (extension or "").lower().lstrip("."))
    return cleaned or FALLBACK_EXTENSION


def extension_for_mimetype(mimetype: str | None) -> str:
    """Map a declared mimetype to a file extension, falling back to jpg."""
    if not mimetype:
        return FALLBACK_EXTENSION
    base = mimetype.split(";", 1)[0].strip().lower()
    known = _MIMETYPE_EXTENSIONS.get(base)
    if known is not None:
        return known
    major, _, subtype = base.partition("/")
    if major == "image" and subtype.isascii() and subtype.isalnum() and len(subtype) <= 10:
        return subtype
    return FALLBACK_EXTENSION


def normalize_filename(
    first_name: str | None,
    middle_name: str | None,
    last_name: str | None,
    one_based_index: int,
    extension: str | None,
) -> str:
    """Return ``<stem>.<ext>`` for a guest position. Never raises."""
    stem = guest_stem(first_name, middle_name, last_name, one_based_index)
    return f"{stem}.{normalize_extension(extension)}"


def stem_of(filename: str) -> str:
    """Lower-cased stem of a received filename (last extension removed)."""
    name = PurePosixPath(filename.replace("\\", "/")).name
    stem, dot, _ = name.rpartition(".")
    return (stem if dot else name).lower()
