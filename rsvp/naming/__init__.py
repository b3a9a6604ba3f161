from rsvp.naming.filename import (
    FALLBACK_EXTENSION,
    MAX_STEM_NAME_BYTES,
    extension_for_mimetype,
    guest_stem,
    normalize_extension,
    normalize_filename,
    stem_of,
)

__all__ = [
    "FALLBACK_EXTENSION",
    "MAX_STEM_NAME_BYTES",
    "extension_for_mimetype",
    "guest_stem",
    "normalize_extension",
    "normalize_filename",
    "stem_of",
]
