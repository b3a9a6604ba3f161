class GuestPayloadError(Exception):
    """Raised when the guests field cannot be decoded into guest records."""
