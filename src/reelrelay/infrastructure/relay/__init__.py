from .stream_relay import (
    BROWSER_USER_AGENT,
    DEFAULT_FILENAME,
    content_disposition,
    derive_filename,
    open_relay_stream,
    validate_relay_url,
)

__all__ = [
    "BROWSER_USER_AGENT",
    "DEFAULT_FILENAME",
    "content_disposition",
    "derive_filename",
    "open_relay_stream",
    "validate_relay_url",
]
