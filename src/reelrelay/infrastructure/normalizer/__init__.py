from .extract import (
    CANDIDATE_KEYS,
    extract_download_url,
    extract_thumbnail,
    is_http_url,
    normalize_result,
)

__all__ = [
    "CANDIDATE_KEYS",
    "extract_download_url",
    "extract_thumbnail",
    "is_http_url",
    "normalize_result",
]
