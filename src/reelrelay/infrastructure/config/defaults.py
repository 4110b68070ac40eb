"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "reelrelay",
    "environment": "dev",
    "static_dir": None,
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
        ),
    },
    "provider": {
        "backend": "yt_dlp",
        "endpoint": "https://tiktokdl-api-1.onrender.com/download",
        "query_param": "url",
        "max_attempts": 2,
        "retry_base_delay_seconds": 0.3,
        "timeout_seconds": 20.0,
        "expand_short_links": True,
        "ytdlp_format": "best[ext=mp4]/best",
    },
    "normalizer": {
        "max_depth": 3,
    },
    "stream": {
        "chunk_size": 65536,
        "fallback_filename": "tiktok_video.mp4",
        "error_snippet_bytes": 2048,
    },
    "rate_limit": {
        "max_requests": 100,
        "window_seconds": 55.0,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}
