"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
ProviderBackend = Literal["yt_dlp", "http_api"]

_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


def _section(*names: str, flat: str | None = None) -> AliasChoices:
    """
    Accept both the flat key and its YAML ``section.key`` location.

    The flat key defaults to the joined path; logging fields use ``log_*``.
    """
    flat = flat or "_".join(names)
    return AliasChoices(flat, AliasPath(*names))


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/provider/normalizer/stream/
      rate_limit/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow
      strict precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="reelrelay", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )
    static_dir: Optional[Path] = Field(
        default=None,
        description="Directory with the browser front-end (mounted at '/').",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=_section("http", "timeout_seconds"),
        description="Timeout for outbound requests (media relay, link expansion).",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=_section("http", "follow_redirects"),
        description="Whether the shared HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default=_BROWSER_USER_AGENT,
        validation_alias=_section("http", "user_agent"),
        description="User-Agent for outgoing requests (media hosts reject bots).",
    )

    # Extraction provider (YAML section: provider.*)
    provider_backend: ProviderBackend = Field(
        default="yt_dlp",
        validation_alias=_section("provider", "backend"),
        description="Extraction backend: 'yt_dlp' or a hosted 'http_api'.",
    )
    provider_endpoint: str = Field(
        default="https://tiktokdl-api-1.onrender.com/download",
        validation_alias=_section("provider", "endpoint"),
        description="JSON API endpoint (only when backend=http_api).",
    )
    provider_query_param: str = Field(
        default="url",
        validation_alias=_section("provider", "query_param"),
        description="Query parameter carrying the share link (http_api).",
    )
    provider_max_attempts: int = Field(
        default=2,
        validation_alias=_section("provider", "max_attempts"),
        description="Provider attempts before giving up.",
    )
    provider_retry_base_delay_seconds: float = Field(
        default=0.3,
        validation_alias=_section("provider", "retry_base_delay_seconds"),
        description="Linear backoff base: sleep base * attempt between tries.",
    )
    provider_timeout_seconds: float = Field(
        default=20.0,
        validation_alias=_section("provider", "timeout_seconds"),
        description="Per-attempt provider timeout in seconds.",
    )
    provider_expand_short_links: bool = Field(
        default=True,
        validation_alias=_section("provider", "expand_short_links"),
        description="Follow redirects of short share links before extraction.",
    )
    provider_ytdlp_format: str = Field(
        default="best[ext=mp4]/best",
        validation_alias=_section("provider", "ytdlp_format"),
        description="yt-dlp format selector (single-file formats only).",
    )

    # Normalizer (YAML section: normalizer.*)
    normalizer_max_depth: int = Field(
        default=3,
        validation_alias=_section("normalizer", "max_depth"),
        description="Maximum nesting depth searched for a media URL.",
    )

    # Stream relay (YAML section: stream.*)
    stream_chunk_size: int = Field(
        default=65536,
        validation_alias=_section("stream", "chunk_size"),
        description="Chunk size in bytes for the pass-through body.",
    )
    stream_fallback_filename: str = Field(
        default="tiktok_video.mp4",
        validation_alias=_section("stream", "fallback_filename"),
        description="Filename used when neither header nor URL provide one.",
    )
    stream_error_snippet_bytes: int = Field(
        default=2048,
        validation_alias=_section("stream", "error_snippet_bytes"),
        description="Bytes of an upstream error body kept for diagnostics.",
    )

    # API rate limiting (YAML section: rate_limit.*)
    rate_limit_max_requests: int = Field(
        default=100,
        validation_alias=_section("rate_limit", "max_requests"),
        description="Max requests per client IP per window. 0 = unlimited.",
    )
    rate_limit_window_seconds: float = Field(
        default=55.0,
        validation_alias=_section("rate_limit", "window_seconds"),
        description="Sliding window length in seconds.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=_section("logging", "level", flat="log_level"),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=_section("logging", "format", flat="log_format"),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @field_validator("static_dir", mode="before")
    @classmethod
    def _validate_static_dir(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return _normalize_path(v)

    @field_validator(
        "http_timeout_seconds",
        "provider_timeout_seconds",
        "rate_limit_window_seconds",
    )
    @classmethod
    def _validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts and windows must be > 0")
        return v

    @field_validator("provider_max_attempts", "normalizer_max_depth")
    @classmethod
    def _validate_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("provider_retry_base_delay_seconds")
    @classmethod
    def _validate_retry_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("provider_retry_base_delay_seconds must be >= 0")
        return v

    @field_validator("stream_chunk_size", "stream_error_snippet_bytes")
    @classmethod
    def _validate_byte_sizes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("byte sizes must be > 0")
        return v

    @field_validator("rate_limit_max_requests")
    @classmethod
    def _validate_rate_limit(cls, v: int) -> int:
        if v < 0:
            raise ValueError("rate_limit_max_requests must be >= 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read REELRELAY_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - REELRELAY_PROVIDER_BACKEND
    - REELRELAY_PROVIDER_MAX_ATTEMPTS
    - REELRELAY_HTTP_TIMEOUT_SECONDS
    - REELRELAY_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="REELRELAY_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None
    static_dir: Optional[Path] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    provider_backend: Optional[ProviderBackend] = None
    provider_endpoint: Optional[str] = None
    provider_query_param: Optional[str] = None
    provider_max_attempts: Optional[int] = None
    provider_retry_base_delay_seconds: Optional[float] = None
    provider_timeout_seconds: Optional[float] = None
    provider_expand_short_links: Optional[bool] = None
    provider_ytdlp_format: Optional[str] = None

    normalizer_max_depth: Optional[int] = None

    stream_chunk_size: Optional[int] = None
    stream_fallback_filename: Optional[str] = None
    stream_error_snippet_bytes: Optional[int] = None

    rate_limit_max_requests: Optional[int] = None
    rate_limit_window_seconds: Optional[float] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    @field_validator("static_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
