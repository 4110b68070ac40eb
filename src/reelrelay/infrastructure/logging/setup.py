from __future__ import annotations

import copy
import logging.config
from typing import Any

import structlog
from uvicorn.config import LOGGING_CONFIG as UVICORN_LOGGING_CONFIG

from reelrelay.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Loggers that follow config.log_level and write through the "default" handler.
_APP_LOGGERS = ("uvicorn", "uvicorn.error", "fastapi", "starlette", "reelrelay")

# One line per outbound request otherwise.
_QUIET_LOGGERS = ("httpx", "httpcore")


def _drop_color_message(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    # uvicorn attaches "color_message", which duplicates the event text.
    event_dict.pop("color_message", None)
    return event_dict


def _shared_processors() -> list[structlog.typing.Processor]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        _drop_color_message,
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]


def _renderer(config: AppConfig) -> structlog.typing.Processor:
    if config.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """
    dictConfig for ``uvicorn.run(log_config=...)``.

    Starts from uvicorn's own LOGGING_CONFIG and swaps both formatters for a
    structlog ProcessorFormatter, so uvicorn's access lines, yt-dlp and our
    own events share one renderer.
    """
    cfg = copy.deepcopy(UVICORN_LOGGING_CONFIG)
    level = config.log_level

    cfg["formatters"]["structlog"] = {
        "()": structlog.stdlib.ProcessorFormatter,
        "foreign_pre_chain": _shared_processors(),
        "processors": [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(config),
        ],
    }
    for handler in cfg["handlers"].values():
        handler["formatter"] = "structlog"

    loggers: dict[str, Any] = cfg.setdefault("loggers", {})
    for name in _APP_LOGGERS:
        entry = loggers.setdefault(name, {"handlers": ["default"], "propagate": False})
        entry["level"] = level
    loggers["uvicorn.access"]["level"] = level
    for name in _QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING"}

    cfg["root"] = {"handlers": ["default"], "level": level}
    return cfg


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """
    Configure structlog on top of stdlib logging; returns the dictConfig
    that was applied so uvicorn can reuse it.
    """
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    cfg = build_logging_config(config)
    logging.config.dictConfig(cfg)
    log.info(
        "logging_configured",
        log_format=config.log_format,
        log_level=config.log_level,
    )
    return cfg
