from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from reelrelay import __version__
from reelrelay.infrastructure.config import load_config
from reelrelay.infrastructure.logging.setup import configure_logging
from reelrelay.interfaces.app import create_app

log = structlog.get_logger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000

# CLI flag attribute -> flat config key
_CONFIG_FLAGS: dict[str, str] = {
    "static_dir": "static_dir",
    "log_level": "log_level",
    "log_format": "log_format",
}


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="reelrelay",
        description="Resolve video share links and relay downloads.",
    )
    parser.add_argument("--version", action="version", version=__version__)

    server = parser.add_argument_group("server")
    server.add_argument("--host", help="Bind host (overrides HOST env).")
    server.add_argument("--port", type=int, help="Bind port (overrides PORT env).")

    sources = parser.add_argument_group("configuration")
    sources.add_argument("--config", type=Path, help="Path to YAML config file.")
    sources.add_argument("--dotenv", type=Path, help="Path to .env file.")
    sources.add_argument(
        "--static-dir",
        help="Serve a front-end from this directory at '/'.",
    )
    sources.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    sources.add_argument(
        "--log-format",
        choices=["json", "console"],
        help="Override log format.",
    )

    return parser.parse_args(list(argv) if argv is not None else None)


def build_cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flat config overrides from parsed flags; unset flags are skipped."""
    return {
        key: getattr(args, attr)
        for attr, key in _CONFIG_FLAGS.items()
        if getattr(args, attr) is not None
    }


def _bind_address(args: argparse.Namespace) -> tuple[str, int]:
    host = args.host or os.getenv("HOST") or DEFAULT_HOST
    port = args.port or int(os.getenv("PORT") or DEFAULT_PORT)
    return host, port


def start(argv: Iterable[str] | None = None) -> None:
    """Process entrypoint: load config once, then serve the app built from it."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    config = load_config(
        config_path=args.config,
        dotenv_path=args.dotenv,
        cli_overrides=build_cli_overrides(args),
    )
    # After load_config, so HOST/PORT from --dotenv are visible.
    host, port = _bind_address(args)
    log_config = configure_logging(config)
    log.info("server_starting", host=host, port=port, backend=config.provider_backend)

    uvicorn.run(create_app(config), host=host, port=port, log_config=log_config)


if __name__ == "__main__":
    raise SystemExit(start())
