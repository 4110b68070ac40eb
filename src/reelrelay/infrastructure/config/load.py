from __future__ import annotations

from copy import deepcopy
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv
from pydantic import AliasChoices, AliasPath

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

# Keys that live at the top level of the YAML document.
_GENERAL_KEYS: tuple[str, ...] = ("app_name", "environment", "static_dir")


@lru_cache(maxsize=1)
def _flat_key_sections() -> dict[str, tuple[str, str]]:
    """
    Map flat field names (env/CLI) to their YAML ``(section, key)`` location.

    Read from the ``AliasPath`` entries declared on ``AppConfig`` so the two
    shapes cannot drift apart.
    """
    mapping: dict[str, tuple[str, str]] = {}
    for name, field in AppConfig.model_fields.items():
        alias = field.validation_alias
        if not isinstance(alias, AliasChoices):
            continue
        for choice in alias.choices:
            if isinstance(choice, AliasPath) and len(choice.path) == 2:
                section, key = choice.path
                mapping[name] = (str(section), str(key))
    return mapping


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *override* into *base* in place; nested dicts merge, the rest replaces."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _deep_merge(current, value)
        else:
            base[key] = value
    return base


def _to_sectioned(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Bring one layer (defaults/YAML/ENV/CLI) into the sectioned shape.

    Sectioned input (``provider: {max_attempts: 3}``) passes through;
    flat input (``provider_max_attempts=3``) is folded into its section.
    Unknown keys are dropped.
    """
    flat_map = _flat_key_sections()
    sections = {section for section, _ in flat_map.values()}
    out: dict[str, Any] = {}

    for key, value in data.items():
        if key in _GENERAL_KEYS:
            out[key] = value
        elif key in sections and isinstance(value, Mapping):
            out.setdefault(key, {}).update(value)
        elif key in flat_map:
            section, section_key = flat_map[key]
            out.setdefault(section, {})[section_key] = value
    return out


def _read_yaml_config(config_path: Path) -> dict[str, Any]:
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def _require_file(path: Path) -> Path:
    if not path.exists():
        raise FileNotFoundError(path)
    return path


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Build the validated AppConfig from layered sources:
    defaults < YAML file < env vars (incl. .env) < CLI overrides.

    Reads files only; never creates files or directories.
    """
    # .env values join the process environment before EnvOverrides reads it;
    # real environment variables keep priority over the file.
    if dotenv_path is not None:
        load_dotenv(_require_file(dotenv_path), override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_read_yaml_config(_require_file(config_path)))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _deep_merge(merged, _to_sectioned(layer))

    return AppConfig.model_validate(merged)
