"""Configuration loader — optional YAML file, env always wins."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from chatgraph.core.config.schema import Config

CONFIG_ENV_VAR = "CHATGRAPH_CONFIG"
DEFAULT_CONFIG_FILE = "config.yaml"


def load_config(config_path: str | Path | None = None) -> Config:
    """
    Build the runtime Config.

    The YAML file is looked up in this order:
        1. ``config_path`` argument
        2. ``$CHATGRAPH_CONFIG``
        3. ``./config.yaml`` (only if present)

    An explicitly named file that does not exist is skipped with a warning;
    defaults and environment variables still apply. ``CHATGRAPH_*`` env
    vars override anything read from YAML.

    Raises
    ------
    ValueError
        The YAML document is not a mapping.
    """
    path = _resolve_path(config_path)
    data = _read_yaml(path) if path else {}
    return Config(**data)


def _resolve_path(config_path: str | Path | None) -> Path | None:
    explicit = config_path or os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        if not path.exists():
            logger.warning(f"Config file not found: {path} — using defaults")
            return None
        return path

    default = Path(DEFAULT_CONFIG_FILE)
    return default if default.exists() else None


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    logger.debug(f"Config loaded from {path}")
    return data
