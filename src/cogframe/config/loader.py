from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.toml")
CONFIG_PATH_ENV = "COGFRAME_CONFIG"


def load_raw_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Load the framework config.

    The file is ``path`` if given, else ``$COGFRAME_CONFIG``, else
    ``config.toml`` in the working directory. A missing file yields an empty
    dict so section objects fall back to environment variables.
    """
    if path is None:
        path = os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH
    target = Path(path)
    if not target.is_file():
        logger.debug("No config file at %s; using environment only", target)
        return {}

    with target.open("rb") as handle:
        return tomllib.load(handle)


def section(raw: Dict[str, Any] | None, *keys: str) -> Dict[str, Any]:
    """Walk nested tables, e.g. ``section(raw, "cogframe", "dispatch")``."""

    table: Any = raw or {}
    for key in keys:
        table = table.get(key, {}) if isinstance(table, dict) else {}
    return table if isinstance(table, dict) else {}


__all__ = ["load_raw_config", "section", "DEFAULT_CONFIG_PATH", "CONFIG_PATH_ENV"]
