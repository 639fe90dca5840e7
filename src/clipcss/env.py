from __future__ import annotations

import logging
import os
from contextlib import suppress
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger("clipcss.env")

ENV_PREFIX = "CLIPCSS_"
ENV_FILENAME = ".env"


def env_key(name: str) -> str:
    """``"save_web_font"`` -> ``"CLIPCSS_SAVE_WEB_FONT"``."""
    return f"{ENV_PREFIX}{name.strip().upper()}"


def load_settings_files(*directories: Path) -> list[Path]:
    """Copy ``CLIPCSS_*`` settings from ``.env`` files into the process environment.

    Earlier directories win, and a non-empty variable already set in the
    shell is never replaced. Keys without the prefix are ignored so that a
    shared ``.env`` cannot leak unrelated settings into the capture run.
    Returns the files that were read.
    """
    loaded: list[Path] = []
    for directory in directories:
        env_path = directory / ENV_FILENAME
        if not env_path.is_file() or env_path in loaded:
            continue
        loaded.append(env_path)
        for key, value in dotenv_values(env_path).items():
            if value is None or not key.startswith(ENV_PREFIX):
                continue
            if (os.environ.get(key) or "").strip():
                continue
            os.environ[key] = value
        logger.debug("settings loaded from %s", env_path)
    return loaded


def setting(name: str, default: str) -> str:
    value = os.environ.get(env_key(name), "").strip()
    return value or default


def float_setting(name: str, default: float) -> float:
    value = setting(name, "")
    if value:
        with suppress(ValueError):
            return float(value)
        logger.warning("ignoring %s=%r: not a number", env_key(name), value)
    return default
