"""
Settings loader — registrar.yml to a validated ``Settings``.

The file is looked up from the working directory upwards, so
``sudo registrar add`` works from anywhere inside a checkout that
carries its registrar.yml.  Validation errors are flattened into one
line per offending field.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import yaml
from pydantic import ValidationError

from registrar.core.errors import ConfigError
from registrar.core.models.settings import Settings

logger = logging.getLogger(__name__)

SETTINGS_FILE = "registrar.yml"

# Deep enough for any checkout; stops a run from / scanning forever on odd mounts.
_MAX_PARENTS = 20


def _search_dirs(start: Path) -> Iterator[Path]:
    current = start.resolve()
    for _ in range(_MAX_PARENTS):
        yield current
        if current.parent == current:
            return
        current = current.parent


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Nearest registrar.yml at or above ``start_dir`` (cwd by default)."""
    for directory in _search_dirs(start_dir or Path.cwd()):
        candidate = directory / SETTINGS_FILE
        if candidate.is_file():
            return candidate
    return None


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        where = ".".join(str(p) for p in item["loc"]) or "(root)"
        parts.append(f"{where}: {item['msg']}")
    return "; ".join(parts)


def load_settings(path: Path | None = None) -> Settings:
    """Read and validate registrar settings.

    Raises:
        ConfigError: No file found, unreadable, not YAML, not a mapping,
            or a field fails validation.
    """
    path = path or find_settings_file()
    if path is None:
        raise ConfigError(f"No {SETTINGS_FILE} found. Specify one with --config.")
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid registrar configuration in {path}: {_describe(e)}") from e

    logger.info("Settings for [%s] loaded from %s", settings.repository.name, path)
    return settings
