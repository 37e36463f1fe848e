"""
Config check use case — validate registrar.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from registrar.core.config.loader import SETTINGS_FILE, find_settings_file, load_settings
from registrar.core.errors import ConfigError
from registrar.core.models.settings import KeyFailurePolicy, Settings


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    settings: Settings | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "repository": self.settings.repository.name if self.settings else None,
            "pacman_conf": str(self.settings.pacman_conf) if self.settings else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate registrar configuration and report issues.

    Args:
        config_path: Optional explicit path to registrar.yml.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_settings_file()
    if config_path is None:
        result.errors.append(f"No {SETTINGS_FILE} found.")
        return result
    result.config_path = config_path

    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result
    result.settings = settings

    # Semantic checks
    if not settings.key_url:
        result.warnings.append(
            "No key_url set: the repository will be registered with a relaxed SigLevel."
        )
        if settings.key_failure is KeyFailurePolicy.ABORT:
            result.errors.append("key_failure is 'abort' but no key_url is configured.")
    elif not settings.key_url.startswith("https://"):
        result.warnings.append(f"key_url is not HTTPS: {settings.key_url}")

    if not settings.repository.url.startswith("https://"):
        result.warnings.append(f"Repository URL is not HTTPS: {settings.repository.url}")

    if settings.anchor_section == settings.repository.name:
        result.warnings.append(
            "anchor_section equals the repository name; the stanza will be appended instead."
        )

    if not settings.pacman_conf.is_file():
        result.warnings.append(f"pacman.conf not found at {settings.pacman_conf}")

    result.valid = len(result.errors) == 0
    return result
