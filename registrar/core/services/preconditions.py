"""
Preconditions — fatal checks run before anything is touched.

Root privilege, a Linux host on a supported architecture, the
external tools on PATH, and a readable, writable pacman.conf.  Each
failed check raises with a message the operator can act on.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from registrar.adapters.base import SystemTools
from registrar.core.errors import ConfigNotFound, PreconditionFailed
from registrar.core.models.settings import Settings
from registrar.core.services.detection import current_euid, detect_architecture, detect_platform

logger = logging.getLogger(__name__)


def check_privilege() -> None:
    if current_euid() != 0:
        raise PreconditionFailed("This command must be run as root (use sudo)")


def check_platform(architectures: list[str]) -> str:
    """Return the detected architecture if supported."""
    system = detect_platform()
    if system != "Linux":
        raise PreconditionFailed(f"Unsupported platform {system!r}: Arch Linux with pacman is required")
    arch = detect_architecture()
    if arch not in architectures:
        raise PreconditionFailed(
            f"Unsupported architecture {arch!r} (supported: {', '.join(architectures)})"
        )
    return arch


def check_tools(tools: SystemTools, required: list[str]) -> None:
    missing = [binary for binary in required if not tools.is_available(binary)]
    if missing:
        raise PreconditionFailed(f"Required tools not found: {', '.join(missing)}")


def check_config_access(conf_path: Path) -> None:
    if not conf_path.is_file():
        raise ConfigNotFound(f"Configuration file not found: {conf_path}")
    if not os.access(conf_path, os.R_OK):
        raise ConfigNotFound(f"Configuration file is not readable: {conf_path}")
    if not os.access(conf_path, os.W_OK) or not os.access(conf_path.parent, os.W_OK):
        raise PreconditionFailed(f"Configuration file is not writable: {conf_path}")


def check_preconditions(
    settings: Settings,
    tools: SystemTools,
    *,
    required_tools: list[str] | None = None,
) -> str:
    """Run every check in order; return the detected architecture.

    Raises:
        PreconditionFailed: On privilege, platform or tool mismatch.
        ConfigNotFound: If pacman.conf is missing or unreadable.
    """
    check_privilege()
    arch = check_platform(settings.architectures)
    check_tools(tools, settings.required_tools if required_tools is None else required_tools)
    check_config_access(settings.pacman_conf)
    logger.debug("Preconditions satisfied (arch=%s)", arch)
    return arch
