"""
State and host detection — read-only probes.

``is_registered`` answers "is the repository already in pacman.conf?"
using the parsed section model, so only an exact, uncommented
``[name]`` header counts.
"""

from __future__ import annotations

import os
import platform
from pathlib import Path

from registrar.core.persistence.conf_file import read_conf


def is_registered(conf_path: Path, name: str) -> bool:
    """Whether a section called ``name`` exists in ``conf_path``.

    Raises:
        ConfigNotFound: If the file is missing or unreadable.
    """
    return read_conf(conf_path).has_section(name)


def detect_architecture() -> str:
    """Machine architecture as pacman sees it (``uname -m``)."""
    return platform.machine()


def detect_platform() -> str:
    return platform.system()


def current_euid() -> int:
    return os.geteuid()


# What pacman applies when neither the section nor [options] sets SigLevel.
PACMAN_DEFAULT_SIG_LEVEL = "Required DatabaseOptional"


def existing_sig_level(conf_path: Path, name: str) -> str:
    """SigLevel pacman will use for section ``name`` as the file stands.

    Falls back to the ``[options]`` value, then to pacman's built-in default.
    """
    conf = read_conf(conf_path)
    for section_name in (name, "options"):
        section = conf.find(section_name)
        value = section.get("SigLevel") if section else None
        if value:
            return value
    return PACMAN_DEFAULT_SIG_LEVEL
