"""
Status use case — what pacman.conf currently says about the repository.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from registrar.core.errors import ConfigNotFound
from registrar.core.models.pacman_conf import Section
from registrar.core.models.settings import Settings
from registrar.core.persistence.conf_file import list_backups, read_conf


@dataclass
class StatusResult:
    repository: str
    config_path: Path
    present: bool = False
    section_count: int = 0
    section: Section | None = None
    backups: list[Path] = field(default_factory=list)
    error: str | None = None

    @property
    def sig_level(self) -> str | None:
        return self.section.get("SigLevel") if self.section else None

    @property
    def servers(self) -> list[str]:
        return self.section.get_all("Server") if self.section else []

    def to_dict(self) -> dict:
        return {
            "repository": self.repository,
            "config_path": str(self.config_path),
            "present": self.present,
            "section_count": self.section_count,
            "sig_level": self.sig_level,
            "servers": self.servers,
            "backups": [str(p) for p in self.backups],
            "error": self.error,
        }


def repository_status(settings: Settings) -> StatusResult:
    """Inspect pacman.conf without modifying anything."""
    name = settings.repository.name
    result = StatusResult(repository=name, config_path=settings.pacman_conf)

    try:
        conf = read_conf(settings.pacman_conf)
    except ConfigNotFound as e:
        result.error = str(e)
        return result

    result.section = conf.find(name)
    result.present = result.section is not None
    result.section_count = conf.count(name)
    result.backups = list_backups(settings.pacman_conf)
    return result
