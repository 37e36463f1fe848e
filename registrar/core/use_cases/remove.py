"""
Remove use case — take the repository stanza back out of pacman.conf.

The signing key stays in pacman's keyring; removing trust is left to
``pacman-key --delete`` so a re-registration does not need to fetch
it again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from registrar.adapters.base import SystemTools
from registrar.core.models.settings import Settings
from registrar.core.services.patcher import REMOVED, unregister
from registrar.core.services.preconditions import check_preconditions
from registrar.core.services.refresh import refresh


@dataclass
class RemovalResult:
    repository: str
    config_path: Path
    removed: bool = False
    backup_path: Path | None = None
    synced: bool = False
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "repository": self.repository,
            "config_path": str(self.config_path),
            "removed": self.removed,
            "backup_path": str(self.backup_path) if self.backup_path else None,
            "synced": self.synced,
            "warnings": self.warnings,
        }


def remove_repository(
    settings: Settings,
    tools: SystemTools,
    *,
    skip_preconditions: bool = False,
) -> RemovalResult:
    """Remove ``settings.repository`` from pacman.conf and resync if it was there."""
    name = settings.repository.name
    result = RemovalResult(repository=name, config_path=settings.pacman_conf)

    if not skip_preconditions:
        check_preconditions(settings, tools, required_tools=["pacman"])

    patch = unregister(settings.pacman_conf, name, lock_timeout=settings.lock_timeout)
    result.removed = patch.status == REMOVED
    result.backup_path = patch.backup_path
    if not result.removed:
        return result

    refreshed = refresh(tools, name, verify=False)
    result.synced = refreshed.synced
    result.warnings.extend(refreshed.warnings)
    return result
