"""
Refresh and verify — sync package databases, then probe the new repo.

Both steps are advisory.  Sync failures are usually transient
(mirror or network) and the operator can re-run ``pacman -Sy``; an
empty or failing listing only means reachability is unconfirmed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from registrar.adapters.base import SystemTools

logger = logging.getLogger(__name__)

UNVERIFIED_WARNING = "Repository added, but could not verify reachability"


@dataclass
class RefreshResult:
    synced: bool = False
    verified: bool | None = None        # None when verification was not requested
    package_count: int = 0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "synced": self.synced,
            "verified": self.verified,
            "package_count": self.package_count,
            "warnings": self.warnings,
        }


def refresh(tools: SystemTools, repository: str, *, verify: bool = True) -> RefreshResult:
    """Sync metadata and optionally list the repository's packages."""
    result = RefreshResult()

    logger.info("Updating package databases")
    receipt = tools.sync_metadata()
    if receipt.ok:
        result.synced = True
    else:
        msg = f"Package database sync failed ({receipt.error}); re-run 'pacman -Sy' later"
        logger.warning(msg)
        result.warnings.append(msg)

    if not verify:
        return result

    receipt = tools.list_packages(repository)
    packages = [line for line in receipt.output.splitlines() if line.strip()] if receipt.ok else []
    if not packages:
        reason = receipt.error if receipt.failed else "empty package listing"
        msg = f"{UNVERIFIED_WARNING} ({reason})"
        logger.warning(msg)
        result.warnings.append(msg)
        result.verified = False
        return result

    result.verified = True
    result.package_count = len(packages)
    logger.info("[%s] reachable, %d packages listed", repository, len(packages))
    return result
