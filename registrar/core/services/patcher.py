"""
Config patcher — idempotent, transactional edits of pacman.conf.

Every mutation follows the same discipline:

    lock → backup → re-read and parse → edit the section model → atomic write

The presence check is repeated under the lock, so a section that
appeared between detection and patching is reported as already
present instead of being duplicated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from filelock import FileLock, Timeout

from registrar.core.errors import ConfigNotFound, PatchFailed
from registrar.core.models.repository import RepositoryDescriptor, SigLevel
from registrar.core.persistence.conf_file import backup_file, read_conf, write_conf

logger = logging.getLogger(__name__)

ADDED = "added"
REPLACED = "replaced"
ALREADY_PRESENT = "already_present"
REMOVED = "removed"
ABSENT = "absent"


@dataclass
class PatchResult:
    """Outcome of a patch or removal."""

    status: str
    backup_path: Path | None = None
    position: str | None = None     # "before:<anchor>" or "end"

    @property
    def changed(self) -> bool:
        return self.status in (ADDED, REPLACED, REMOVED)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "changed": self.changed,
            "backup_path": str(self.backup_path) if self.backup_path else None,
            "position": self.position,
        }


# Lock files live on tmpfs, not next to the config; FileLock leaves them behind.
LOCK_DIR = Path("/run/lock")


def lock_path_for(conf_path: Path) -> Path:
    """Lock file for ``conf_path``, e.g. ``/run/lock/registrar-etc-pacman.conf.lock``."""
    escaped = str(conf_path.resolve()).strip("/").replace("/", "-")
    return LOCK_DIR / f"registrar-{escaped}.lock"


def _acquire(conf_path: Path, timeout: float) -> FileLock:
    path = lock_path_for(conf_path)
    lock = FileLock(str(path))
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        lock.acquire(timeout=timeout)
    except Timeout as e:
        raise PatchFailed(
            f"Another process holds {lock.lock_file}; gave up after {timeout}s"
        ) from e
    except OSError as e:
        raise PatchFailed(f"Cannot create lock file {lock.lock_file}: {e}") from e
    return lock


def patch_config(
    descriptor: RepositoryDescriptor,
    conf_path: Path,
    *,
    anchor: str = "core",
    sig_level: SigLevel | None = None,
    replace: bool = False,
    lock_timeout: float = 10.0,
) -> PatchResult:
    """Add (or with ``replace`` rewrite) the repository stanza.

    The stanza goes immediately before the ``anchor`` section so it
    takes priority over it; without an anchor it is appended.

    Args:
        descriptor: Repository to register.
        conf_path: pacman.conf path.
        anchor: Section the new stanza is inserted before.
        sig_level: Override for the descriptor's SigLevel.
        replace: Rewrite an existing stanza instead of leaving it alone.
        lock_timeout: Seconds to wait for the config lock.

    Raises:
        ConfigNotFound: If ``conf_path`` does not exist.
        BackupFailed: If the backup copy cannot be written.
        PatchFailed: If the lock or the write fails.
    """
    if not conf_path.is_file():
        raise ConfigNotFound(f"Configuration file not found: {conf_path}")

    lock = _acquire(conf_path, lock_timeout)
    try:
        backup = backup_file(conf_path)
        conf = read_conf(conf_path)

        status = ADDED
        if conf.has_section(descriptor.name):
            if not replace:
                logger.info("[%s] already present in %s, leaving it alone", descriptor.name, conf_path)
                return PatchResult(status=ALREADY_PRESENT, backup_path=backup)
            while conf.remove_section(descriptor.name):
                pass
            status = REPLACED

        stanza = descriptor.render_stanza(sig_level)
        if anchor != descriptor.name and conf.has_section(anchor):
            conf.insert_before(anchor, stanza)
            position = f"before:{anchor}"
        else:
            conf.append(stanza)
            position = "end"

        write_conf(conf_path, conf)
    finally:
        lock.release()

    logger.info("[%s] %s in %s (%s)", descriptor.name, status, conf_path, position)
    return PatchResult(status=status, backup_path=backup, position=position)


def unregister(conf_path: Path, name: str, *, lock_timeout: float = 10.0) -> PatchResult:
    """Remove every stanza called ``name``; no backup or write if there is none.

    Raises:
        ConfigNotFound: If ``conf_path`` is missing or unreadable.
        BackupFailed: If the backup copy cannot be written.
        PatchFailed: If the lock or the write fails.
    """
    if not conf_path.is_file():
        raise ConfigNotFound(f"Configuration file not found: {conf_path}")

    lock = _acquire(conf_path, lock_timeout)
    try:
        conf = read_conf(conf_path)
        if not conf.has_section(name):
            logger.info("[%s] not present in %s", name, conf_path)
            return PatchResult(status=ABSENT)

        backup = backup_file(conf_path)
        while conf.remove_section(name):
            pass
        write_conf(conf_path, conf)
    finally:
        lock.release()

    logger.info("[%s] removed from %s", name, conf_path)
    return PatchResult(status=REMOVED, backup_path=backup)
