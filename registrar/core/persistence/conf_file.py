"""
pacman.conf persistence — read, back up and atomically replace.

Reads keep line endings untouched so a parse/render cycle is
lossless.  Writes go to a temp file in the same directory and are
moved into place with ``os.replace``; a crash mid-write leaves the
original intact.  Backups are timestamped copies taken before any
mutation (``PATH.backup.YYYYMMDD_HHMMSS``).
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tempfile
import time
from pathlib import Path

from registrar.core.errors import BackupFailed, ConfigNotFound, PatchFailed
from registrar.core.models.pacman_conf import PacmanConf

logger = logging.getLogger(__name__)

BACKUP_INFIX = ".backup."


def read_text(path: Path) -> str:
    """Read the file verbatim (no newline translation).

    Raises:
        ConfigNotFound: If the file is missing or unreadable.
    """
    try:
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()
    except FileNotFoundError as e:
        raise ConfigNotFound(f"Configuration file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigNotFound(f"Cannot read {path}: {e}") from e


def read_conf(path: Path) -> PacmanConf:
    return PacmanConf.parse(read_text(path))


def backup_file(path: Path) -> Path:
    """Create a timestamped copy of ``path`` next to it.

    A second backup within the same second gets a numeric suffix
    rather than overwriting the first.

    Returns:
        Path of the backup.

    Raises:
        BackupFailed: If the copy cannot be written.
    """
    ts = time.strftime("%Y%m%d_%H%M%S")
    dest = path.with_name(f"{path.name}{BACKUP_INFIX}{ts}")
    n = 1
    while dest.exists():
        dest = path.with_name(f"{path.name}{BACKUP_INFIX}{ts}.{n}")
        n += 1

    try:
        shutil.copy2(path, dest)
    except OSError as e:
        raise BackupFailed(f"Cannot back up {path} to {dest}: {e}") from e

    logger.info("Backed up %s → %s", path, dest)
    return dest


def list_backups(path: Path) -> list[Path]:
    """Existing backups of ``path``, oldest first."""
    return sorted(path.parent.glob(f"{path.name}{BACKUP_INFIX}*"))


def write_conf(path: Path, conf: PacmanConf) -> None:
    """Atomically replace ``path`` with the rendered configuration.

    The original file's permission bits are carried over.

    Raises:
        PatchFailed: If the temp file cannot be written or moved.
    """
    content = conf.render()
    try:
        mode = stat.S_IMODE(path.stat().st_mode)
    except OSError:
        mode = 0o644

    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
    except OSError as e:
        raise PatchFailed(f"Cannot create temp file next to {path}: {e}") from e

    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise PatchFailed(f"Failed to write {path}: {e}") from e

    logger.debug("Wrote %s (%d bytes)", path, len(content.encode("utf-8")))
