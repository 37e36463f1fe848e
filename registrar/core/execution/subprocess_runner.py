"""
Subprocess runner — the single place external commands are executed.

pacman, pacman-key and gpg are all invoked through ``run_command``
so timeouts, output capture and logging are handled uniformly.
The runner never raises for command failures; callers inspect the
returned dict.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

# Tail of stdout/stderr kept in results
_OUTPUT_LIMIT = 4000


def run_command(
    cmd: list[str],
    *,
    input_data: bytes | None = None,
    timeout: int = 120,
    env_overrides: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Run a command and capture its output.

    Args:
        cmd: Command list for ``subprocess.run()``.
        input_data: Bytes piped to stdin (key material for
            ``pacman-key --add -`` and ``gpg --import``).
        timeout: Seconds before the command is killed.
        env_overrides: Extra environment variables.

    Returns:
        ``{"ok": True, "stdout": "...", "returncode": 0, "elapsed_ms": N}``
        on success, ``{"ok": False, "error": "...", ...}`` on failure.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Running: %s", " ".join(cmd))
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            input=input_data,
            timeout=timeout,
            env=env,
        )
    except subprocess.TimeoutExpired:
        logger.debug("Timed out after %ss: %s", timeout, cmd[0])
        return {"ok": False, "error": f"Command timed out ({timeout}s)", "returncode": None}
    except OSError as e:
        logger.debug("Cannot execute %s: %s", cmd[0], e)
        return {"ok": False, "error": str(e), "returncode": None}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout.decode("utf-8", errors="replace")[-_OUTPUT_LIMIT:]
    stderr = result.stderr.decode("utf-8", errors="replace")[-_OUTPUT_LIMIT:]

    if result.returncode == 0:
        return {
            "ok": True,
            "stdout": stdout,
            "stderr": stderr,
            "returncode": 0,
            "elapsed_ms": elapsed_ms,
        }

    return {
        "ok": False,
        "error": f"Command failed (exit {result.returncode})",
        "stdout": stdout,
        "stderr": stderr,
        "returncode": result.returncode,
        "elapsed_ms": elapsed_ms,
    }
