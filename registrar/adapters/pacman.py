"""
Pacman adapter — the real host tools on Arch Linux.

Key download uses ``urllib.request``; fingerprinting uses gpg in
show-only mode so nothing is imported into the user's keyring;
keyring mutation goes through ``pacman-key``; sync and listing go
through ``pacman``.
"""

from __future__ import annotations

import http.client
import logging
import shutil
import urllib.error
import urllib.request
from typing import Any

from registrar import __version__
from registrar.adapters.base import SystemTools
from registrar.core.errors import KeyFetchError
from registrar.core.execution.subprocess_runner import run_command
from registrar.core.models.action import Receipt

logger = logging.getLogger(__name__)

_USER_AGENT = f"repo-registrar/{__version__}"

# Refuse absurd payloads; armored keys are a few KiB.
_MAX_KEY_BYTES = 1024 * 1024


def parse_colon_fingerprint(output: str) -> str | None:
    """Extract the first ``fpr`` record from ``gpg --with-colons`` output.

    The fingerprint is field 10 of the record, e.g.::

        fpr:::::::::0123456789ABCDEF0123456789ABCDEF01234567:
    """
    for line in output.splitlines():
        fields = line.split(":")
        if fields[0] == "fpr" and len(fields) > 9 and fields[9]:
            return fields[9]
    return None


class PacmanTools(SystemTools):
    """Host tools backed by pacman, pacman-key and gpg."""

    def __init__(self, command_timeout: int = 300) -> None:
        self._timeout = command_timeout

    @property
    def name(self) -> str:
        return "pacman"

    def is_available(self, binary: str) -> bool:
        return shutil.which(binary) is not None

    # ── Key material ────────────────────────────────────────────

    def fetch_key(self, url: str, timeout: int) -> bytes:
        req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                data = resp.read(_MAX_KEY_BYTES + 1)
        except urllib.error.HTTPError as e:
            raise KeyFetchError(f"HTTP {e.code} fetching {url}") from e
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            raise KeyFetchError(f"Cannot fetch {url}: {e}") from e

        if len(data) > _MAX_KEY_BYTES:
            raise KeyFetchError(f"Key at {url} exceeds {_MAX_KEY_BYTES} bytes")
        return data

    def key_fingerprint(self, raw: bytes) -> str | None:
        result = run_command(
            [
                "gpg", "--batch", "--quiet", "--with-colons",
                "--import-options", "show-only",
                "--import", "--fingerprint",
            ],
            input_data=raw,
            timeout=30,
        )
        if not result["ok"]:
            logger.debug("gpg could not parse key: %s", result.get("stderr", ""))
            return None
        return parse_colon_fingerprint(result["stdout"])

    # ── Keyring ─────────────────────────────────────────────────

    def init_keyring(self) -> Receipt:
        return self._run("init_keyring", ["pacman-key", "--init"])

    def import_key(self, raw: bytes) -> Receipt:
        return self._run("import_key", ["pacman-key", "--add", "-"], input_data=raw)

    def sign_key(self, fingerprint: str) -> Receipt:
        return self._run("sign_key", ["pacman-key", "--lsign-key", fingerprint])

    # ── Package databases ───────────────────────────────────────

    def sync_metadata(self) -> Receipt:
        return self._run("sync_metadata", ["pacman", "-Sy", "--noconfirm"])

    def list_packages(self, repository: str) -> Receipt:
        return self._run("list_packages", ["pacman", "-Sl", repository])

    # ── Internal ────────────────────────────────────────────────

    def _run(self, operation: str, cmd: list[str], **kwargs: Any) -> Receipt:
        result = run_command(cmd, timeout=self._timeout, **kwargs)
        meta = {"command": " ".join(cmd)}
        if result["ok"]:
            return Receipt.success(
                adapter=self.name,
                operation=operation,
                output=result["stdout"],
                return_code=0,
                duration_ms=result.get("elapsed_ms", 0),
                metadata=meta,
            )
        stderr = (result.get("stderr") or "").strip()
        return Receipt.failure(
            adapter=self.name,
            operation=operation,
            error=stderr or result["error"],
            return_code=result.get("returncode"),
            duration_ms=result.get("elapsed_ms", 0),
            metadata=meta,
        )
