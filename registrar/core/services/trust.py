"""
Trust establishment — fetch, fingerprint, import and sign a key.

Best-effort by contract: a download failure, an unparseable key or
a keyring error never raises.  Each problem becomes a warning on the
returned ``TrustOutcome`` and the outcome degrades to ``no-key`` so
the repository can still be registered with a relaxed SigLevel.

The key counts as trusted only once the local signature succeeds.
``pacman-key --lsign-key`` needs the key in the keyring, so a failed
import followed by a successful sign means a previous run already
added it.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from registrar.adapters.base import SystemTools
from registrar.core.errors import KeyFetchError
from registrar.core.models.repository import TrustKey, TrustOutcome

logger = logging.getLogger(__name__)


def _warn(warnings: list[str], message: str) -> None:
    logger.warning(message)
    warnings.append(message)


def load_key(tools: SystemTools, key_url: str, *, timeout: int, warnings: list[str]) -> TrustKey | None:
    """Download and fingerprint the key; None (with a warning) on any failure."""
    if not key_url:
        _warn(warnings, "No signing key URL configured")
        return None

    logger.info("Downloading signing key from %s", key_url)
    try:
        raw = tools.fetch_key(key_url, timeout)
    except KeyFetchError as e:
        _warn(warnings, f"Failed to download signing key: {e}")
        return None

    if not raw or not raw.strip():
        _warn(warnings, f"Signing key download from {key_url} was empty")
        return None

    fingerprint = tools.key_fingerprint(raw)
    if not fingerprint:
        _warn(warnings, "Failed to extract key fingerprint")
        return None

    try:
        return TrustKey(raw=raw, fingerprint=fingerprint)
    except ValidationError:
        _warn(warnings, f"Unrecognized key fingerprint: {fingerprint!r}")
        return None


def establish_trust(tools: SystemTools, key_url: str, *, timeout: int = 30) -> TrustOutcome:
    """Make the repository's signing key trusted by pacman.

    Args:
        tools: Host tool adapter.
        key_url: Fully resolved key URL (architecture already substituted).
        timeout: Download timeout in seconds.

    Returns:
        ``TrustOutcome.trusted(fingerprint)`` or ``TrustOutcome.no_key()``.
    """
    warnings: list[str] = []

    key = load_key(tools, key_url, timeout=timeout, warnings=warnings)
    if key is None:
        return TrustOutcome.no_key(warnings)

    logger.info("Key fingerprint: %s", key.fingerprint)

    receipt = tools.init_keyring()
    if receipt.failed:
        _warn(warnings, f"Keyring initialization failed: {receipt.error}")

    receipt = tools.import_key(key.raw)
    if receipt.failed:
        _warn(warnings, f"Adding key {key.fingerprint} failed (it may already be present): {receipt.error}")

    receipt = tools.sign_key(key.fingerprint)
    if receipt.failed:
        _warn(warnings, f"Locally signing key {key.fingerprint} failed: {receipt.error}")
        return TrustOutcome.no_key(warnings)

    logger.info("Signing key %s trusted", key.fingerprint)
    return TrustOutcome.trusted(key.fingerprint, warnings)
