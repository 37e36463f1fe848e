"""
Error taxonomy — fatal conditions that abort a registration run.

Only conditions that would leave the system inconsistent or that
the operator must fix by hand are raised.  Best-effort steps (key
trust, metadata sync, reachability) never raise; they record
warnings on their result objects instead.

Every fatal error derives from ``RegistrarError`` so the CLI can
catch one type, print the diagnostic and exit non-zero.
"""

from __future__ import annotations


class RegistrarError(Exception):
    """Base class for all fatal registrar errors."""


class ConfigError(RegistrarError):
    """Raised when registrar.yml is missing or invalid."""


class ConfigNotFound(RegistrarError):
    """Raised when the pacman configuration file is missing or unreadable."""


class PreconditionFailed(RegistrarError):
    """Raised when privilege, platform or tool requirements are not met."""


class BackupFailed(RegistrarError):
    """Raised when the pre-mutation backup copy cannot be written."""


class PatchFailed(RegistrarError):
    """Raised when the patched configuration cannot be written back."""


class TrustFailed(RegistrarError):
    """Raised when key trust fails and the policy says to abort."""


class KeyFetchError(Exception):
    """Signing key could not be downloaded.

    Not a ``RegistrarError``: the trust establisher always recovers
    from it and degrades to the no-key outcome.
    """
