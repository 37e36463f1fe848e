"""
Register use case — the end-to-end registration flow.

    Start → Preconditions → CheckPresence
        AlreadyPresent → EstablishTrust → Refresh → Done
        Absent         → EstablishTrust → Patch → Refresh → Verify → Done

Nothing is retried; the flow is safe to re-run from the top.  Every
step is recorded on the result and reported through the optional
``progress`` callback before the next step starts.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from registrar.adapters.base import SystemTools
from registrar.core.errors import TrustFailed
from registrar.core.models.repository import TrustOutcome
from registrar.core.models.settings import KeyFailurePolicy, Settings
from registrar.core.services.detection import (
    detect_architecture,
    existing_sig_level,
    is_registered,
)
from registrar.core.services.patcher import ALREADY_PRESENT, REPLACED, patch_config
from registrar.core.services.preconditions import check_preconditions
from registrar.core.services.refresh import refresh
from registrar.core.services.trust import establish_trust

logger = logging.getLogger(__name__)

MODE_INSTALLED = "installed"
MODE_UPDATED = "updated"
MODE_ALREADY_PRESENT = "already_present"


@dataclass
class StepOutcome:
    """One reported step: status is ok, warning or skipped."""

    step: str
    status: str
    message: str

    def to_dict(self) -> dict:
        return {"step": self.step, "status": self.status, "message": self.message}


ProgressCallback = Callable[[StepOutcome], None]


@dataclass
class RegistrationResult:
    """Everything the final summary needs."""

    repository: str
    url: str
    config_path: Path
    mode: str = ""
    architecture: str = ""
    trust_state: str = ""
    fingerprint: str | None = None
    sig_level: str = ""
    backup_path: Path | None = None
    position: str | None = None
    synced: bool = False
    verified: bool | None = None
    package_count: int = 0
    steps: list[StepOutcome] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return [s.message for s in self.steps if s.status == "warning"]

    @property
    def fresh_install(self) -> bool:
        return self.mode == MODE_INSTALLED

    def to_dict(self) -> dict:
        return {
            "repository": self.repository,
            "url": self.url,
            "config_path": str(self.config_path),
            "mode": self.mode,
            "architecture": self.architecture,
            "trust": {
                "state": self.trust_state,
                "fingerprint": self.fingerprint,
            },
            "sig_level": self.sig_level,
            "backup_path": str(self.backup_path) if self.backup_path else None,
            "position": self.position,
            "synced": self.synced,
            "verified": self.verified,
            "package_count": self.package_count,
            "warnings": self.warnings,
            "steps": [s.to_dict() for s in self.steps],
        }


class _Reporter:
    def __init__(self, result: RegistrationResult, progress: ProgressCallback | None) -> None:
        self._result = result
        self._progress = progress

    def __call__(self, step: str, status: str, message: str) -> None:
        outcome = StepOutcome(step=step, status=status, message=message)
        self._result.steps.append(outcome)
        if self._progress is not None:
            self._progress(outcome)


def _report_trust(report: _Reporter, trust: TrustOutcome) -> None:
    for warning in trust.warnings:
        report("trust", "warning", warning)
    if trust.is_trusted:
        report("trust", "ok", f"Signing key {trust.fingerprint} trusted")
    else:
        report("trust", "warning", "No signing key trusted; using relaxed signature policy")


def register_repository(
    settings: Settings,
    tools: SystemTools,
    *,
    replace: bool = False,
    skip_preconditions: bool = False,
    progress: ProgressCallback | None = None,
) -> RegistrationResult:
    """Register ``settings.repository`` in pacman.conf.

    Args:
        settings: Validated registrar settings.
        tools: Host tool adapter.
        replace: Rewrite an existing stanza instead of keeping it.
        skip_preconditions: Skip root/platform/tool checks (tests and
            alternate roots such as a chroot's pacman.conf).
        progress: Called with each step outcome as it happens.

    Raises:
        PreconditionFailed, ConfigNotFound: Before anything is changed.
        TrustFailed: If no key was trusted and the policy is ``abort``.
        BackupFailed, PatchFailed: If pacman.conf could not be patched.
    """
    descriptor = settings.repository
    conf_path = settings.pacman_conf
    result = RegistrationResult(
        repository=descriptor.name,
        url=descriptor.url,
        config_path=conf_path,
    )
    report = _Reporter(result, progress)

    # ── Preconditions ───────────────────────────────────────────
    if skip_preconditions:
        arch = detect_architecture()
    else:
        arch = check_preconditions(settings, tools)
        report("preconditions", "ok", f"Running as root on {arch}")
    result.architecture = arch

    # ── Presence ────────────────────────────────────────────────
    present = is_registered(conf_path, descriptor.name)
    if present:
        report("detect", "ok", f"[{descriptor.name}] already present in {conf_path}")
    else:
        report("detect", "ok", f"[{descriptor.name}] not present in {conf_path}")

    # ── Trust ───────────────────────────────────────────────────
    trust = establish_trust(
        tools,
        settings.resolve_key_url(arch),
        timeout=settings.fetch_timeout,
    )
    _report_trust(report, trust)
    result.trust_state = trust.state.value
    result.fingerprint = trust.fingerprint

    keep_existing = present and not replace
    # An existing stanza is left as it is, so there is nothing to abort.
    if not trust.is_trusted and settings.key_failure is KeyFailurePolicy.ABORT and not keep_existing:
        raise TrustFailed(
            f"Could not establish trust for [{descriptor.name}]: "
            + ("; ".join(trust.warnings) or "no key")
        )

    sig_level = trust.effective_sig_level(descriptor)

    # ── Patch ───────────────────────────────────────────────────
    if keep_existing:
        result.mode = MODE_ALREADY_PRESENT
        report("patch", "skipped", f"Keeping existing [{descriptor.name}] section")
    else:
        patch = patch_config(
            descriptor,
            conf_path,
            anchor=settings.anchor_section,
            sig_level=sig_level,
            replace=replace,
            lock_timeout=settings.lock_timeout,
        )
        result.backup_path = patch.backup_path
        result.position = patch.position
        if patch.status == ALREADY_PRESENT:
            result.mode = MODE_ALREADY_PRESENT
            report("patch", "skipped", f"[{descriptor.name}] appeared concurrently; left unchanged")
        else:
            result.mode = MODE_UPDATED if patch.status == REPLACED else MODE_INSTALLED
            result.sig_level = sig_level.directive
            where = "at end of file" if patch.position == "end" else f"before [{settings.anchor_section}]"
            report("patch", "ok", f"[{descriptor.name}] written {where} (backup: {patch.backup_path})")

    if result.mode == MODE_ALREADY_PRESENT:
        result.sig_level = existing_sig_level(conf_path, descriptor.name)
        if not trust.is_trusted and "Required" in result.sig_level.split():
            report(
                "patch", "warning",
                f"[{descriptor.name}] keeps SigLevel = {result.sig_level} but no key is trusted; "
                "pacman will reject its packages (re-run with --replace to relax it)",
            )

    # ── Refresh / verify ────────────────────────────────────────
    verify = settings.verify and result.mode != MODE_ALREADY_PRESENT
    refreshed = refresh(tools, descriptor.name, verify=verify)
    result.synced = refreshed.synced
    result.verified = refreshed.verified
    result.package_count = refreshed.package_count
    for warning in refreshed.warnings:
        report("refresh", "warning", warning)
    if refreshed.synced:
        report("refresh", "ok", "Package databases updated")
    if refreshed.verified:
        report("verify", "ok", f"{refreshed.package_count} packages available from [{descriptor.name}]")

    logger.info("Registration of [%s] finished: %s", descriptor.name, result.mode)
    return result
