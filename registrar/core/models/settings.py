"""
Settings model — the contents of registrar.yml.

Declares which repository to register, where its signing key lives,
which pacman.conf to patch and how tolerant the run is of trust
failures.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from registrar.core.models.repository import RepositoryDescriptor

DEFAULT_PACMAN_CONF = "/etc/pacman.conf"
DEFAULT_ANCHOR = "core"


class KeyFailurePolicy(StrEnum):
    """What to do when no signing key could be trusted."""

    DEGRADE = "degrade"     # warn, register with a relaxed SigLevel
    ABORT = "abort"         # fatal


class Settings(BaseModel):
    """Validated registrar configuration."""

    repository: RepositoryDescriptor
    key_url: str = ""                   # may contain {arch}
    pacman_conf: Path = Path(DEFAULT_PACMAN_CONF)
    anchor_section: str = DEFAULT_ANCHOR
    architectures: list[str] = Field(default_factory=lambda: ["x86_64"])
    required_tools: list[str] = Field(
        default_factory=lambda: ["pacman", "pacman-key", "gpg"],
    )
    key_failure: KeyFailurePolicy = KeyFailurePolicy.DEGRADE
    verify: bool = True
    fetch_timeout: int = Field(default=30, gt=0)
    lock_timeout: float = Field(default=10.0, gt=0)

    @field_validator("architectures")
    @classmethod
    def _non_empty_architectures(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("architectures must list at least one machine type")
        return value

    def resolve_key_url(self, arch: str) -> str:
        """Substitute the detected architecture into ``key_url``."""
        return self.key_url.replace("{arch}", arch)
