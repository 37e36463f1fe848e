"""
Repository models — what gets registered and how it is trusted.

``RepositoryDescriptor`` is the immutable description of the pacman
repository, supplied by registrar.yml.  ``TrustKey`` and
``TrustOutcome`` capture the result of signing-key trust
establishment.
"""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# pacman section names: no brackets, no whitespace, no comment markers
_SECTION_TOKEN_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.+@-]*$")

# OpenPGP v4 (SHA-1, 40 hex) and v5 (SHA-256, 64 hex) fingerprints
_FINGERPRINT_RE = re.compile(r"^(?:[0-9A-F]{40}|[0-9A-F]{64})$")

ARCH_PLACEHOLDER = "$arch"
RESERVED_SECTIONS = frozenset({"options"})


class SigLevel(StrEnum):
    """Signature policy for a repository."""

    OPTIONAL = "Optional"
    TRUST_ALL = "TrustAll"
    REQUIRED = "Required"

    @property
    def directive(self) -> str:
        """Value of the ``SigLevel =`` line in pacman.conf."""
        # TrustAll is a trust modifier; on its own pacman would still
        # default to Required checking, so pair it with Optional.
        if self is SigLevel.TRUST_ALL:
            return "Optional TrustAll"
        return self.value


# Policy written when no key could be trusted.
RELAXED_SIG_LEVEL = SigLevel.TRUST_ALL


class RepositoryDescriptor(BaseModel):
    """A package repository to register in pacman.conf."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    sig_level: SigLevel = SigLevel.REQUIRED

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not _SECTION_TOKEN_RE.match(value):
            raise ValueError(f"Invalid repository name {value!r}: not a valid section token")
        if value in RESERVED_SECTIONS:
            raise ValueError(f"Repository name {value!r} is reserved by pacman")
        return value

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Repository URL is empty")
        if ARCH_PLACEHOLDER not in value:
            raise ValueError(f"Repository URL must contain the {ARCH_PLACEHOLDER} placeholder")
        return value

    @property
    def header(self) -> str:
        return f"[{self.name}]"

    def render_stanza(self, sig_level: SigLevel | None = None) -> str:
        """Render the section text, newline-terminated, no trailing blank line.

        Args:
            sig_level: Override for the descriptor's own level (used when
                trust could not be established and the policy is relaxed).
        """
        level = sig_level or self.sig_level
        return (
            f"{self.header}\n"
            f"SigLevel = {level.directive}\n"
            f"Server = {self.url}\n"
        )


class TrustKey(BaseModel):
    """Signing key material plus its fingerprint."""

    model_config = ConfigDict(frozen=True)

    raw: bytes
    fingerprint: str

    @field_validator("fingerprint")
    @classmethod
    def _check_fingerprint(cls, value: str) -> str:
        normalized = value.replace(" ", "").upper()
        if not _FINGERPRINT_RE.match(normalized):
            raise ValueError(f"Unrecognized key fingerprint format: {value!r}")
        return normalized


class TrustState(StrEnum):
    TRUSTED = "trusted"
    NO_KEY = "no-key"


class TrustOutcome(BaseModel):
    """Result of trust establishment.

    Either ``trusted`` with a fingerprint, or the ``no-key`` sentinel.
    There is no partially-trusted state.
    """

    state: TrustState
    fingerprint: str | None = None
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def trusted(cls, fingerprint: str, warnings: list[str] | None = None) -> TrustOutcome:
        return cls(state=TrustState.TRUSTED, fingerprint=fingerprint, warnings=warnings or [])

    @classmethod
    def no_key(cls, warnings: list[str] | None = None) -> TrustOutcome:
        return cls(state=TrustState.NO_KEY, warnings=warnings or [])

    @property
    def is_trusted(self) -> bool:
        return self.state is TrustState.TRUSTED

    def effective_sig_level(self, descriptor: RepositoryDescriptor) -> SigLevel:
        """SigLevel to write: the descriptor's when trusted, relaxed otherwise."""
        return descriptor.sig_level if self.is_trusted else RELAXED_SIG_LEVEL
