"""
SystemTools — the narrow contract between the registrar and the host.

The trust, refresh and precondition services only talk to the
system through this interface: key download, fingerprinting,
keyring mutation, metadata sync and package listing.  Tests swap in
``MockTools``; production uses ``PacmanTools``.

Keyring and package-manager operations return a ``Receipt`` and
never raise.  ``fetch_key`` is the one exception: it raises
``KeyFetchError`` so the caller can log the network cause.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from registrar.core.models.action import Receipt


class SystemTools(ABC):
    """Abstract base class for host tool adapters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter identifier (e.g. 'pacman', 'mock')."""

    @abstractmethod
    def is_available(self, binary: str) -> bool:
        """Whether ``binary`` can be executed on this host."""

    @abstractmethod
    def fetch_key(self, url: str, timeout: int) -> bytes:
        """Download signing key material.

        Raises:
            KeyFetchError: On any network or HTTP failure.
        """

    @abstractmethod
    def key_fingerprint(self, raw: bytes) -> str | None:
        """Fingerprint of the primary key in ``raw``, or None if unparseable."""

    @abstractmethod
    def init_keyring(self) -> Receipt:
        """Make sure the package manager's keyring exists."""

    @abstractmethod
    def import_key(self, raw: bytes) -> Receipt:
        """Add the key to the package manager's keyring."""

    @abstractmethod
    def sign_key(self, fingerprint: str) -> Receipt:
        """Locally sign (trust) the key with the given fingerprint."""

    @abstractmethod
    def sync_metadata(self) -> Receipt:
        """Refresh package databases."""

    @abstractmethod
    def list_packages(self, repository: str) -> Receipt:
        """List packages of one repository; output holds one package per line."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
