"""
Mock tools — test double for every host operation.

Succeeds by default.  Individual operations can be made to fail,
the key fetch can simulate a network outage, and every call is
recorded so tests can assert on the sequence of side effects.
"""

from __future__ import annotations

from typing import Any

from registrar.adapters.base import SystemTools
from registrar.core.errors import KeyFetchError
from registrar.core.models.action import Receipt

MOCK_KEY = b"-----BEGIN PGP PUBLIC KEY BLOCK-----\nmock\n-----END PGP PUBLIC KEY BLOCK-----\n"
MOCK_FINGERPRINT = "0123456789ABCDEF0123456789ABCDEF01234567"


class MockTools(SystemTools):
    """Configurable in-memory stand-in for ``PacmanTools``."""

    def __init__(
        self,
        *,
        key_data: bytes = MOCK_KEY,
        fingerprint: str | None = MOCK_FINGERPRINT,
        packages: list[str] | None = None,
        available: set[str] | None = None,
        fetch_error: str | None = None,
    ) -> None:
        self.key_data = key_data
        self.fingerprint = fingerprint
        self.packages = ["mockrepo example-pkg 1.0-1"] if packages is None else packages
        self.available = available
        self.fetch_error = fetch_error
        self._failures: dict[str, str] = {}
        self._call_log: list[tuple[str, Any]] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[tuple[str, Any]]:
        """``(operation, argument)`` for every call received."""
        return self._call_log

    @property
    def operations(self) -> list[str]:
        return [op for op, _ in self._call_log]

    def set_failure(self, operation: str, error: str = "Mock failure") -> None:
        """Make ``operation`` (e.g. 'sign_key') return a failed receipt."""
        self._failures[operation] = error

    def reset(self) -> None:
        self._call_log.clear()
        self._failures.clear()

    def is_available(self, binary: str) -> bool:
        self._call_log.append(("is_available", binary))
        return self.available is None or binary in self.available

    def fetch_key(self, url: str, timeout: int) -> bytes:
        self._call_log.append(("fetch_key", url))
        if self.fetch_error is not None:
            raise KeyFetchError(self.fetch_error)
        return self.key_data

    def key_fingerprint(self, raw: bytes) -> str | None:
        self._call_log.append(("key_fingerprint", len(raw)))
        return self.fingerprint

    def init_keyring(self) -> Receipt:
        return self._receipt("init_keyring", None)

    def import_key(self, raw: bytes) -> Receipt:
        return self._receipt("import_key", len(raw))

    def sign_key(self, fingerprint: str) -> Receipt:
        return self._receipt("sign_key", fingerprint)

    def sync_metadata(self) -> Receipt:
        return self._receipt("sync_metadata", None)

    def list_packages(self, repository: str) -> Receipt:
        return self._receipt("list_packages", repository, output="\n".join(self.packages))

    def _receipt(self, operation: str, arg: Any, output: str = "") -> Receipt:
        self._call_log.append((operation, arg))
        if operation in self._failures:
            return Receipt.failure(
                adapter=self.name,
                operation=operation,
                error=self._failures[operation],
                return_code=1,
            )
        return Receipt.success(
            adapter=self.name,
            operation=operation,
            output=output,
            metadata={"mock": True},
        )
