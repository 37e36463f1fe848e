"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from registrar.adapters.mock import MockTools
from registrar.core.models.repository import RepositoryDescriptor
from registrar.core.models.settings import Settings

STOCK_PACMAN_CONF = textwrap.dedent("""\
    #
    # /etc/pacman.conf
    #
    [options]
    HoldPkg     = pacman glibc
    Architecture = auto
    CheckSpace
    SigLevel    = Required DatabaseOptional
    LocalFileSigLevel = Optional

    # The testing repositories are disabled by default.
    #[core-testing]
    #Include = /etc/pacman.d/mirrorlist

    [core]
    Include = /etc/pacman.d/mirrorlist

    [extra]
    Include = /etc/pacman.d/mirrorlist
""")

NO_ANCHOR_CONF = textwrap.dedent("""\
    [options]
    Architecture = auto

    [extra]
    Include = /etc/pacman.d/mirrorlist
""")


@pytest.fixture
def descriptor() -> RepositoryDescriptor:
    return RepositoryDescriptor(name="example_repo", url="https://example.test/$arch")


@pytest.fixture
def pacman_conf(tmp_path: Path) -> Path:
    """A stock pacman.conf with an [core] anchor."""
    path = tmp_path / "pacman.conf"
    path.write_text(STOCK_PACMAN_CONF)
    return path


@pytest.fixture
def no_anchor_conf(tmp_path: Path) -> Path:
    path = tmp_path / "pacman.conf"
    path.write_text(NO_ANCHOR_CONF)
    return path


@pytest.fixture
def empty_conf(tmp_path: Path) -> Path:
    path = tmp_path / "pacman.conf"
    path.write_text("")
    return path


@pytest.fixture
def make_settings(descriptor: RepositoryDescriptor):
    """Build Settings pointing at a given pacman.conf."""

    def _make(conf_path: Path, **overrides) -> Settings:
        data = {
            "repository": descriptor,
            "key_url": "https://example.test/{arch}/example_repo.key",
            "pacman_conf": conf_path,
        }
        data.update(overrides)
        return Settings(**data)

    return _make


@pytest.fixture
def mock_tools() -> MockTools:
    return MockTools()


@pytest.fixture
def as_root(monkeypatch):
    """Pretend to be root on x86_64 Linux."""
    import registrar.core.services.preconditions as pre

    monkeypatch.setattr(pre, "current_euid", lambda: 0)
    monkeypatch.setattr(pre, "detect_platform", lambda: "Linux")
    monkeypatch.setattr(pre, "detect_architecture", lambda: "x86_64")


@pytest.fixture
def stock_text() -> str:
    return STOCK_PACMAN_CONF


@pytest.fixture
def no_anchor_text() -> str:
    return NO_ANCHOR_CONF


@pytest.fixture(autouse=True)
def lock_dir(tmp_path: Path, monkeypatch) -> Path:
    """Keep config lock files out of /run/lock."""
    import registrar.core.services.patcher as patcher

    path = tmp_path / "lock"
    monkeypatch.setattr(patcher, "LOCK_DIR", path)
    return path
