"""
Tests for the config patcher — backup, anchor placement, idempotence, removal.
"""

from pathlib import Path

import pytest
from filelock import FileLock

from registrar.core.errors import ConfigNotFound, PatchFailed
from registrar.core.models.pacman_conf import PacmanConf
from registrar.core.models.repository import RepositoryDescriptor, SigLevel
from registrar.core.persistence.conf_file import list_backups
from registrar.core.services.detection import is_registered
from registrar.core.services.patcher import (
    ABSENT,
    ADDED,
    ALREADY_PRESENT,
    REMOVED,
    REPLACED,
    lock_path_for,
    patch_config,
    unregister,
)

SPLIT_STANZA_CONF = (
    "[options]\nArchitecture = auto\n\n"
    "[example_repo]\nSigLevel = Required\n\nServer = https://old.test/$arch\n\n"
    "[core]\nInclude = /etc/pacman.d/mirrorlist\n"
)


class TestPatchConfig:
    def test_insert_before_anchor(self, descriptor: RepositoryDescriptor, pacman_conf: Path, stock_text: str):
        result = patch_config(descriptor, pacman_conf)
        assert result.status == ADDED
        assert result.position == "before:core"

        text = pacman_conf.read_text()
        anchor_at = stock_text.index("[core]")
        assert text == stock_text[:anchor_at] + descriptor.render_stanza() + "\n" + stock_text[anchor_at:]

    def test_append_without_anchor(self, descriptor: RepositoryDescriptor, no_anchor_conf: Path, no_anchor_text: str):
        result = patch_config(descriptor, no_anchor_conf)
        assert result.position == "end"
        text = no_anchor_conf.read_text()
        assert text.startswith(no_anchor_text)
        assert text.endswith(descriptor.render_stanza())

    def test_empty_file_example(self, empty_conf: Path):
        d = RepositoryDescriptor(name="example_repo", url="https://example.test/$arch")
        patch_config(d, empty_conf)

        conf = PacmanConf.parse(empty_conf.read_text())
        assert conf.section_names == ["example_repo"]
        section = conf.find("example_repo")
        assert section.get("Server") == "https://example.test/$arch"
        assert section.get("SigLevel") is not None

    def test_backup_equals_pre_run_content(self, descriptor: RepositoryDescriptor, pacman_conf: Path):
        before = pacman_conf.read_bytes()
        result = patch_config(descriptor, pacman_conf)
        assert result.backup_path is not None
        assert result.backup_path.read_bytes() == before
        assert list_backups(pacman_conf) == [result.backup_path]

    def test_idempotent(self, descriptor: RepositoryDescriptor, pacman_conf: Path):
        patch_config(descriptor, pacman_conf)
        after_first = pacman_conf.read_bytes()

        second = patch_config(descriptor, pacman_conf)
        assert second.status == ALREADY_PRESENT
        assert not second.changed
        assert pacman_conf.read_bytes() == after_first
        assert PacmanConf.parse(pacman_conf.read_text()).count(descriptor.name) == 1

    def test_sig_level_override(self, descriptor: RepositoryDescriptor, pacman_conf: Path):
        patch_config(descriptor, pacman_conf, sig_level=SigLevel.TRUST_ALL)
        section = PacmanConf.parse(pacman_conf.read_text()).find(descriptor.name)
        assert section.get("SigLevel") == "Optional TrustAll"

    def test_custom_anchor(self, descriptor: RepositoryDescriptor, pacman_conf: Path):
        patch_config(descriptor, pacman_conf, anchor="extra")
        names = PacmanConf.parse(pacman_conf.read_text()).section_names
        assert names == ["options", "core", "example_repo", "extra"]

    def test_replace_rewrites_single_section(self, pacman_conf: Path):
        old = RepositoryDescriptor(name="example_repo", url="https://old.test/$arch")
        new = RepositoryDescriptor(name="example_repo", url="https://new.test/$arch")
        patch_config(old, pacman_conf)

        result = patch_config(new, pacman_conf, replace=True)
        assert result.status == REPLACED
        conf = PacmanConf.parse(pacman_conf.read_text())
        assert conf.count("example_repo") == 1
        assert conf.find("example_repo").get("Server") == "https://new.test/$arch"

    def test_replace_collapses_duplicates(self, descriptor: RepositoryDescriptor, tmp_path: Path):
        path = tmp_path / "pacman.conf"
        path.write_text("[example_repo]\nServer = a/$arch\n\n[example_repo]\nServer = b/$arch\n\n[core]\n")
        patch_config(descriptor, path, replace=True)
        assert PacmanConf.parse(path.read_text()).count("example_repo") == 1

    def test_missing_file(self, descriptor: RepositoryDescriptor, tmp_path: Path):
        with pytest.raises(ConfigNotFound):
            patch_config(descriptor, tmp_path / "missing.conf")

    def test_lock_timeout(self, descriptor: RepositoryDescriptor, pacman_conf: Path, stock_text: str):
        held = FileLock(str(lock_path_for(pacman_conf)))
        held.acquire()
        try:
            with pytest.raises(PatchFailed, match="gave up"):
                patch_config(descriptor, pacman_conf, lock_timeout=0.05)
        finally:
            held.release()
        assert pacman_conf.read_text() == stock_text

    def test_detection_after_patch(self, descriptor: RepositoryDescriptor, pacman_conf: Path):
        assert not is_registered(pacman_conf, descriptor.name)
        patch_config(descriptor, pacman_conf)
        assert is_registered(pacman_conf, descriptor.name)

    def test_header_with_inline_comment_counts_as_present(self, descriptor: RepositoryDescriptor, tmp_path: Path):
        path = tmp_path / "pacman.conf"
        path.write_text("[example_repo] # added by hand\nServer = https://example.test/$arch\n\n[core]\n")
        before = path.read_text()

        result = patch_config(descriptor, path)
        assert result.status == ALREADY_PRESENT
        assert path.read_text() == before
        assert PacmanConf.parse(before).count("example_repo") == 1

    def test_replace_stanza_with_internal_blank_line(self, descriptor: RepositoryDescriptor, tmp_path: Path):
        path = tmp_path / "pacman.conf"
        path.write_text(SPLIT_STANZA_CONF)

        patch_config(descriptor, path, replace=True)
        conf = PacmanConf.parse(path.read_text())
        assert conf.find("options").get_all("Server") == []
        assert conf.find("options").directives == [("Architecture", "auto")]
        assert conf.find("example_repo").get_all("Server") == ["https://example.test/$arch"]
        assert conf.section_names == ["options", "example_repo", "core"]

    def test_lock_file_not_left_beside_config(self, descriptor: RepositoryDescriptor, pacman_conf: Path, lock_dir: Path):
        patch_config(descriptor, pacman_conf)
        assert not pacman_conf.with_name("pacman.conf.lock").exists()
        assert lock_path_for(pacman_conf).parent == lock_dir


class TestUnregister:
    def test_remove_restores_original(self, descriptor: RepositoryDescriptor, pacman_conf: Path, stock_text: str):
        patch_config(descriptor, pacman_conf)
        result = unregister(pacman_conf, descriptor.name)
        assert result.status == REMOVED
        assert result.backup_path is not None
        assert pacman_conf.read_text() == stock_text

    def test_remove_absent_is_noop(self, pacman_conf: Path, stock_text: str):
        result = unregister(pacman_conf, "example_repo")
        assert result.status == ABSENT
        assert result.backup_path is None
        assert list_backups(pacman_conf) == []
        assert pacman_conf.read_text() == stock_text

    def test_remove_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigNotFound):
            unregister(tmp_path / "missing.conf", "example_repo")

    def test_remove_stanza_with_internal_blank_line(self, tmp_path: Path):
        path = tmp_path / "pacman.conf"
        path.write_text(SPLIT_STANZA_CONF)

        unregister(path, "example_repo")
        assert path.read_text() == "[options]\nArchitecture = auto\n\n[core]\nInclude = /etc/pacman.d/mirrorlist\n"
