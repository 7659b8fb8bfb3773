"""Tests for preparing the target tree."""

import pytest

from devsync.environment import DEFAULT_IGNORE_PATTERNS
from devsync.provision import ProvisionError, backup_path_for, prepare_target


@pytest.fixture
def source(tmp_path):
    root = tmp_path / "wp-content"
    (root / "themes" / "child").mkdir(parents=True)
    (root / "themes" / "child" / "style.css").write_text("body {}")
    (root / "plugins").mkdir()
    (root / "plugins" / "seo.php").write_text("<?php")
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "node_modules" / "pkg" / "index.js").write_text("module.exports = 1")
    (root / ".DS_Store").write_text("")
    return root


@pytest.fixture
def target(tmp_path):
    root = tmp_path / "wordpress" / "wp-content"
    (root / "uploads").mkdir(parents=True)
    (root / "uploads" / "photo.jpg").write_bytes(b"jpeg")
    return root


def test_backup_path_for(tmp_path):
    assert backup_path_for(tmp_path / "wp-content") == tmp_path / "wp-content-original"
    assert backup_path_for(tmp_path / "wp-content", "-backup") == tmp_path / "wp-content-backup"


def test_first_run_backs_up_original(source, target):
    backup = prepare_target(source, target, ignore_patterns=DEFAULT_IGNORE_PATTERNS)

    assert backup == backup_path_for(target.resolve())
    assert (backup / "uploads" / "photo.jpg").read_bytes() == b"jpeg"
    assert (target / "themes" / "child" / "style.css").read_text() == "body {}"
    assert (target / "plugins" / "seo.php").read_text() == "<?php"
    assert not (target / "uploads").exists()


def test_later_runs_keep_first_backup(source, target):
    first = prepare_target(source, target)
    (target / "themes" / "child" / "style.css").write_text("edited in container")
    (source / "plugins" / "seo.php").write_text("<?php // v2")

    assert prepare_target(source, target) is None

    assert (first / "uploads" / "photo.jpg").exists()
    assert (target / "themes" / "child" / "style.css").read_text() == "body {}"
    assert (target / "plugins" / "seo.php").read_text() == "<?php // v2"


def test_missing_target_is_created(source, tmp_path):
    target = tmp_path / "fresh" / "wp-content"

    assert prepare_target(source, target) is None

    assert (target / "plugins" / "seo.php").exists()
    assert not backup_path_for(target).exists()


def test_ignored_entries_are_not_copied(source, target):
    prepare_target(source, target, ignore_patterns=DEFAULT_IGNORE_PATTERNS)

    assert not (target / "node_modules").exists()
    assert not (target / ".DS_Store").exists()


def test_missing_source_raises(tmp_path, target):
    with pytest.raises(ProvisionError, match="does not exist"):
        prepare_target(tmp_path / "missing", target)

    assert (target / "uploads" / "photo.jpg").exists()


def test_target_inside_source_raises(source):
    with pytest.raises(ProvisionError, match="inside the source"):
        prepare_target(source, source / "themes")


def test_source_inside_target_raises(tmp_path):
    target = tmp_path / "wordpress" / "wp-content"
    source = target / "themes"
    source.mkdir(parents=True)
    (source / "style.css").write_text("body {}")

    with pytest.raises(ProvisionError, match="inside the target"):
        prepare_target(source, target)

    assert (source / "style.css").read_text() == "body {}"
    assert not backup_path_for(target).exists()
