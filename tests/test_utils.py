"""Tests for the file helpers."""

import pytest

from devsync.environment import DEFAULT_IGNORE_PATTERNS
from devsync.utils.file import copy_file, ensure_parent_dir, is_ignored, iter_files


@pytest.mark.parametrize(
    "path, expected",
    [
        ("themes/child/style.css", False),
        (".git/objects/ab/cdef", True),
        ("plugins/node_modules/pkg/index.js", True),
        ("uploads/.DS_Store", True),
        ("wp-content-original/index.php", True),
        ("themes/gitignore-notes.txt", False),
    ],
)
def test_is_ignored(path, expected):
    assert is_ignored(path, DEFAULT_IGNORE_PATTERNS) is expected


def test_iter_files_prunes_ignored_directories(tmp_path):
    (tmp_path / "themes").mkdir()
    (tmp_path / "themes" / "style.css").write_text("x")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "HEAD").write_text("x")
    (tmp_path / "Thumbs.db").write_text("x")

    files = sorted(p.relative_to(tmp_path).as_posix() for p in iter_files(tmp_path, DEFAULT_IGNORE_PATTERNS))

    assert files == ["themes/style.css"]


def test_copy_file_overwrites(tmp_path):
    source = tmp_path / "a.txt"
    target = tmp_path / "b.txt"
    source.write_text("new")
    target.write_text("old content")

    copy_file(source, target)

    assert target.read_text() == "new"


def test_copy_file_missing_source_raises(tmp_path):
    with pytest.raises(OSError):
        copy_file(tmp_path / "missing", tmp_path / "b.txt")


def test_ensure_parent_dir(tmp_path):
    parent = ensure_parent_dir(tmp_path / "a" / "b" / "c.txt")

    assert parent == tmp_path / "a" / "b"
    assert parent.is_dir()
