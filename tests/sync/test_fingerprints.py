"""Tests for the content fingerprint store."""

import hashlib
import threading

import pytest

from devsync.sync import fingerprints as fingerprints_module
from devsync.sync.fingerprints import FingerprintStore, compute_hash


def test_compute_hash_matches_md5(tmp_path):
    file_path = tmp_path / "style.css"
    file_path.write_bytes(b"body { color: red; }")

    assert compute_hash(file_path) == hashlib.md5(b"body { color: red; }").hexdigest()


def test_compute_hash_missing_file_is_none(tmp_path):
    assert compute_hash(tmp_path / "missing.css") is None


def test_compute_hash_directory_is_none(tmp_path):
    assert compute_hash(tmp_path) is None


def test_unknown_file_has_changed(tmp_path, clock):
    file_path = tmp_path / "a.txt"
    file_path.write_text("A")
    store = FingerprintStore(clock=clock)

    assert file_path not in store
    assert store.has_changed(file_path)


def test_recorded_file_has_not_changed(tmp_path, clock):
    file_path = tmp_path / "a.txt"
    file_path.write_text("A")
    store = FingerprintStore(clock=clock)

    assert store.record_synced(file_path)
    assert not store.has_changed(file_path)
    assert store.synced_at(file_path) == clock.now

    file_path.write_text("B")
    assert store.has_changed(file_path)


def test_vanished_file_is_never_changed(tmp_path, clock):
    file_path = tmp_path / "a.txt"
    file_path.write_text("A")
    store = FingerprintStore(clock=clock)
    store.record_synced(file_path)

    file_path.unlink()

    assert not store.has_changed(file_path)
    assert not store.record_synced(file_path)


def test_record_pair_synced_commits_equal_files(tmp_path, clock):
    first = tmp_path / "source.css"
    second = tmp_path / "target.css"
    first.write_text("A")
    second.write_text("A")
    store = FingerprintStore(clock=clock)

    assert store.record_pair_synced(first, second)
    assert store.get(first) == store.get(second) == compute_hash(first)
    assert store.synced_at(first) == store.synced_at(second) == clock.now


def test_record_pair_synced_skips_mismatched_files(tmp_path, clock):
    first = tmp_path / "source.css"
    second = tmp_path / "target.css"
    first.write_text("A")
    second.write_text("B")
    store = FingerprintStore(clock=clock)

    assert not store.record_pair_synced(first, second)
    assert first not in store
    assert second not in store


def test_record_pair_synced_keeps_previous_entries_on_mismatch(tmp_path, clock):
    first = tmp_path / "source.css"
    second = tmp_path / "target.css"
    first.write_text("A")
    second.write_text("A")
    store = FingerprintStore(clock=clock)
    store.record_pair_synced(first, second)
    previous = store.get(first)

    first.write_text("changed during copy")
    clock.advance(1)

    assert not store.record_pair_synced(first, second)
    assert store.get(first) == previous
    assert store.synced_at(first) == clock.now - 1


def test_record_pair_synced_with_missing_side(tmp_path, clock):
    first = tmp_path / "source.css"
    first.write_text("A")
    store = FingerprintStore(clock=clock)

    assert not store.record_pair_synced(first, tmp_path / "missing.css")
    assert len(store) == 0


def test_seed_tree_records_without_timestamp(tmp_path, clock):
    (tmp_path / "themes" / "twenty").mkdir(parents=True)
    (tmp_path / "themes" / "twenty" / "style.css").write_text("A")
    (tmp_path / "index.php").write_text("<?php")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "HEAD").write_text("ref: refs/heads/main")
    (tmp_path / ".DS_Store").write_text("junk")
    store = FingerprintStore(clock=clock)

    count = store.seed_tree(tmp_path, [".git", ".DS_Store"])

    assert count == 2
    assert tmp_path / "index.php" in store
    assert store.synced_at(tmp_path / "index.php") is None
    assert tmp_path / ".git" / "HEAD" not in store
    assert not store.has_changed(tmp_path / "themes" / "twenty" / "style.css")


def test_forget_and_clear(tmp_path, clock):
    file_path = tmp_path / "a.txt"
    file_path.write_text("A")
    store = FingerprintStore(clock=clock)
    store.seed(file_path)

    store.forget(file_path)
    assert file_path not in store

    store.seed(file_path)
    store.clear()
    assert len(store) == 0


@pytest.mark.asyncio
async def test_check_changed_hashes_in_worker_thread(tmp_path, clock, monkeypatch):
    file_path = tmp_path / "bundle.js"
    file_path.write_text("A")
    store = FingerprintStore(clock=clock)
    real_hash = fingerprints_module.compute_hash
    hashed_on = []

    def recording_hash(path):
        hashed_on.append(threading.get_ident())
        return real_hash(path)

    monkeypatch.setattr(fingerprints_module, "compute_hash", recording_hash)

    assert await store.check_changed(file_path)
    assert not await store.check_changed(tmp_path / "missing.js")
    assert hashed_on
    assert threading.get_ident() not in hashed_on

    store.seed(file_path)
    assert not await store.check_changed(file_path)


@pytest.mark.asyncio
async def test_confirm_pair(tmp_path, clock):
    first = tmp_path / "source.css"
    second = tmp_path / "target.css"
    first.write_text("A")
    second.write_text("A")
    store = FingerprintStore(clock=clock)

    assert await store.confirm_pair(first, second)
    assert store.get(first) == store.get(second) == compute_hash(first)
    assert store.synced_at(second) == clock.now

    first.write_text("changed during copy")
    clock.advance(1)
    assert not await store.confirm_pair(first, second)
    assert store.synced_at(first) == clock.now - 1
