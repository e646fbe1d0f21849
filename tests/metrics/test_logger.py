from __future__ import annotations

import json
import os

import pytest

from allocprep.errors import DataError
from allocprep.metrics.logger import atomic_write_text, write_metrics

# --------------------------
# write_metrics
# --------------------------


def test_write_metrics_writes_json_and_overwrites(tmp_path):
    """
    @brief
    Verifies that write_metrics() creates and overwrites metrics.json correctly.

    @details
    The test writes two consecutive JSON files and ensures that
    the second call replaces the previous one without residual content.
    """
    # --- Arrange ---
    out_dir = tmp_path / "out"

    # --- Act ---
    p1 = write_metrics({"a": 1, "b": "x"}, out_dir)
    obj1 = json.loads(p1.read_text(encoding="utf-8"))

    # --- Assert ---
    assert p1.name == "metrics.json"
    assert obj1 == {"a": 1, "b": "x"}

    # --- Act (overwrite) ---
    p2 = write_metrics({"a": 2, "c": True}, out_dir)
    obj2 = json.loads(p2.read_text(encoding="utf-8"))

    # --- Assert ---
    assert p2 == p1
    assert obj2 == {"a": 2, "c": True}


def test_write_metrics_rejects_non_dict(tmp_path):
    with pytest.raises(DataError) as ei:
        write_metrics(["not", "a", "dict"], tmp_path)
    assert "metrics must be a dict" in str(ei.value)


def test_write_metrics_non_serializable_raises(tmp_path):
    """
    @brief
    Ensures that non-serializable objects trigger DataError.

    @details
    Nothing is written when serialization fails.
    """

    class Bad:
        pass

    with pytest.raises(DataError) as ei:
        write_metrics({"ok": 1, "bad": Bad()}, tmp_path)
    msg = str(ei.value)
    assert "metrics not JSON-serializable" in msg
    assert "metrics.write_metrics" in msg
    assert not (tmp_path / "metrics.json").exists()


# --------------------------
# atomic_write_text
# --------------------------


def test_atomic_write_text_creates_parent_dirs(tmp_path):
    target = tmp_path / "a" / "b" / "file.txt"

    atomic_write_text(target, "héllo\n")

    assert target.read_text(encoding="utf-8") == "héllo\n"
    assert [p.name for p in target.parent.iterdir()] == ["file.txt"]


def test_atomic_write_text_failure_raises_and_cleans_tmp(tmp_path, monkeypatch):
    """
    @brief
    Forces os.replace() to fail and verifies DataError and cleanup.

    @details
    Simulates a failure during atomic file replacement and checks
    that the temporary file is properly removed afterward.
    """
    target = tmp_path / "folder" / "file.txt"
    tmp_created = tmp_path / "folder" / "file.txt.tmp-for-test"

    # --- Arrange ---
    # Mock mkstemp to control temporary file name
    def fake_mkstemp(prefix, dir):
        os.makedirs(dir, exist_ok=True)
        fd = os.open(tmp_created, os.O_RDWR | os.O_CREAT)
        return fd, str(tmp_created)

    monkeypatch.setattr("tempfile.mkstemp", fake_mkstemp)

    def boom_replace(src, dst):
        raise OSError("nope")

    monkeypatch.setattr(os, "replace", boom_replace)

    # --- Act & Assert ---
    with pytest.raises(DataError) as ei:
        atomic_write_text(target, "payload", encoding="utf-8")

    msg = str(ei.value)
    assert "atomic write failed" in msg
    assert "metrics.atomic_write_text" in msg

    # The temporary file must be removed after failure
    assert not tmp_created.exists()
    assert not target.exists()
