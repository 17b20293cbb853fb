"""Tests for applying and reverting shim overrides."""

import os
from pathlib import Path

import pytest

from shimswap.core.markers import FileMarkerStore, MarkerKind, MemoryMarkerStore
from shimswap.core.matcher import TargetSpec
from shimswap.core.override_engine import OverrideEngine

ACTIVE = MarkerKind.OVERRIDE_ACTIVE
REVERTED = MarkerKind.OVERRIDE_REVERTED


@pytest.fixture
def markers():
    return MemoryMarkerStore()


@pytest.fixture
def engine(markers):
    return OverrideEngine(markers)


@pytest.fixture
def targets():
    return TargetSpec.default()


def _backups(root):
    return sorted(p.relative_to(root).as_posix() for p in Path(root).rglob("*") if p.name.lower().endswith(".orig"))


# ============================================================
# apply
# ============================================================


def test_apply_then_revert_restores_originals(engine, targets, shim_provider, install_root, markers):
    dll32 = install_root / "steam_api.dll"
    dll64 = install_root / "bin" / "steam_api64.dll"
    dll64.parent.mkdir()
    dll32.write_bytes(b"A")
    dll64.write_bytes(b"B")

    result = engine.apply(install_root, targets, shim_provider)

    assert result.ok
    assert result.count == 2
    assert dll32.read_bytes() == b"X shim 32"
    assert dll64.read_bytes() == b"Y shim 64"
    assert (install_root / "steam_api.dll.orig").read_bytes() == b"A"
    assert (install_root / "bin" / "steam_api64.dll.orig").read_bytes() == b"B"
    assert markers.has(install_root, ACTIVE)
    assert not markers.has(install_root, REVERTED)

    result = engine.revert(install_root, targets)

    assert result.ok
    assert result.count == 2
    assert dll32.read_bytes() == b"A"
    assert dll64.read_bytes() == b"B"
    assert _backups(install_root) == []
    assert not markers.has(install_root, ACTIVE)
    assert markers.has(install_root, REVERTED)


def test_apply_handles_case_insensitive_names(engine, targets, shim_provider, install_root):
    dll = install_root / "STEAM_API.DLL"
    dll.write_bytes(b"original dll content")

    result = engine.apply(install_root, targets, shim_provider)

    assert result.count == 1
    assert (install_root / "STEAM_API.DLL.orig").read_bytes() == b"original dll content"
    assert dll.read_bytes() == shim_provider.contents["steam_api.dll"]
    assert shim_provider.calls == ["steam_api.dll"]


def test_apply_respects_max_depth(engine, targets, shim_provider, install_root, nest):
    deep = nest(install_root, 7)
    deep_dll = deep / "steam_api.dll"
    deep_dll.write_bytes(b"original")

    result = engine.apply(install_root, targets, shim_provider)

    assert result.ok
    assert result.count == 0
    assert deep_dll.read_bytes() == b"original"
    assert not (deep / "steam_api.dll.orig").exists()


def test_apply_reaches_deepest_allowed_level(engine, targets, shim_provider, install_root, nest):
    edge_dll = nest(install_root, 4) / "steam_api64.dll"
    edge_dll.write_bytes(b"edge")
    beyond_dll = nest(install_root, 5) / "steam_api64.dll"
    beyond_dll.write_bytes(b"beyond")

    result = engine.apply(install_root, targets, shim_provider)

    assert result.changed == [edge_dll]
    assert beyond_dll.read_bytes() == b"beyond"


def test_apply_twice_keeps_the_first_backup(engine, targets, shim_provider, install_root):
    dll = install_root / "steam_api.dll"
    dll.write_bytes(b"true original")

    first = engine.apply(install_root, targets, shim_provider)
    shim_provider.contents["steam_api.dll"] = b"newer shim"
    second = engine.apply(install_root, targets, shim_provider)

    assert first.count == 1
    assert second.count == 0
    assert second.skipped == [dll]
    assert (install_root / "steam_api.dll.orig").read_bytes() == b"true original"
    assert dll.read_bytes() == b"X shim 32"
    assert _backups(install_root) == ["steam_api.dll.orig"]


def test_apply_with_no_targets_succeeds_and_marks_active(engine, targets, shim_provider, install_root, markers):
    (install_root / "game.exe").write_bytes(b"exe")

    result = engine.apply(install_root, targets, shim_provider)

    assert result.ok
    assert result.count == 0
    assert shim_provider.calls == []
    assert markers.has(install_root, ACTIVE)


def test_apply_clears_reverted_marker(engine, targets, shim_provider, install_root, markers):
    markers.set(install_root, REVERTED)

    engine.apply(install_root, targets, shim_provider)

    assert markers.kinds(install_root) == {ACTIVE}


def test_apply_fetches_content_once_per_target(engine, targets, shim_provider, install_root):
    for sub in ("a", "b", "c"):
        (install_root / sub).mkdir()
        (install_root / sub / "steam_api.dll").write_bytes(sub.encode())

    result = engine.apply(install_root, targets, shim_provider)

    assert result.count == 3
    assert shim_provider.calls == ["steam_api.dll"]


def test_apply_preserves_file_mode(engine, targets, shim_provider, install_root):
    dll = install_root / "steam_api.dll"
    dll.write_bytes(b"A")
    dll.chmod(0o755)

    engine.apply(install_root, targets, shim_provider)

    assert dll.stat().st_mode & 0o777 == 0o755


def test_missing_shim_content_is_reported_and_file_left_alone(engine, install_root, markers):
    targets = TargetSpec(["steam_api.dll", "steam_api64.dll"])
    (install_root / "steam_api.dll").write_bytes(b"A")
    (install_root / "steam_api64.dll").write_bytes(b"B")

    def provider(basename):
        if basename == "steam_api.dll":
            raise LookupError("no shim bundled")
        return b"Y"

    result = engine.apply(install_root, targets, provider)

    assert not result.ok
    assert [f.operation for f in result.failures] == ["content"]
    assert result.changed == [install_root / "steam_api64.dll"]
    assert (install_root / "steam_api.dll").read_bytes() == b"A"
    assert not (install_root / "steam_api.dll.orig").exists()


def test_failed_shim_write_rolls_back_the_rename(engine, targets, shim_provider, install_root, monkeypatch):
    dll = install_root / "steam_api.dll"
    dll.write_bytes(b"A")

    def failing_write(path, data, mode=None):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("shimswap.core.override_engine.atomic_write_bytes", failing_write)

    result = engine.apply(install_root, targets, shim_provider)

    assert not result.ok
    assert result.failures[0].operation == "override"
    assert dll.read_bytes() == b"A"
    assert _backups(install_root) == []


def test_apply_rewrites_shim_missing_next_to_backup(engine, targets, shim_provider, install_root, markers):
    # State left by an apply interrupted between rename and write
    (install_root / "steam_api.dll.orig").write_bytes(b"A")
    markers.set(install_root, ACTIVE)

    result = engine.apply(install_root, targets, shim_provider)

    assert result.count == 0
    assert result.repaired == [install_root / "steam_api.dll"]
    assert (install_root / "steam_api.dll").read_bytes() == b"X shim 32"
    assert (install_root / "steam_api.dll.orig").read_bytes() == b"A"


def test_apply_reports_backup_without_marker(engine, targets, shim_provider, install_root):
    (install_root / "steam_api.dll").write_bytes(b"X shim 32")
    (install_root / "steam_api.dll.orig").write_bytes(b"A")

    result = engine.apply(install_root, targets, shim_provider)

    assert result.ok
    assert result.inconsistencies
    assert (install_root / "steam_api.dll.orig").read_bytes() == b"A"


def test_apply_removes_temporary_files_left_by_an_interrupted_write(engine, targets, shim_provider, install_root):
    (install_root / "bin").mkdir()
    leftover = install_root / "bin" / ".steam_api64.dll.q1w2e3.tmp"
    leftover.write_bytes(b"Y sh")
    unrelated = install_root / ".savegame.abc.tmp"
    unrelated.write_bytes(b"keep")
    (install_root / "bin" / "steam_api64.dll").write_bytes(b"B")

    result = engine.apply(install_root, targets, shim_provider)

    assert result.ok
    assert not leftover.exists()
    assert unrelated.read_bytes() == b"keep"
    assert (install_root / "bin" / "steam_api64.dll").read_bytes() == b"Y shim 64"


def test_revert_removes_temporary_files_left_by_an_interrupted_write(engine, targets, install_root):
    leftover = install_root / ".steam_api.dll.a1b2c3.tmp"
    leftover.write_bytes(b"X sh")
    (install_root / "steam_api.dll.orig").write_bytes(b"A")

    result = engine.revert(install_root, targets)

    assert result.ok
    assert not leftover.exists()
    assert (install_root / "steam_api.dll").read_bytes() == b"A"


# ============================================================
# revert
# ============================================================


def test_revert_restores_backups_without_live_files(engine, targets, install_root):
    (install_root / "steam_api.dll.orig").write_bytes(b"backup 32bit dll content")
    (install_root / "steam_api64.dll.orig").write_bytes(b"backup 64bit dll content")

    result = engine.revert(install_root, targets)

    assert result.count == 2
    assert (install_root / "steam_api.dll").read_bytes() == b"backup 32bit dll content"
    assert (install_root / "steam_api64.dll").read_bytes() == b"backup 64bit dll content"
    assert _backups(install_root) == []


def test_revert_finds_backups_in_subdirectories(engine, targets, install_root):
    sub = install_root / "bin"
    sub.mkdir()
    (sub / "steam_api.dll.orig").write_bytes(b"backup dll content")

    engine.revert(install_root, targets)

    assert (sub / "steam_api.dll").read_bytes() == b"backup dll content"


def test_revert_respects_max_depth(engine, targets, install_root, nest):
    deep = nest(install_root, 7)
    (deep / "steam_api.dll.orig").write_bytes(b"backup content")

    result = engine.revert(install_root, targets)

    assert result.ok
    assert not (deep / "steam_api.dll").exists()
    assert (deep / "steam_api.dll.orig").exists()


def test_revert_handles_case_insensitive_backup_names(engine, targets, install_root):
    (install_root / "STEAM_API64.DLL.ORIG").write_bytes(b"backup content")

    result = engine.revert(install_root, targets)

    assert result.count == 1
    assert (install_root / "STEAM_API64.DLL").read_bytes() == b"backup content"
    assert _backups(install_root) == []


def test_revert_replaces_existing_library(engine, targets, install_root):
    (install_root / "steam_api.dll.orig").write_bytes(b"backup content")
    existing = install_root / "steam_api.dll"
    existing.write_bytes(b"old dll content")

    engine.revert(install_root, targets)

    assert existing.read_bytes() == b"backup content"
    assert [p.name for p in install_root.iterdir() if p.name.lower().startswith("steam")] == ["steam_api.dll"]


def test_revert_ignores_unrelated_backups(engine, targets, install_root):
    other = install_root / "d3d9.dll.orig"
    other.write_bytes(b"not ours")

    result = engine.revert(install_root, targets)

    assert result.count == 0
    assert other.exists()


def test_revert_without_backups_is_a_no_op(engine, targets, install_root, markers):
    live = install_root / "steam_api.dll"
    live.write_bytes(b"untouched")

    result = engine.revert(install_root, targets)

    assert result.ok
    assert result.count == 0
    assert result.inconsistencies == []
    assert live.read_bytes() == b"untouched"
    assert markers.kinds(install_root) == {REVERTED}


def test_revert_reports_active_marker_without_backups(engine, targets, install_root, markers):
    markers.set(install_root, ACTIVE)

    result = engine.revert(install_root, targets)

    assert result.ok
    assert result.inconsistencies
    assert markers.kinds(install_root) == {REVERTED}


def test_failed_restore_keeps_override_marked_active(engine, targets, shim_provider, install_root, markers, monkeypatch):
    (install_root / "steam_api.dll").write_bytes(b"A")
    (install_root / "steam_api64.dll").write_bytes(b"B")
    engine.apply(install_root, targets, shim_provider)

    real_replace = os.replace

    def flaky_replace(src, dst):
        if Path(src).name == "steam_api.dll.orig":
            raise PermissionError(13, "Permission denied")
        return real_replace(src, dst)

    monkeypatch.setattr("shimswap.core.override_engine.os.replace", flaky_replace)

    result = engine.revert(install_root, targets)

    assert not result.ok
    assert result.changed == [install_root / "steam_api64.dll"]
    assert (install_root / "steam_api.dll.orig").read_bytes() == b"A"
    assert markers.kinds(install_root) == {ACTIVE}


def test_file_markers_follow_transitions(targets, shim_provider, install_root):
    engine = OverrideEngine(FileMarkerStore())
    (install_root / "steam_api.dll").write_bytes(b"A")

    engine.apply(install_root, targets, shim_provider)
    assert (install_root / ".shimswap_override_active").exists()

    engine.revert(install_root, targets)
    assert not (install_root / ".shimswap_override_active").exists()
    assert (install_root / ".shimswap_override_reverted").exists()


def test_missing_root_with_file_markers_reports_failure(targets, shim_provider, tmp_path):
    engine = OverrideEngine(FileMarkerStore())

    result = engine.apply(tmp_path / "uninstalled", targets, shim_provider)

    assert result.count == 0
    assert [f.operation for f in result.failures] == ["markers"]


def test_repeated_passes_do_not_leak_handles(engine, targets, shim_provider, install_root):
    for i in range(1, 11):
        d = install_root / f"level{i}"
        d.mkdir()
        for j in range(1, 6):
            (d / f"file{j}.txt").write_text("content")
    (install_root / "level3" / "steam_api.dll").write_bytes(b"A")

    fd_dir = Path("/proc/self/fd")
    before = len(os.listdir(fd_dir)) if fd_dir.is_dir() else None

    for _ in range(100):
        assert engine.apply(install_root, targets, shim_provider).ok
        assert engine.revert(install_root, targets).ok

    if before is not None:
        assert len(os.listdir(fd_dir)) <= before
    assert (install_root / "level3" / "steam_api.dll").read_bytes() == b"A"


# ============================================================
# status / reconcile
# ============================================================


def test_status_reports_targets_backups_and_markers(engine, targets, shim_provider, install_root):
    (install_root / "steam_api.dll").write_bytes(b"A")
    engine.apply(install_root, targets, shim_provider)

    status = engine.status(install_root, targets)

    assert status.active
    assert status.consistent
    assert status.targets == [install_root / "steam_api.dll"]
    assert status.backups == [install_root / "steam_api.dll.orig"]
    assert status.markers == {ACTIVE}


def test_reconcile_sets_marker_from_backups(engine, targets, install_root, markers):
    (install_root / "steam_api.dll.orig").write_bytes(b"A")
    markers.set(install_root, REVERTED)

    status = engine.reconcile(install_root, targets)

    assert status.consistent
    assert markers.kinds(install_root) == {ACTIVE}


def test_reconcile_clears_stale_active_marker(engine, targets, install_root, markers):
    markers.set(install_root, ACTIVE)

    status = engine.reconcile(install_root, targets)

    assert status.consistent
    assert not status.active
    assert not markers.has(install_root, ACTIVE)


def test_engine_rejects_nonpositive_depth():
    with pytest.raises(ValueError):
        OverrideEngine(MemoryMarkerStore(), max_depth=0)
