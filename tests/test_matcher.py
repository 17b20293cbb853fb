"""Tests for case-insensitive target and suffix matching."""

import pytest

from shimswap.core.matcher import (
    BACKUP_PATTERN,
    ORIGINAL_EXE_PATTERN,
    SuffixPattern,
    TargetSpec,
    fold,
)


def test_default_targets_are_both_steam_api_libraries():
    assert TargetSpec.default().basenames == ("steam_api.dll", "steam_api64.dll")


@pytest.mark.parametrize("name", ["steam_api.dll", "STEAM_API.DLL", "Steam_Api.Dll"])
def test_match_returns_canonical_name_for_any_casing(name):
    assert TargetSpec.default().match(name) == "steam_api.dll"


def test_match_requires_exact_basename():
    targets = TargetSpec.default()

    assert targets.match("steam_api.dll.bak") is None
    assert targets.match("my_steam_api.dll") is None
    assert "steam_api64.dll" in targets


def test_match_backup_folds_name_and_suffix():
    targets = TargetSpec.default()

    assert targets.match_backup("STEAM_API64.DLL.ORIG") == "steam_api64.dll"
    assert targets.match_backup("steam_api.dll.orig") == "steam_api.dll"
    assert targets.match_backup("steam_api.dll") is None
    assert targets.match_backup("other.dll.orig") is None


def test_match_temp_recognises_unfinished_writes():
    targets = TargetSpec.default()

    assert targets.match_temp(".steam_api64.dll.k2j_9x.tmp") == "steam_api64.dll"
    assert targets.match_temp(".STEAM_API.DLL.abc123.TMP") == "steam_api.dll"
    assert targets.match_temp("steam_api.dll.abc123.tmp") is None
    assert targets.match_temp(".steam_api.dll.tmp") is None
    assert targets.match_temp(".other.dll.abc123.tmp") is None


def test_duplicate_targets_keep_first_spelling():
    targets = TargetSpec(["Steam_API.dll", "steam_api.dll"])

    assert len(targets) == 1
    assert targets.match("STEAM_API.DLL") == "Steam_API.dll"


@pytest.mark.parametrize("bad", [[], [""], ["bin/steam_api.dll"], ["bin\\steam_api.dll"]])
def test_invalid_target_specs_are_rejected(bad):
    with pytest.raises(ValueError):
        TargetSpec(bad)


def test_suffix_pattern_strip_keeps_remaining_case():
    assert BACKUP_PATTERN.strip("STEAM_API.DLL.ORIG") == "STEAM_API.DLL"
    assert ORIGINAL_EXE_PATTERN.strip("Game.exe.Original.EXE") == "Game.exe"


def test_suffix_alone_is_not_a_match():
    assert not BACKUP_PATTERN.matches(".orig")
    assert ORIGINAL_EXE_PATTERN.matches("game.exe.original.exe")
    assert not ORIGINAL_EXE_PATTERN.matches("game.exe")


def test_strip_rejects_non_matching_names():
    with pytest.raises(ValueError):
        SuffixPattern(".orig").strip("steam_api.dll")


def test_fold_is_locale_invariant():
    assert fold("STRASSE") == fold("straße")
