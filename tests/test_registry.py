import pytest

from rafctl.errors import ProfileNotFoundError
from rafctl.registry import ENV_CONFIG_DIR, ProfileRegistry, default_profiles_dir


def test_load_profiles_from_directory(fixtures_dir):
    registry = ProfileRegistry(fixtures_dir / "profiles")
    assert sorted(registry.profiles) == ["personal", "work"]


def test_profile_defaults_name_from_directory(fixtures_dir):
    registry = ProfileRegistry(fixtures_dir / "profiles")
    profile = registry.profiles["personal"]
    assert profile["name"] == "personal"
    assert profile["tool"] == "claude"
    assert registry.profiles["work"]["description"] == "Company account"


def test_transcripts_dir(fixtures_dir):
    registry = ProfileRegistry(fixtures_dir / "profiles")
    assert registry.transcripts_dir("Work") == fixtures_dir / "profiles" / "work" / "claude" / "projects"


def test_unknown_profile(fixtures_dir):
    registry = ProfileRegistry(fixtures_dir / "profiles")
    with pytest.raises(ProfileNotFoundError, match="broken"):
        registry.transcripts_dir("broken")


def test_non_mapping_meta_is_skipped(tmp_path):
    (tmp_path / "listy").mkdir()
    (tmp_path / "listy" / "meta.yaml").write_text("- a\n- b\n")
    assert ProfileRegistry(tmp_path).profiles == {}


def test_empty_directory(tmp_path):
    registry = ProfileRegistry(tmp_path)
    assert registry.profiles == {}


def test_nonexistent_directory(tmp_path):
    registry = ProfileRegistry(tmp_path / "nope")
    assert registry.profiles == {}


def test_default_profiles_dir_honours_env(tmp_path, monkeypatch):
    monkeypatch.setenv(ENV_CONFIG_DIR, str(tmp_path))
    assert default_profiles_dir() == tmp_path / "profiles"


def test_mixed_case_profile_directory(tmp_path):
    (tmp_path / "Work").mkdir()
    (tmp_path / "Work" / "meta.yaml").write_text("tool: claude\n")
    registry = ProfileRegistry(tmp_path)
    assert list(registry.profiles) == ["work"]
    assert registry.transcripts_dir("Work") == tmp_path / "Work" / "claude" / "projects"
    assert registry.transcripts_dir("work") == tmp_path / "Work" / "claude" / "projects"
