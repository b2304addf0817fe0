"""Configuration tests.

Tests verify behavior (types, loading, overrides) not specific values.
"""

from pathlib import Path

import pytest

from menusync.config import (
    CONFIG_SCHEMA,
    Config,
    ConfigError,
    _load_config,
    load_settings,
)


@pytest.fixture
def temp_workspace(tmp_path):
    """Create temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


def write_config(workspace: Path, content: str) -> Path:
    """Write a menusync.ini file to the workspace and return the path."""
    config_path = workspace / "menusync.ini"
    config_path.write_text(content)
    return config_path


# =============================================================================
# Type Validation Tests
# =============================================================================


def test_all_settings_have_correct_types():
    """Every setting matches its declared type from schema."""
    config = _load_config(None)

    for section_name, keys in CONFIG_SCHEMA.items():
        section = getattr(config, section_name)
        for key, (expected_type, *_) in keys.items():
            value = getattr(section, key)
            assert isinstance(value, expected_type), (
                f"{section_name}.{key}: expected {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )


def test_empty_string_raises_clear_error(temp_workspace: Path):
    """An empty path setting names the offending key."""
    config_path = write_config(temp_workspace, "[paths]\nsource_file =\n")

    with pytest.raises(ConfigError) as exc_info:
        _load_config(config_path)

    assert "paths" in str(exc_info.value)
    assert "source_file" in str(exc_info.value)


@pytest.mark.parametrize(
    "raw,expected", [("true", True), ("yes", True), ("0", False), ("off", False)]
)
def test_bool_parsing(temp_workspace: Path, raw: str, expected: bool):
    config_path = write_config(temp_workspace, f"[identity]\nrepair_before_diff = {raw}\n")

    config = _load_config(config_path)

    assert config.identity.repair_before_diff is expected


def test_unrecognized_bool_raises_clear_error(temp_workspace: Path):
    config_path = write_config(temp_workspace, "[sync]\nrefresh_full_paths = sometimes\n")

    with pytest.raises(ConfigError) as exc_info:
        _load_config(config_path)

    assert "[sync].refresh_full_paths" in str(exc_info.value)
    assert "'sometimes'" in str(exc_info.value)


def test_schema_declares_only_bool_and_str_settings():
    assert {typ for keys in CONFIG_SCHEMA.values() for typ, _, _ in keys.values()} == {bool, str}


def test_unknown_keys_are_ignored(temp_workspace: Path):
    config_path = write_config(temp_workspace, "[sync]\nnot_a_setting = 1\n")

    config = _load_config(config_path)

    assert config.sync.root_display_name == CONFIG_SCHEMA["sync"]["root_display_name"][1]


# =============================================================================
# Config Object Tests
# =============================================================================


def test_config_defaults_sections(temp_workspace: Path):
    config = Config(workspace_path=temp_workspace)

    assert config.sync is not None
    assert config.identity.repair_before_diff is True
    assert config.source_path == temp_workspace / "menu.yaml"
    assert config.graph_path == temp_workspace / ".menusync"
    assert config.config_file == temp_workspace / "menusync.ini"


# =============================================================================
# load_settings Tests
# =============================================================================


def test_load_settings_requires_workspace(monkeypatch):
    monkeypatch.delenv("MENUSYNC_WORKSPACE", raising=False)

    with pytest.raises(ValueError, match="MENUSYNC_WORKSPACE"):
        load_settings()


def test_load_settings_reads_workspace_ini(monkeypatch, temp_workspace: Path):
    write_config(temp_workspace, "[sync]\nroot_display_name = Expressions\n")
    monkeypatch.setenv("MENUSYNC_WORKSPACE", str(temp_workspace))

    settings = load_settings()

    assert settings.workspace_path == temp_workspace
    assert settings.sync.root_display_name == "Expressions"


def test_env_overrides_paths(monkeypatch, temp_workspace: Path):
    write_config(temp_workspace, "[paths]\nsource_file = from_ini.yaml\n")
    monkeypatch.setenv("MENUSYNC_WORKSPACE", str(temp_workspace))
    monkeypatch.setenv("MENUSYNC_SOURCE_FILE", "from_env.yaml")
    monkeypatch.setenv("MENUSYNC_GRAPH_DIR", "state")

    settings = load_settings()

    assert settings.source_path == temp_workspace / "from_env.yaml"
    assert settings.graph_path == temp_workspace / "state"


def test_load_settings_is_cached(monkeypatch, temp_workspace: Path):
    monkeypatch.setenv("MENUSYNC_WORKSPACE", str(temp_workspace))

    assert load_settings() is load_settings()
