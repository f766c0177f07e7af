"""Tests for project config loading, saving and validated access."""

import json

import pytest

from botbox.config_manager import (
    CONFIG_JSON,
    CONFIG_TOML,
    INITIAL_VERSION,
    KNOWN_TOOLS,
    ConfigManager,
    ProjectConfig,
)
from botbox.errors import ConfigError, VersionParseError

# ============================================================================
# PROJECT CONFIG ACCESSORS
# ============================================================================


class TestProjectConfig:
    """Tests for the validated accessors of ProjectConfig."""

    def test_version_defaults_to_initial(self):
        assert ProjectConfig({}).version == INITIAL_VERSION

    def test_malformed_version_raises(self):
        with pytest.raises(VersionParseError):
            _ = ProjectConfig({"version": "one.two"}).version

    def test_non_object_rejected(self):
        with pytest.raises(ConfigError, match="object"):
            ProjectConfig(["not", "a", "dict"])  # type: ignore[arg-type]

    def test_enabled_tools_from_map(self):
        config = ProjectConfig({"tools": {"beads": True, "maw": False, "crit": True}})
        assert config.enabled_tools == ["beads", "crit"]

    def test_enabled_tools_from_legacy_list(self):
        assert ProjectConfig({"tools": ["beads", "botbus"]}).enabled_tools == ["beads", "botbus"]

    def test_wrong_tools_shape_raises(self):
        with pytest.raises(ConfigError, match="tools"):
            _ = ProjectConfig({"tools": 42}).enabled_tools

    def test_project_type_accepts_string(self):
        assert ProjectConfig({"project": {"type": "cli"}}).project_types == ["cli"]

    def test_project_must_be_object(self):
        with pytest.raises(ConfigError, match="project"):
            _ = ProjectConfig({"project": "myapp"}).project_name

    def test_identity_falls_back_to_name(self):
        config = ProjectConfig({"project": {"name": "myapp"}})
        assert config.default_agent == "myapp-dev"
        assert config.channel == "myapp"

    def test_explicit_identity_wins(self):
        config = ProjectConfig(
            {"project": {"name": "myapp", "default_agent": "bot", "channel": "ops"}}
        )
        assert config.default_agent == "bot"
        assert config.channel == "ops"

    def test_reviewers(self):
        config = ProjectConfig({"review": {"enabled": True, "reviewers": ["security"]}})
        assert config.reviewers == ["security"]

    def test_agent_settings_shape(self):
        with pytest.raises(ConfigError, match="agents"):
            _ = ProjectConfig({"agents": {"dev": "strong"}}).agent_settings

    def test_new(self):
        config = ProjectConfig.new("myapp", ["cli"], ["beads", "maw"], [], version="1.0.6")

        assert config.version == "1.0.6"
        assert config.data["tools"] == {tool: tool in ("beads", "maw") for tool in KNOWN_TOOLS}
        assert config.review == {"enabled": False, "reviewers": []}
        assert config.default_agent == "myapp-dev"

    def test_default_for_uses_directory_name(self, project):
        assert ProjectConfig.default_for(project).project_name == "myapp"

    def test_copy_is_deep(self):
        original = ProjectConfig({"project": {"name": "myapp"}})
        duplicate = original.copy()
        duplicate.data["project"]["name"] = "other"
        assert original.project_name == "myapp"


# ============================================================================
# CONFIG MANAGER
# ============================================================================


class TestFindAndLoad:
    """Tests for locating and loading config files."""

    def test_no_config(self, project):
        assert ConfigManager.find_config(project) is None
        assert ConfigManager.load_project(project) == (None, None)

    def test_load_json(self, project, write_config):
        write_config({"version": "1.0.2", "project": {"name": "myapp"}})

        path, config = ConfigManager.load_project(project)

        assert path == project / CONFIG_JSON
        assert config.version == "1.0.2"

    def test_toml_preferred_over_json(self, project, write_config):
        write_config({"version": "1.0.1"})
        (project / CONFIG_TOML).write_text('version = "1.0.5"\n')

        path, config = ConfigManager.load_project(project)

        assert path.name == CONFIG_TOML
        assert config.version == "1.0.5"

    def test_invalid_json_raises_config_error(self, project):
        (project / CONFIG_JSON).write_text("{not json")
        with pytest.raises(ConfigError, match="parse"):
            ConfigManager.load(project / CONFIG_JSON)

    def test_invalid_toml_raises_config_error(self, project):
        (project / CONFIG_TOML).write_text("version = = 1\n")
        with pytest.raises(ConfigError, match="parse"):
            ConfigManager.load(project / CONFIG_TOML)

    def test_top_level_array_raises_config_error(self, project):
        (project / CONFIG_JSON).write_text("[1, 2]")
        with pytest.raises(ConfigError):
            ConfigManager.load(project / CONFIG_JSON)

    def test_malformed_version_fails_on_load(self, project, write_config):
        write_config({"version": "latest"})
        with pytest.raises(VersionParseError):
            ConfigManager.load(project / CONFIG_JSON)


class TestSave:
    """Tests for saving config files."""

    def test_json_format(self, project):
        path = project / CONFIG_JSON
        ConfigManager.save(ProjectConfig({"version": "1.0.6", "tools": {"beads": True}}), path)

        text = path.read_text()
        assert text == json.dumps({"version": "1.0.6", "tools": {"beads": True}}, indent=2) + "\n"

    def test_no_temp_file_left(self, project):
        ConfigManager.save(ProjectConfig({"version": "1.0.6"}), project / CONFIG_JSON)
        assert [p.name for p in project.iterdir()] == [CONFIG_JSON]

    def test_json_round_trip_preserves_unknown_fields(self, project, write_config):
        write_config({"version": "1.0.2", "custom": {"keep": [1, 2]}})
        path, config = ConfigManager.load_project(project)

        config.data["version"] = "1.0.3"
        ConfigManager.save(config, path)

        assert json.loads(path.read_text()) == {"version": "1.0.3", "custom": {"keep": [1, 2]}}

    def test_toml_keeps_comments(self, project):
        path = project / CONFIG_TOML
        path.write_text(
            "# botbox project settings\n"
            'version = "1.0.1"\n'
            "\n"
            "[project]\n"
            'name = "myapp"\n'
        )
        config = ConfigManager.load(path)

        config.data["version"] = "1.0.6"
        ConfigManager.save(config, path)

        text = path.read_text()
        assert "# botbox project settings" in text
        reloaded = ConfigManager.load(path)
        assert reloaded.version == "1.0.6"
        assert reloaded.project_name == "myapp"

    def test_toml_drops_none_values(self, project):
        path = project / CONFIG_TOML
        ConfigManager.save(ProjectConfig({"version": "1.0.6", "project": {"name": None}}), path)

        assert ConfigManager.load(path).data == {"version": "1.0.6", "project": {}}

    def test_unserializable_config_raises(self, project):
        with pytest.raises(ConfigError, match="save"):
            ConfigManager.save(ProjectConfig({"version": object()}), project / CONFIG_JSON)
        assert not (project / CONFIG_JSON).exists()
