"""Project configuration management.

The project config lives at the project root as `.botbox.json` (or
`.botbox.toml`, which wins when both exist). It records the installed
migration version, project identity, enabled tools, review settings and
per-role agent settings.

The file's shape grows as migrations add fields, so the config is kept as a
plain mapping and every read goes through a validating accessor on
ProjectConfig instead of free-form dictionary access.

Writes are atomic: temp file beside the target, then rename.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

try:
    import tomli  # type: ignore[import]
except ImportError:
    # Python 3.11+ ships the same parser as tomllib
    try:
        import tomllib as tomli  # type: ignore[import,no-redef]
    except ImportError as e:
        raise ImportError("toml library not available. Install with: pip install tomli") from e

try:
    import tomlkit
except ImportError as e:
    raise ImportError("tomlkit library not available. Install with: pip install tomlkit") from e

from botbox.errors import ConfigError
from botbox.versions import parse_version

logger = logging.getLogger(__name__)

CONFIG_JSON = ".botbox.json"
CONFIG_TOML = ".botbox.toml"

INITIAL_VERSION = "0.0.0"

PROJECT_TYPES = ("api", "cli", "frontend", "library", "monorepo", "tui")
KNOWN_TOOLS = ("beads", "maw", "crit", "botbus", "botty")
REVIEWER_ROLES = ("security", "correctness")

__all__ = [
    "CONFIG_JSON",
    "CONFIG_TOML",
    "INITIAL_VERSION",
    "KNOWN_TOOLS",
    "PROJECT_TYPES",
    "REVIEWER_ROLES",
    "ConfigManager",
    "ProjectConfig",
]


def _string_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigError(f"{field_name} must be a string or a list of strings, got {value!r}")


def _drop_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(v) for v in value if v is not None]
    return value


class ProjectConfig:
    """Validated view over the project config mapping.

    The underlying mapping is exposed as `data` so migrations can reshape
    it; readers should use the accessors, which raise ConfigError when a
    field has an unexpected shape.
    """

    def __init__(self, data: dict[str, Any] | None = None):
        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"Project config must be a JSON object, got {type(data).__name__}")
        self.data: dict[str, Any] = data if data is not None else {}

    @classmethod
    def new(
        cls,
        name: str,
        project_types: list[str],
        tools: list[str],
        reviewers: list[str],
        version: str,
    ) -> "ProjectConfig":
        """Build a fresh config as written by `botbox init`."""
        enabled = set(tools)
        return cls(
            {
                "version": version,
                "project": {
                    "name": name,
                    "type": list(project_types),
                    "default_agent": f"{name}-dev",
                    "channel": name,
                },
                "tools": {tool: tool in enabled for tool in KNOWN_TOOLS},
                "review": {"enabled": bool(reviewers), "reviewers": list(reviewers)},
                "agents": {},
            }
        )

    @classmethod
    def default_for(cls, project_root: Path) -> "ProjectConfig":
        """Config used to render docs for a project that has no config file."""
        return cls({"project": {"name": project_root.resolve().name}})

    def copy(self) -> "ProjectConfig":
        return ProjectConfig(copy.deepcopy(self.data))

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self.data)

    @property
    def version(self) -> str:
        """Installed migration version ("0.0.0" when absent)."""
        raw = self.data.get("version")
        if raw is None:
            return INITIAL_VERSION
        parse_version(raw, source="config version")
        return raw

    @property
    def project(self) -> dict[str, Any]:
        project = self.data.get("project")
        if project is None:
            return {}
        if not isinstance(project, dict):
            raise ConfigError(f"project must be an object, got {project!r}")
        return project

    @property
    def project_name(self) -> str | None:
        name = self.project.get("name")
        if name is not None and not isinstance(name, str):
            raise ConfigError(f"project.name must be a string, got {name!r}")
        return name or None

    @property
    def project_types(self) -> list[str]:
        return _string_list(self.project.get("type"), "project.type")

    @property
    def default_agent(self) -> str | None:
        agent = self.project.get("default_agent")
        if agent:
            return str(agent)
        return f"{self.project_name}-dev" if self.project_name else None

    @property
    def channel(self) -> str | None:
        channel = self.project.get("channel")
        if channel:
            return str(channel)
        return self.project_name

    @property
    def install_command(self) -> str | None:
        command = self.project.get("install_command")
        return str(command) if command else None

    @property
    def enabled_tools(self) -> list[str]:
        """Names of enabled tools.

        Accepts the current map shape ({"beads": true, ...}) and the legacy
        list shape (["beads", ...]) that migration 1.0.1 converts.
        """
        tools = self.data.get("tools")
        if tools is None:
            return []
        if isinstance(tools, dict):
            return [name for name, enabled in tools.items() if enabled is True]
        return _string_list(tools, "tools")

    @property
    def review(self) -> dict[str, Any]:
        review = self.data.get("review")
        if review is None:
            return {}
        if not isinstance(review, dict):
            raise ConfigError(f"review must be an object, got {review!r}")
        return review

    @property
    def reviewers(self) -> list[str]:
        return _string_list(self.review.get("reviewers"), "review.reviewers")

    @property
    def agent_settings(self) -> dict[str, dict[str, Any]]:
        agents = self.data.get("agents")
        if agents is None:
            return {}
        if not isinstance(agents, dict) or not all(isinstance(v, dict) for v in agents.values()):
            raise ConfigError(f"agents must map role names to objects, got {agents!r}")
        return agents


class ConfigManager:
    """Locate, load and save the project config file."""

    @classmethod
    def find_config(cls, project_root: Path) -> Path | None:
        """Find the config file of a project (.botbox.toml preferred).

        Returns:
            Path to the config file, or None if the project has none
        """
        for name in (CONFIG_TOML, CONFIG_JSON):
            path = project_root / name
            if path.is_file():
                return path
        return None

    @classmethod
    def load(cls, config_path: Path) -> ProjectConfig:
        """Load a project config file.

        Raises:
            ConfigError: If the file cannot be read or parsed
            VersionParseError: If the version field is malformed
        """
        try:
            if config_path.suffix == ".toml":
                with open(config_path, "rb") as f:
                    data = tomli.load(f)  # type: ignore[attr-defined]
            else:
                data = json.loads(config_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Failed to read {config_path}: {e}") from e
        except (json.JSONDecodeError, tomli.TOMLDecodeError) as e:  # type: ignore[attr-defined]
            raise ConfigError(f"Failed to parse {config_path}: {e}") from e

        config = ProjectConfig(data)
        # Fail fast on a malformed version; migrations depend on it
        _ = config.version
        logger.debug(f"Loaded config from: {config_path}")
        return config

    @classmethod
    def load_project(cls, project_root: Path) -> tuple[Path | None, ProjectConfig | None]:
        """Find and load a project's config, if it has one."""
        config_path = cls.find_config(project_root)
        if config_path is None:
            return None, None
        return config_path, cls.load(config_path)

    @classmethod
    def save(cls, config: ProjectConfig, config_path: Path) -> None:
        """Save a project config atomically.

        JSON is written with two-space indent and a trailing newline. TOML
        keeps the comments and formatting of an existing file.

        Raises:
            ConfigError: If saving fails
        """
        temp_path = config_path.parent / f".{config_path.name}.tmp"
        try:
            if config_path.suffix == ".toml":
                text = cls._render_toml(config, config_path)
            else:
                text = json.dumps(config.data, indent=2) + "\n"

            temp_path.write_text(text, encoding="utf-8")
            os.replace(temp_path, config_path)
            logger.debug(f"Saved config to: {config_path}")

        except (OSError, TypeError, ValueError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise ConfigError(f"Failed to save config {config_path}: {e}") from e

    @classmethod
    def _render_toml(cls, config: ProjectConfig, config_path: Path) -> str:
        data = _drop_none(config.data)
        if config_path.exists():
            doc = tomlkit.parse(config_path.read_text(encoding="utf-8"))
            for key in [k for k in doc if k not in data]:
                del doc[key]
        else:
            doc = tomlkit.document()
        for key, value in data.items():
            doc[key] = value
        return tomlkit.dumps(doc)
