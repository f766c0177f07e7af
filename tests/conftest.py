"""
Shared test fixtures for botbox tests.

This module provides common fixtures used across all test types:
- Temporary target projects (with and without a config)
- A fake message bus for hook migrations
- Migration contexts that record log and warning output
"""

import json
from pathlib import Path
from typing import Any

import pytest

from botbox.bus import Hook, HookSpec
from botbox.config_manager import ProjectConfig
from botbox.errors import ExternalToolError
from botbox.migrations import MigrationContext
from botbox.sync_engine import MANAGED_DIR

# ============================================================================
# PROJECT FIXTURES
# ============================================================================


@pytest.fixture
def project(tmp_path):
    """Empty target project directory named `myapp`."""
    root = tmp_path / "myapp"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def write_config(project):
    """Write a .botbox.json into the project and return its path."""

    def _write(data: dict[str, Any]) -> Path:
        path = project / ".botbox.json"
        path.write_text(json.dumps(data, indent=2) + "\n")
        return path

    return _write


@pytest.fixture
def legacy_config() -> dict[str, Any]:
    """Config as written by an old botbox (version 1.0.1, tools as a map)."""
    return {
        "version": "1.0.1",
        "project": {"name": "myapp", "type": ["cli"]},
        "tools": {"beads": True, "maw": True, "crit": True, "botbus": True, "botty": False},
        "review": {"enabled": True, "reviewers": ["security"]},
    }


# ============================================================================
# MESSAGE BUS FIXTURES
# ============================================================================


class FakeHookBus:
    """In-memory HookBus.

    Operations named in `fail_on` ("list", "remove", "add") raise
    ExternalToolError.
    """

    def __init__(self) -> None:
        self.hooks: list[Hook] = []
        self.removed: list[str] = []
        self.added: list[HookSpec] = []
        self.fail_on: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise ExternalToolError(["bus", "hooks", operation], "bus is down")

    def list_hooks(self) -> list[Hook]:
        self._maybe_fail("list")
        return list(self.hooks)

    def remove_hook(self, hook_id: str) -> None:
        self._maybe_fail("remove")
        self.removed.append(hook_id)
        self.hooks = [hook for hook in self.hooks if hook.id != hook_id]

    def add_hook(self, spec: HookSpec) -> None:
        self._maybe_fail("add")
        self.added.append(spec)
        self.hooks.append(
            Hook(
                id=f"new-{len(self.added)}",
                command=list(spec.command),
                cwd=spec.cwd,
                channel=spec.channel,
            )
        )


@pytest.fixture
def fake_bus():
    """Fake message bus with no hooks registered."""
    return FakeHookBus()


# ============================================================================
# MIGRATION FIXTURES
# ============================================================================


@pytest.fixture
def messages():
    """Collected log and warning messages: {"log": [...], "warn": [...]}."""
    return {"log": [], "warn": []}


@pytest.fixture
def make_context(project, fake_bus, messages):
    """Build a MigrationContext for the project from a config mapping."""

    def _make(data: dict[str, Any]) -> MigrationContext:
        config_path = project / ".botbox.json"
        if not config_path.exists():
            config_path.write_text(json.dumps(data, indent=2) + "\n")
        return MigrationContext(
            project_root=project,
            managed_dir=project / MANAGED_DIR,
            config_path=config_path,
            config=ProjectConfig(data),
            log=messages["log"].append,
            warn=messages["warn"].append,
            bus=fake_bus,
        )

    return _make
