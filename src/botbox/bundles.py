"""Bundled content store.

botbox ships four bundles of files that are copied into target projects:

    docs     workflow docs              -> .agents/botbox/*.md
    scripts  helper scripts             -> .agents/botbox/scripts/
    prompts  reviewer prompt templates  -> .agents/botbox/prompts/
    design   design guideline docs      -> .agents/botbox/design/

Each bundle is read-only at run time and lives inside the installed
package. Scripts and design docs are filtered per project (enabled tools
and project types respectively); docs and prompts always ship in full.

Public API:
    Bundle: A named group of bundled files
    BundleFile: One file of a bundle (relative path + bytes)
    DOCS, SCRIPTS, PROMPTS, DESIGN: The shipped bundles
    ALL_BUNDLES: All bundles in sync order
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from botbox.config_manager import ProjectConfig
from botbox.errors import BundleIOError

logger = logging.getLogger(__name__)

BUNDLED_ROOT = Path(__file__).resolve().parent / "bundled"


@dataclass(frozen=True)
class ScriptEntry:
    """Registry entry for a bundled script."""

    description: str
    required_tools: tuple[str, ...]


@dataclass(frozen=True)
class DesignDocEntry:
    """Registry entry for a bundled design doc."""

    project_types: tuple[str, ...]


SCRIPT_REGISTRY: dict[str, ScriptEntry] = {
    "triage.py": ScriptEntry(
        description="Token-efficient bead triage output",
        required_tools=("beads",),
    ),
    "iteration-start.py": ScriptEntry(
        description="Combined status for iteration starts (inbox, beads, reviews)",
        required_tools=("beads", "crit", "botbus"),
    ),
    "inbox.py": ScriptEntry(
        description="Unread message summary for the project channel",
        required_tools=("botbus",),
    ),
}

DESIGN_DOC_REGISTRY: dict[str, DesignDocEntry] = {
    "cli-conventions.md": DesignDocEntry(project_types=("cli", "tui")),
}


@dataclass(frozen=True)
class BundleFile:
    """A single bundled file, addressed by its path relative to the bundle root."""

    relative_path: str
    content: bytes = field(repr=False)


def _script_eligible(name: str, config: ProjectConfig) -> bool:
    entry = SCRIPT_REGISTRY.get(name)
    if entry is None:
        return False
    tools = set(config.enabled_tools)
    return all(tool in tools for tool in entry.required_tools)


def _design_doc_eligible(name: str, config: ProjectConfig) -> bool:
    entry = DESIGN_DOC_REGISTRY.get(name)
    if entry is None:
        return False
    return any(project_type in entry.project_types for project_type in config.project_types)


@dataclass(frozen=True)
class Bundle:
    """A named, read-only group of files shipped with botbox.

    Attributes:
        name: Bundle name used in reports ("docs", "scripts", ...)
        source_dir: Directory holding the bundled files
        marker_name: Marker file name inside the managed directory
        target_subdir: Subdirectory of the managed directory to copy into
        suffixes: File suffixes that belong to the bundle
        executable: Whether copied files are made executable
        eligible: Optional per-project filter (file name, config) -> bool
    """

    name: str
    source_dir: Path
    marker_name: str
    target_subdir: str = ""
    suffixes: tuple[str, ...] = (".md",)
    executable: bool = False
    eligible: Callable[[str, ProjectConfig], bool] | None = field(default=None, compare=False)

    def list_files(self) -> list[str]:
        """List every file name in the bundle, sorted.

        A bundle whose source directory does not exist is empty.
        """
        if not self.source_dir.is_dir():
            return []
        return sorted(
            path.name
            for path in self.source_dir.iterdir()
            if path.is_file() and path.suffix in self.suffixes
        )

    def select(self, config: ProjectConfig | None = None) -> list[str]:
        """List the files of the bundle that apply to a project.

        Args:
            config: Project config, or None to select every file

        Returns:
            Sorted list of file names
        """
        names = self.list_files()
        if config is None or self.eligible is None:
            return names
        return [name for name in names if self.eligible(name, config)]

    def load(self, config: ProjectConfig | None = None) -> list[BundleFile]:
        """Read the selected files of the bundle.

        Raises:
            BundleIOError: If any selected file cannot be read. A partial
                bundle is never returned.
        """
        files = []
        for name in self.select(config):
            path = self.source_dir / name
            try:
                content = path.read_bytes()
            except OSError as e:
                raise BundleIOError("read bundled file", path, e) from e
            files.append(BundleFile(relative_path=name, content=content))
        logger.debug(f"Loaded {len(files)} file(s) from {self.name} bundle")
        return files

    def target_dir(self, managed_dir: Path) -> Path:
        """Directory inside the managed directory that receives this bundle."""
        if self.target_subdir:
            return managed_dir / self.target_subdir
        return managed_dir


DOCS = Bundle(
    name="docs",
    source_dir=BUNDLED_ROOT / "docs",
    marker_name=".version",
)

SCRIPTS = Bundle(
    name="scripts",
    source_dir=BUNDLED_ROOT / "scripts",
    marker_name=".scripts-version",
    target_subdir="scripts",
    suffixes=(".py",),
    executable=True,
    eligible=_script_eligible,
)

PROMPTS = Bundle(
    name="prompts",
    source_dir=BUNDLED_ROOT / "prompts",
    marker_name=".prompts-version",
    target_subdir="prompts",
)

DESIGN = Bundle(
    name="design",
    source_dir=BUNDLED_ROOT / "design",
    marker_name=".design-docs-version",
    target_subdir="design",
    eligible=_design_doc_eligible,
)

ALL_BUNDLES: tuple[Bundle, ...] = (DOCS, SCRIPTS, PROMPTS, DESIGN)


__all__ = [
    "ALL_BUNDLES",
    "DESIGN",
    "DESIGN_DOC_REGISTRY",
    "DOCS",
    "PROMPTS",
    "SCRIPTS",
    "SCRIPT_REGISTRY",
    "Bundle",
    "BundleFile",
    "DesignDocEntry",
    "ScriptEntry",
]
