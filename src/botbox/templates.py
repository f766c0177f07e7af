"""AGENTS.md rendering.

Two pieces are rendered here:

- the managed section interior (project identity, workflow quick
  reference, index of the bundled docs), rewritten on every sync
- the scaffold header of a new AGENTS.md (title plus project type, tools
  and reviewer lines), written once by `botbox init` and owned by the user
  afterwards

Every bundled doc needs an entry in DOC_DESCRIPTIONS (and every design doc
one in DESIGN_DOC_DESCRIPTIONS). A doc without a description, or a
description without a doc, raises ConfigurationCompletenessError instead of
rendering a blank row.
"""

import logging
from dataclasses import dataclass, field

from botbox.config_manager import ProjectConfig
from botbox.errors import ConfigurationCompletenessError

logger = logging.getLogger(__name__)

DOC_DESCRIPTIONS: dict[str, str] = {
    "triage.md": "Find work from inbox and beads",
    "start.md": "Claim bead, create workspace, announce",
    "update.md": "Change bead status (open/in_progress/blocked/done)",
    "finish.md": "Close bead, merge workspace, release claims, sync",
    "worker-loop.md": "Full triage-work-finish lifecycle",
    "planning.md": "Turn specs/PRDs into actionable beads",
    "scout.md": "Explore unfamiliar code before planning",
    "proposal.md": "Create and validate proposals before implementation",
    "review-request.md": "Request a review",
    "review-response.md": "Handle reviewer feedback (fix/address/defer)",
    "review-loop.md": "Reviewer agent loop",
    "merge-check.md": "Verify approval before merge",
    "preflight.md": "Validate toolchain health",
    "report-issue.md": "Report bugs/features to other projects",
}

DESIGN_DOC_DESCRIPTIONS: dict[str, str] = {
    "cli-conventions.md": "CLI tool design for humans, agents, and machines",
}

MANAGED_DIR_LINK = ".agents/botbox"

HEADER_NOTE = (
    "<!-- Add project-specific context below: architecture, conventions, key files, etc. -->"
)

__all__ = [
    "DESIGN_DOC_DESCRIPTIONS",
    "DOC_DESCRIPTIONS",
    "AgentsMdHeader",
    "check_bundle_descriptions",
    "check_descriptions",
    "parse_agents_md_header",
    "render_header",
    "render_managed_section",
]


@dataclass
class AgentsMdHeader:
    """Project details recovered from the header of an existing AGENTS.md."""

    name: str | None = None
    project_types: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    reviewers: list[str] = field(default_factory=list)


def check_descriptions(docs: list[str], descriptions: dict[str, str], kind: str) -> None:
    """Check that every doc in a set has a description.

    Args:
        docs: Bundled doc file names
        descriptions: Description map for those docs
        kind: Label for the error message ("workflow doc", "design doc")

    Raises:
        ConfigurationCompletenessError: If a doc has no description
    """
    undescribed = sorted(set(docs) - set(descriptions))
    if undescribed:
        raise ConfigurationCompletenessError(
            f"No description for bundled {kind}(s): {', '.join(undescribed)}"
        )


def check_bundle_descriptions(docs: list[str], design_docs: list[str]) -> None:
    """Check the full bundled doc sets against both description maps, in both directions.

    Raises:
        ConfigurationCompletenessError: If a doc is undescribed or a description
            names a doc that is not bundled
    """
    for names, descriptions, kind in (
        (docs, DOC_DESCRIPTIONS, "workflow doc"),
        (design_docs, DESIGN_DOC_DESCRIPTIONS, "design doc"),
    ):
        check_descriptions(names, descriptions, kind)
        missing = sorted(set(descriptions) - set(names))
        if missing:
            raise ConfigurationCompletenessError(
                f"Described {kind}(s) not in the bundle: {', '.join(missing)}"
            )


def _doc_table(docs: list[str], descriptions: dict[str, str], subdir: str) -> str:
    prefix = f"{MANAGED_DIR_LINK}/{subdir}" if subdir else MANAGED_DIR_LINK
    rows = ["| Doc | Purpose |", "|-----|---------|"]
    for doc in sorted(docs):
        rows.append(f"| [{doc}]({prefix}/{doc}) | {descriptions[doc]} |")
    return "\n".join(rows)


def _identity(config: ProjectConfig) -> str:
    name = config.project_name or "<project>"
    lines = [
        "### Identity",
        "",
        f"- Project: `{name}`",
        f"- Default agent: `{config.default_agent or f'{name}-dev'}`",
        f"- Channel: `{config.channel or name}`",
        "",
        "Your agent name is set by the hook or script that launched you. Use `$AGENT` in commands.",
    ]
    return "\n".join(lines)


def _quick_reference(config: ProjectConfig) -> str:
    lines = [
        "### Quick Reference",
        "",
        "| Operation | Command |",
        "|-----------|---------|",
        "| View ready work | `br ready` |",
        "| Start work | `br update --actor $AGENT <id> --status=in_progress --owner=$AGENT` |",
        '| Add comment | `br comments add --actor $AGENT --author $AGENT <id> "message"` |',
        "| Close | `br close --actor $AGENT <id>` |",
        "| Create workspace | `maw ws create <name>` |",
        "| Merge to main | `maw ws merge <name> --destroy` |",
        '| Stake claim | `bus claims stake --agent $AGENT "bead://<project>/<id>"` |',
        "| Release claims | `bus claims release --agent $AGENT --all` |",
        "",
        "**Required flags**: `--actor $AGENT` on mutations, `--author $AGENT` on comments.",
    ]
    if config.install_command:
        lines.append(f"**Install locally** after releasing: `{config.install_command}`")
    return "\n".join(lines)


def render_managed_section(
    config: ProjectConfig,
    docs: list[str],
    design_docs: list[str] | None = None,
) -> str:
    """Render the interior of the AGENTS.md managed section.

    Args:
        config: Project config (identity and install command)
        docs: Workflow doc file names to index
        design_docs: Design doc file names selected for the project

    Returns:
        Managed section content, without markers

    Raises:
        ConfigurationCompletenessError: If a doc has no description
    """
    design_docs = design_docs or []
    check_descriptions(docs, DOC_DESCRIPTIONS, "workflow doc")
    check_descriptions(design_docs, DESIGN_DOC_DESCRIPTIONS, "design doc")

    parts = [
        "## Botbox Workflow",
        "",
        f"**New here?** Read [worker-loop.md]({MANAGED_DIR_LINK}/worker-loop.md) first. "
        "It covers the complete triage, start, work, finish cycle.",
        "",
        "**All tools have `--help`** with usage examples.",
        "",
        _identity(config),
        "",
        _quick_reference(config),
        "",
    ]
    if design_docs:
        parts += [
            "### Design Guidelines",
            "",
            _doc_table(design_docs, DESIGN_DOC_DESCRIPTIONS, "design"),
            "",
        ]
    parts += ["### Workflow Docs", "", _doc_table(docs, DOC_DESCRIPTIONS, "")]
    return "\n".join(parts)


def render_header(config: ProjectConfig) -> str:
    """Render the user-owned scaffold that precedes the managed section."""
    tools = ", ".join(f"`{tool}`" for tool in config.enabled_tools)
    lines = [
        f"# {config.project_name or 'project'}",
        "",
        f"Project type: {', '.join(config.project_types)}",
        f"Tools: {tools}",
    ]
    if config.reviewers:
        lines.append(f"Reviewer roles: {', '.join(config.reviewers)}")
    lines += ["", HEADER_NOTE, "", ""]
    return "\n".join(lines)


def parse_agents_md_header(content: str) -> AgentsMdHeader:
    """Recover project details from the header of an AGENTS.md.

    Parsing stops at the first HTML comment line. A header with a title but
    no "Reviewer roles:" line means no reviewers.
    """
    header = AgentsMdHeader()
    for line in content.split("\n"):
        if line.startswith("<!--"):
            break
        if line.startswith("# "):
            header.name = line[2:].strip()
        elif line.startswith("Project type: "):
            header.project_types = _split_list(line[len("Project type: ") :])
        elif line.startswith("Tools: "):
            header.tools = _split_list(line[len("Tools: ") :].replace("`", ""))
        elif line.startswith("Reviewer roles: "):
            header.reviewers = _split_list(line[len("Reviewer roles: ") :])
    return header


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]
