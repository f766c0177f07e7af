"""Tests for AGENTS.md rendering."""

import pytest

from botbox.bundles import DESIGN, DOCS
from botbox.config_manager import ProjectConfig
from botbox.errors import ConfigurationCompletenessError
from botbox.templates import (
    DESIGN_DOC_DESCRIPTIONS,
    DOC_DESCRIPTIONS,
    HEADER_NOTE,
    check_bundle_descriptions,
    check_descriptions,
    parse_agents_md_header,
    render_header,
    render_managed_section,
)


@pytest.fixture
def config():
    return ProjectConfig.new(
        name="myapp",
        project_types=["cli"],
        tools=["beads", "maw", "crit", "botbus"],
        reviewers=["security"],
        version="1.0.6",
    )


# ============================================================================
# DESCRIPTION COMPLETENESS
# ============================================================================


class TestDescriptionCompleteness:
    """Every bundled doc must have a description, and vice versa."""

    def test_every_bundled_workflow_doc_is_described(self):
        for doc in DOCS.list_files():
            assert doc in DOC_DESCRIPTIONS, f"{doc} has no DOC_DESCRIPTIONS entry"

    def test_every_bundled_design_doc_is_described(self):
        for doc in DESIGN.list_files():
            assert doc in DESIGN_DOC_DESCRIPTIONS, f"{doc} has no DESIGN_DOC_DESCRIPTIONS entry"

    def test_shipped_bundles_pass_full_check(self):
        check_bundle_descriptions(DOCS.list_files(), DESIGN.list_files())

    def test_undescribed_doc_raises(self):
        with pytest.raises(ConfigurationCompletenessError, match="brand-new.md"):
            check_descriptions(["start.md", "brand-new.md"], DOC_DESCRIPTIONS, "workflow doc")

    def test_description_without_doc_raises(self):
        docs = [doc for doc in DOCS.list_files() if doc != "scout.md"]
        with pytest.raises(ConfigurationCompletenessError, match="scout.md"):
            check_bundle_descriptions(docs, DESIGN.list_files())


# ============================================================================
# MANAGED SECTION
# ============================================================================


class TestRenderManagedSection:
    """Tests for render_managed_section()."""

    def test_indexes_every_doc_with_its_description(self, config):
        docs = DOCS.list_files()
        section = render_managed_section(config, docs)

        for doc in docs:
            assert f"| [{doc}](.agents/botbox/{doc}) | {DOC_DESCRIPTIONS[doc]} |" in section

    def test_identity(self, config):
        section = render_managed_section(config, ["start.md"])

        assert "- Project: `myapp`" in section
        assert "- Default agent: `myapp-dev`" in section
        assert "- Channel: `myapp`" in section

    def test_design_guidelines_only_when_selected(self, config):
        without = render_managed_section(config, ["start.md"])
        with_design = render_managed_section(config, ["start.md"], ["cli-conventions.md"])

        assert "### Design Guidelines" not in without
        assert "### Design Guidelines" in with_design
        assert "(.agents/botbox/design/cli-conventions.md)" in with_design

    def test_install_command(self, config):
        assert "Install locally" not in render_managed_section(config, [])

        config.data["project"]["install_command"] = "just install"
        assert "`just install`" in render_managed_section(config, [])

    def test_undescribed_doc_is_an_error_not_a_blank_row(self, config):
        with pytest.raises(ConfigurationCompletenessError):
            render_managed_section(config, ["start.md", "unknown.md"])

    def test_deterministic(self, config):
        docs = DOCS.list_files()
        assert render_managed_section(config, docs) == render_managed_section(
            config, list(reversed(docs))
        )


# ============================================================================
# SCAFFOLD HEADER
# ============================================================================


class TestHeader:
    """Tests for render_header() and parse_agents_md_header()."""

    def test_render_header(self, config):
        header = render_header(config)

        assert header.startswith("# myapp\n")
        assert "Project type: cli\n" in header
        assert "Tools: `beads`, `maw`, `crit`, `botbus`\n" in header
        assert "Reviewer roles: security\n" in header
        assert HEADER_NOTE in header

    def test_no_reviewer_line_without_reviewers(self, config):
        config.data["review"]["reviewers"] = []
        assert "Reviewer roles" not in render_header(config)

    def test_parse_rendered_header(self, config):
        header = parse_agents_md_header(render_header(config))

        assert header.name == "myapp"
        assert header.project_types == ["cli"]
        assert header.tools == ["beads", "maw", "crit", "botbus"]
        assert header.reviewers == ["security"]

    def test_parse_stops_at_first_comment(self):
        content = "# myapp\nProject type: api\n<!-- notes -->\nTools: `beads`\n"
        header = parse_agents_md_header(content)

        assert header.project_types == ["api"]
        assert header.tools == []

    def test_parse_without_header(self):
        header = parse_agents_md_header("Some notes\n")
        assert header.name is None
        assert header.reviewers == []
